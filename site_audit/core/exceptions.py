# Copyright 2026 Cisco Systems, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

"""Site Audit exceptions.

All exceptions inherit from SiteAuditError for easy catching.

Example:
    >>> from site_audit.core.exceptions import ResultPersistenceError
    >>>
    >>> try:
    ...     result = checklist.run_check(check)
    ... except ResultPersistenceError as e:
    ...     print(f"Result computed but not stored: {e.result.status}")
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .models import CheckIdentity, CheckResult


class SiteAuditError(Exception):
    """Base exception for all Site Audit errors."""

    pass


class DuplicateIdentityError(SiteAuditError):
    """Raised when a check is registered under an identity already in use.

    This is a configuration error and is surfaced at registration time.
    """

    def __init__(self, identity: CheckIdentity):
        self.identity = identity
        super().__init__(f"A check is already registered as '{identity}'")


class CheckNotFoundError(SiteAuditError):
    """Raised by presentation layers when a requested check does not exist.

    The checklist itself returns ``None`` for a lookup miss; help pages, the
    API and the CLI turn that into this exception (a 404-equivalent).
    """

    def __init__(self, namespace: str, title: str):
        self.namespace = namespace
        self.title = title
        super().__init__(f"No check registered as '{namespace}/{title}'")


class CheckExecutionError(SiteAuditError):
    """Raised when a check fails unexpectedly while running.

    This typically indicates:
    - A bug inside the check's run logic
    - An unreadable log source
    """

    def __init__(self, identity: CheckIdentity, cause: BaseException):
        self.identity = identity
        self.cause = cause
        super().__init__(f"Check '{identity}' failed: {cause}")


class StoreError(SiteAuditError):
    """Raised when history or skip state cannot be read or written.

    This can indicate:
    - Unwritable state directory
    - Corrupted JSON state file
    """

    pass


class ResultPersistenceError(StoreError):
    """Raised when a check ran but its result could not be stored.

    The computed result is attached so the caller can decide whether to
    retry the write.
    """

    def __init__(self, identity: CheckIdentity, result: CheckResult, cause: BaseException):
        self.identity = identity
        self.result = result
        self.cause = cause
        super().__init__(f"Could not store result of '{identity}': {cause}")


class LogStoreError(SiteAuditError):
    """Raised when an available log source cannot be read."""

    pass
