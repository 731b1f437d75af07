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

"""
Check implementations for the audit checklist.

Every check implements :class:`BaseCheck`; new checks are added by
implementing the contract and registering an instance with a
:class:`~site_audit.core.checklist.Checklist`.
"""

from .base import BaseCheck
from .failed_logins import FailedLoginsCheck
from .log_anomaly import LogAnomalyCheck, count_by_source, sources_over_threshold
from .query_errors import QueryErrorsCheck

__all__ = [
    "BaseCheck",
    "LogAnomalyCheck",
    "FailedLoginsCheck",
    "QueryErrorsCheck",
    "count_by_source",
    "sources_over_threshold",
]
