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
Centralized checklist construction.

The CLI, the API and embedders build the default checks and their stores
through the helpers in this module, so adding a built-in check only
requires a change here.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from ..config.config import Config
from .audit_policy import AuditPolicy
from .checklist import Checklist
from .checks.base import BaseCheck
from .checks.failed_logins import FailedLoginsCheck
from .checks.query_errors import QueryErrorsCheck
from .log_store import InMemoryLogStore, JsonLinesLogStore, LogStore
from .stores import ResultHistoryStore, SkipStateStore

logger = logging.getLogger(__name__)


def build_default_checks(
    log_store: LogStore,
    policy: AuditPolicy,
    *,
    clock: Callable[[], float] | None = None,
) -> list[BaseCheck]:
    """Build the built-in checks with *policy* thresholds applied."""
    return [
        FailedLoginsCheck(log_store, threshold=policy.anomaly_threshold, clock=clock),
        QueryErrorsCheck(log_store, threshold=policy.anomaly_threshold, clock=clock),
    ]


def load_policy(config: Config) -> AuditPolicy:
    """Load the policy named by *config*, or the built-in default."""
    if config.policy_path is not None:
        policy = AuditPolicy.from_yaml(config.policy_path)
        logger.info("Using audit policy: %s (%s)", config.policy_path, policy.policy_name)
        return policy
    return AuditPolicy.default()


def build_log_store(config: Config) -> LogStore:
    """Open the event log named by *config*.

    Without a configured log path the log facility is treated as disabled.
    """
    if config.log_path is None:
        logger.info("No event log configured; log-based checks will report the log as unavailable")
        return InMemoryLogStore(available=False)
    return JsonLinesLogStore(config.log_path)


def build_checklist(
    config: Config | None = None,
    *,
    log_store: LogStore | None = None,
    policy: AuditPolicy | None = None,
    clock: Callable[[], float] | None = None,
) -> Checklist:
    """
    Build a checklist with file-backed stores and the built-in checks.

    Args:
        config: Paths and policy location.  Defaults to :meth:`Config.from_env`.
        log_store: Overrides the log store derived from *config*.
        policy: Overrides the policy derived from *config*.
        clock: Time source shared by checks and skip timestamps.
    """
    config = config or Config.from_env()
    policy = policy or load_policy(config)
    log_store = log_store or build_log_store(config)

    checklist = Checklist(
        history=ResultHistoryStore.json_file(config.history_path),
        skips=SkipStateStore.json_file(config.skip_path),
        policy=policy,
        clock=clock,
    )
    for check in build_default_checks(log_store, policy, clock=clock):
        checklist.register(check)
    return checklist
