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
Checklist: the registry of audit checks and the engine that runs them.

The checklist is constructed explicitly and handed to whatever drives
audits (CLI, API, tests).  It owns the registered checks; the history and
skip stores are shared with it and outlive any single audit run.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable, Iterable, ValuesView

from .audit_policy import AuditPolicy
from .checks.base import BaseCheck
from .exceptions import CheckExecutionError, DuplicateIdentityError, ResultPersistenceError, StoreError
from .models import (
    AggregateStatus,
    BatchReport,
    CheckIdentity,
    CheckOutcome,
    CheckResult,
    CheckStatus,
    SkipState,
    machine_name,
)
from .stores import ResultHistoryStore, SkipStateStore

logger = logging.getLogger(__name__)

# Results with these statuses never take part in the aggregate status
_UNREPORTED_STATUSES = frozenset({CheckStatus.HIDE, CheckStatus.INFO})


class Checklist:
    """Registry and execution driver for audit checks."""

    def __init__(
        self,
        history: ResultHistoryStore | None = None,
        skips: SkipStateStore | None = None,
        policy: AuditPolicy | None = None,
        checks: Iterable[BaseCheck] | None = None,
        clock: Callable[[], float] | None = None,
    ):
        """
        Initialize the checklist.

        Args:
            history: Store of the most recent result per check.  Defaults to
                an in-memory store.
            skips: Store of skip flags.  Defaults to an in-memory store.
            policy: Audit policy; only the aggregate rules and
                ``run_skipped_checks`` are read here.  If None, loads
                built-in defaults.
            checks: Checks to register immediately, in order.
            clock: Time source for skip timestamps.
        """
        self.history = history or ResultHistoryStore.in_memory()
        self.skips = skips or SkipStateStore.in_memory()
        self.policy = policy or AuditPolicy.default()
        self._clock = clock or time.time
        self._checks: dict[CheckIdentity, BaseCheck] = {}
        self._run_locks: dict[CheckIdentity, threading.Lock] = {}
        self._registry_lock = threading.Lock()

        for check in checks or []:
            self.register(check)

    # -- Registry ---------------------------------------------------------------

    def register(self, check: BaseCheck) -> BaseCheck:
        """Register *check*.

        Raises:
            DuplicateIdentityError: If a check with the same identity is
                already registered.
        """
        identity = check.identity
        with self._registry_lock:
            if identity in self._checks:
                raise DuplicateIdentityError(identity)
            self._checks[identity] = check
            self._run_locks[identity] = threading.Lock()
        logger.debug("Registered check %s", identity)
        return check

    def get_check(self, namespace: str, title: str) -> BaseCheck | None:
        """Look up a check by display or machine names; None if absent."""
        return self._checks.get(CheckIdentity(machine_name(namespace), machine_name(title)))

    def get_checks(self) -> ValuesView[BaseCheck]:
        """All checks in registration order.

        The returned view is lazy and can be iterated any number of times.
        """
        return self._checks.values()

    def get_namespace_checks(self, namespace: str) -> list[BaseCheck]:
        ns = machine_name(namespace)
        return [check for identity, check in self._checks.items() if identity.namespace == ns]

    def __len__(self) -> int:
        return len(self._checks)

    def __iter__(self):
        return iter(self._checks.values())

    def __contains__(self, check: object) -> bool:
        if isinstance(check, BaseCheck):
            return self._checks.get(check.identity) is check
        return check in self._checks

    # -- Execution --------------------------------------------------------------

    def run_check(self, check: BaseCheck) -> CheckResult:
        """
        Run one check and store its result, replacing the previous one.

        Runs of the same check are serialised so their history writes never
        interleave.

        Returns:
            The new result

        Raises:
            ResultPersistenceError: If the result was computed but could not
                be stored; the result is attached to the exception.
            StoreError: If the previous result could not be read.
        """
        identity = check.identity
        lock = self._run_locks.get(identity)
        if lock is None:
            # Unregistered checks can still be run ad hoc
            with self._registry_lock:
                lock = self._run_locks.setdefault(identity, threading.Lock())

        with lock:
            previous = self.history.get(identity)
            logger.debug("Running %s (previous run at %s)", identity, previous.time if previous else None)
            result = check.run(previous)
            try:
                self.history.put(identity, result)
            except StoreError as exc:
                logger.warning("Could not store result of %s: %s", identity, exc)
                raise ResultPersistenceError(identity, result, exc) from exc

        logger.debug("%s finished with %s (%d findings)", identity, result.status.value, len(result.findings))
        return result

    def run_checks(self, checks: Iterable[BaseCheck]) -> BatchReport:
        """
        Run *checks* one after another, isolating failures.

        A check that raises does not stop the batch; it is reported in
        :attr:`BatchReport.failed` with the error message.
        If the aggregate cannot be computed afterwards the report is still
        returned, with ``aggregate`` unset and ``aggregate_error`` filled in.
        """
        report = BatchReport()
        for check in checks:
            identity = check.identity
            outcome = CheckOutcome(identity=identity, namespace=check.get_namespace(), title=check.get_title())
            try:
                outcome.skipped = self.skips.is_skipped(identity)
                if outcome.skipped and not self.policy.run_skipped_checks:
                    logger.debug("Not running skipped check %s", identity)
                else:
                    outcome.result = self.run_check(check)
            except ResultPersistenceError as exc:
                outcome.result = exc.result
                outcome.error = str(exc)
            except StoreError as exc:
                logger.error("State store failed while running %s: %s", identity, exc)
                outcome.error = str(exc)
            except Exception as exc:
                error = CheckExecutionError(identity, exc)
                logger.error("Unexpected error running %s: %s", identity, exc, exc_info=True)
                outcome.error = str(error)
            report.outcomes.append(outcome)

        try:
            report.aggregate = self.aggregate_status()
        except StoreError as exc:
            logger.error("Could not compute aggregate status: %s", exc)
            report.aggregate = None
            report.aggregate_error = str(exc)
        if report.failed:
            logger.warning("%d of %d checks failed to run", len(report.failed), len(report.outcomes))
        return report

    def run_all(self) -> BatchReport:
        """Run every registered check."""
        return self.run_checks(list(self._checks.values()))

    def run_namespace(self, namespace: str) -> BatchReport:
        """Run the checks registered under *namespace*."""
        return self.run_checks(self.get_namespace_checks(namespace))

    # -- Results ------------------------------------------------------------------

    def last_result(self, check: BaseCheck, skip_access_check: bool = False) -> CheckResult | None:
        """
        Return the stored result of *check*, or None if it never ran.

        A skipped check reports no result unless *skip_access_check* is True,
        in which case its stored result is returned regardless.
        """
        identity = check.identity
        if not skip_access_check and self.skips.is_skipped(identity):
            return None
        return self.history.get(identity)

    def aggregate_status(self) -> AggregateStatus:
        """Fold the stored results of all non-skipped checks.

        Skipped checks and HIDE/INFO results are left out.  The order of the
        remaining statuses comes from the audit policy; FAIL always wins.
        """
        statuses: list[CheckStatus] = []
        for identity in list(self._checks):
            if self.skips.is_skipped(identity):
                continue
            result = self.history.get(identity)
            if result is None or result.status in _UNREPORTED_STATUSES:
                continue
            statuses.append(result.status)
        return self.policy.fold(statuses)

    # -- Skip state -----------------------------------------------------------------

    def skip(self, check: BaseCheck, actor: str | None = None, timestamp: int | None = None) -> SkipState:
        """Exclude *check* from reporting; its history is left untouched."""
        ts = int(timestamp if timestamp is not None else self._clock())
        return self.skips.mark_skipped(check.identity, actor, ts)

    def unskip(self, check: BaseCheck) -> None:
        self.skips.unmark(check.identity)

    def is_skipped(self, check: BaseCheck) -> bool:
        return self.skips.is_skipped(check.identity)

    def skipped_by(self, check: BaseCheck) -> str | None:
        return self.skips.skipped_by(check.identity)

    def skipped_on(self, check: BaseCheck) -> int | None:
        return self.skips.skipped_on(check.identity)

    def get_enabled_checks(self) -> list[BaseCheck]:
        """Registered checks that are not skipped."""
        return [check for identity, check in self._checks.items() if not self.skips.is_skipped(identity)]

    def get_skipped_checks(self) -> list[BaseCheck]:
        return [check for identity, check in self._checks.items() if self.skips.is_skipped(identity)]
