# Copyright 2026 Cisco Systems, Inc. and its affiliates
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
Pytest configuration and shared fixtures.

This file is automatically loaded by pytest before running tests.
All fixtures defined here are available to every test module without
explicit imports.
"""

from __future__ import annotations

import pytest

from site_audit.core.audit_policy import AuditPolicy
from site_audit.core.checklist import Checklist
from site_audit.core.checks.base import BaseCheck
from site_audit.core.checks.failed_logins import FailedLoginsCheck
from site_audit.core.checks.query_errors import QueryErrorsCheck
from site_audit.core.log_store import InMemoryLogStore, LogEntry, LogSeverity
from site_audit.core.models import CheckResult, CheckStatus, HelpContent
from site_audit.core.stores import ResultHistoryStore, SkipStateStore

# ---------------------------------------------------------------------------
# Clock
# ---------------------------------------------------------------------------


class FakeClock:
    """Manually advanced epoch clock."""

    def __init__(self, now: int = 1_700_000_000):
        self.now = now

    def __call__(self) -> float:
        return float(self.now)

    def advance(self, seconds: int) -> int:
        self.now += seconds
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


# ---------------------------------------------------------------------------
# Log entry builders
# ---------------------------------------------------------------------------


def failed_login(ip: str, timestamp: int, hostname: str = "10.0.0.1") -> LogEntry:
    """A login-failure entry; the address lives in the ``%ip`` variable."""
    return LogEntry(
        severity=LogSeverity.NOTICE,
        type="user",
        timestamp=timestamp,
        message="Login attempt failed from %ip.",
        variables={"%ip": ip},
        hostname=hostname,
    )


def query_error(hostname: str, timestamp: int, message: str, variables: dict | None = None) -> LogEntry:
    """A PHP error entry attributed to *hostname*."""
    return LogEntry(
        severity=LogSeverity.ERROR,
        type="php",
        timestamp=timestamp,
        message=message,
        variables=variables,
        hostname=hostname,
    )


SQL_ERROR_TEMPLATE = "%type: @message in %function (line %line of %file)."


def sql_error(hostname: str, timestamp: int) -> LogEntry:
    return query_error(
        hostname,
        timestamp,
        SQL_ERROR_TEMPLATE,
        {
            "%type": "PDOException",
            "@message": "SQLSTATE[42000]: Syntax error: SELECT * FROM users WHERE name = ''' LIMIT 1",
            "%function": "execute()",
            "%line": 42,
            "%file": "db.php",
        },
    )


# ---------------------------------------------------------------------------
# Stub checks
# ---------------------------------------------------------------------------


class StubCheck(BaseCheck):
    """Check returning a fixed status; optionally raising instead."""

    def __init__(self, title: str, status: CheckStatus = CheckStatus.SUCCESS, findings=(), error=None, clock=None):
        super().__init__(clock=clock)
        self._title = title
        self.status = status
        self.findings = tuple(findings)
        self.error = error
        self.calls: list[CheckResult | None] = []

    def get_namespace(self) -> str:
        return "Test Suite"

    def get_title(self) -> str:
        return self._title

    def run(self, last_result):
        self.calls.append(last_result)
        if self.error is not None:
            raise self.error
        return self.create_result(self.status, self.findings)

    def help(self) -> HelpContent:
        return HelpContent(title=f"Help for {self._title}", paragraphs=("Stub check.",))

    def message(self, status) -> str:
        return f"{self._title} is {status}"


# ---------------------------------------------------------------------------
# Engine fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def log_store() -> InMemoryLogStore:
    return InMemoryLogStore()


@pytest.fixture
def policy() -> AuditPolicy:
    return AuditPolicy()


@pytest.fixture
def history() -> ResultHistoryStore:
    return ResultHistoryStore.in_memory()


@pytest.fixture
def skips() -> SkipStateStore:
    return SkipStateStore.in_memory()


@pytest.fixture
def checklist(history, skips, policy, clock) -> Checklist:
    return Checklist(history=history, skips=skips, policy=policy, clock=clock)


@pytest.fixture
def failed_logins(log_store, clock) -> FailedLoginsCheck:
    return FailedLoginsCheck(log_store, clock=clock)


@pytest.fixture
def query_errors(log_store, clock) -> QueryErrorsCheck:
    return QueryErrorsCheck(log_store, clock=clock)


@pytest.fixture
def audit_checklist(checklist, failed_logins, query_errors) -> Checklist:
    """Checklist with both built-in log checks registered."""
    checklist.register(failed_logins)
    checklist.register(query_errors)
    return checklist


# ---------------------------------------------------------------------------
# Factory fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def make_failed_login():
    """Factory fixture: ``make_failed_login(ip, timestamp)``."""
    return failed_login


@pytest.fixture
def make_query_error():
    """Factory fixture: ``make_query_error(hostname, timestamp, message, variables=None)``."""
    return query_error


@pytest.fixture
def make_sql_error():
    """Factory fixture: ``make_sql_error(hostname, timestamp)`` with a rendered SQL/SELECT message."""
    return sql_error


@pytest.fixture
def make_stub_check(clock):
    """Factory fixture for :class:`StubCheck` sharing the test clock."""

    def _make(title: str, status: CheckStatus = CheckStatus.SUCCESS, findings=(), error=None) -> StubCheck:
        return StubCheck(title, status=status, findings=findings, error=error, clock=clock)

    return _make
