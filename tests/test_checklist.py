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
Tests for the checklist registry and execution driver.
"""

import threading

import pytest

from site_audit.core.audit_policy import AuditPolicy
from site_audit.core.checklist import Checklist
from site_audit.core.exceptions import DuplicateIdentityError, ResultPersistenceError, StoreError
from site_audit.core.models import AggregateStatus, CheckIdentity, CheckResult, CheckStatus
from site_audit.core.stores import MemoryBackend, ResultHistoryStore, SkipStateStore


class FailingBackend(MemoryBackend):
    """Memory backend whose writes fail."""

    def save(self, key, record):
        raise StoreError("disk full")


class UnreachableBackend(MemoryBackend):
    """Memory backend whose reads fail."""

    def load(self, key):
        raise StoreError("skip store unreachable")


class TestRegistry:
    def test_duplicate_identity_rejected(self, checklist, make_stub_check):
        checklist.register(make_stub_check("Alpha"))

        with pytest.raises(DuplicateIdentityError) as exc_info:
            checklist.register(make_stub_check("Alpha"))

        assert exc_info.value.identity == CheckIdentity("test_suite", "alpha")
        assert len(checklist) == 1

    def test_duplicate_after_normalisation_rejected(self, checklist, make_stub_check):
        checklist.register(make_stub_check("Open ports"))

        with pytest.raises(DuplicateIdentityError):
            checklist.register(make_stub_check("open_ports"))

    def test_same_namespace_different_titles(self, checklist, make_stub_check):
        alpha = checklist.register(make_stub_check("Alpha"))
        beta = checklist.register(make_stub_check("Beta"))

        assert checklist.get_check("test_suite", "alpha") is alpha
        assert checklist.get_check("Test Suite", "Beta") is beta

    def test_lookup_miss_returns_none(self, checklist, make_stub_check):
        checklist.register(make_stub_check("Alpha"))

        assert checklist.get_check("test_suite", "gamma") is None
        assert checklist.get_check("other", "alpha") is None

    def test_get_checks_is_ordered_and_restartable(self, checklist, make_stub_check):
        titles = ["Zulu", "Alpha", "Mike"]
        for title in titles:
            checklist.register(make_stub_check(title))

        checks = checklist.get_checks()

        assert [c.get_title() for c in checks] == titles
        assert [c.get_title() for c in checks] == titles

    def test_constructor_registers_checks(self, history, skips, policy, make_stub_check):
        checklist = Checklist(history, skips, policy, checks=[make_stub_check("A"), make_stub_check("B")])

        assert len(checklist) == 2

    def test_namespace_filter(self, audit_checklist, make_stub_check):
        audit_checklist.register(make_stub_check("Alpha"))

        titles = [c.get_title() for c in audit_checklist.get_namespace_checks("Security Review")]

        assert titles == ["Failed logins", "Query errors"]


class TestRunCheck:
    def test_result_stored(self, checklist, make_stub_check):
        check = checklist.register(make_stub_check("Alpha", CheckStatus.WARN, ["x"]))

        result = checklist.run_check(check)

        assert checklist.last_result(check) == result
        assert checklist.history.get(check.identity) == result

    def test_previous_result_passed_to_run(self, checklist, make_stub_check, clock):
        check = checklist.register(make_stub_check("Alpha"))

        first = checklist.run_check(check)
        clock.advance(10)
        checklist.run_check(check)

        assert check.calls == [None, first]

    def test_history_overwritten(self, checklist, make_stub_check, clock):
        check = checklist.register(make_stub_check("Alpha", CheckStatus.FAIL, ["a"]))
        first = checklist.run_check(check)

        clock.advance(60)
        check.status = CheckStatus.SUCCESS
        check.findings = ()
        second = checklist.run_check(check)

        assert first != second
        assert checklist.last_result(check) == second
        assert list(checklist.history.all().values()) == [second]

    def test_last_result_none_before_first_run(self, checklist, make_stub_check):
        check = checklist.register(make_stub_check("Alpha"))

        assert checklist.last_result(check) is None
        assert checklist.last_result(check, skip_access_check=True) is None

    def test_persistence_failure_returns_result(self, skips, policy, make_stub_check):
        checklist = Checklist(ResultHistoryStore(FailingBackend()), skips, policy)
        check = checklist.register(make_stub_check("Alpha", CheckStatus.FAIL, ["10.0.0.1"]))

        with pytest.raises(ResultPersistenceError) as exc_info:
            checklist.run_check(check)

        assert exc_info.value.result.status == CheckStatus.FAIL
        assert exc_info.value.result.findings == ("10.0.0.1",)
        assert isinstance(exc_info.value, StoreError)

    def test_concurrent_runs_of_same_check_serialised(self, checklist, make_stub_check):
        check = checklist.register(make_stub_check("Alpha"))
        active = []
        overlaps = []
        original_run = check.run

        def slow_run(last_result):
            active.append(1)
            if len(active) > 1:
                overlaps.append(True)
            result = original_run(last_result)
            active.pop()
            return result

        check.run = slow_run
        threads = [threading.Thread(target=checklist.run_check, args=(check,)) for _ in range(8)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert overlaps == []
        assert len(check.calls) == 8


class TestBatch:
    def test_fault_isolation(self, checklist, make_stub_check):
        first = checklist.register(make_stub_check("First", CheckStatus.SUCCESS))
        second = checklist.register(make_stub_check("Second", error=RuntimeError("boom")))
        third = checklist.register(make_stub_check("Third", CheckStatus.WARN))

        report = checklist.run_all()

        assert [o.identity for o in report.succeeded] == [first.identity, third.identity]
        assert [o.identity for o in report.failed] == [second.identity]
        assert "boom" in report.get_outcome(second.identity).error
        assert checklist.last_result(first) is not None
        assert checklist.last_result(second) is None
        assert checklist.last_result(third).status == CheckStatus.WARN

    def test_run_namespace(self, audit_checklist, make_stub_check):
        stub = audit_checklist.register(make_stub_check("Alpha"))

        report = audit_checklist.run_namespace("security_review")

        assert len(report.outcomes) == 2
        assert audit_checklist.last_result(stub) is None

    def test_report_carries_aggregate(self, checklist, make_stub_check):
        checklist.register(make_stub_check("Alpha", CheckStatus.FAIL, ["x"]))

        assert checklist.run_all().aggregate == AggregateStatus.FAIL

    def test_persistence_failure_reported(self, skips, policy, make_stub_check):
        checklist = Checklist(ResultHistoryStore(FailingBackend()), skips, policy)
        check = checklist.register(make_stub_check("Alpha"))

        report = checklist.run_all()
        outcome = report.get_outcome(check.identity)

        assert outcome.result is not None
        assert "disk full" in outcome.error
        assert report.failed == [outcome]

    def test_skipped_checks_run_by_default(self, checklist, make_stub_check):
        check = checklist.register(make_stub_check("Alpha"))
        checklist.skip(check, actor="admin")

        report = checklist.run_all()

        assert report.get_outcome(check.identity).skipped
        assert len(check.calls) == 1

    def test_policy_can_leave_skipped_checks_out(self, history, skips, make_stub_check):
        checklist = Checklist(history, skips, AuditPolicy(run_skipped_checks=False))
        check = checklist.register(make_stub_check("Alpha"))
        other = checklist.register(make_stub_check("Beta"))
        checklist.skip(check)

        report = checklist.run_all()
        outcome = report.get_outcome(check.identity)

        assert check.calls == []
        assert [o.identity for o in report.outcomes] == [check.identity, other.identity]
        assert outcome.skipped
        assert outcome.result is None and outcome.error is None
        assert report.not_run == [outcome]
        assert report.failed == []

    def test_unreadable_skip_store_still_returns_report(self, history, policy, make_stub_check):
        checklist = Checklist(history, SkipStateStore(UnreachableBackend()), policy)
        first = checklist.register(make_stub_check("First"))
        second = checklist.register(make_stub_check("Second"))

        report = checklist.run_all()

        assert [o.identity for o in report.failed] == [first.identity, second.identity]
        assert all("skip store unreachable" in o.error for o in report.failed)
        assert report.aggregate is None
        assert "skip store unreachable" in report.aggregate_error
        assert report.to_dict()["summary"]["aggregate_status"] is None


class TestSkip:
    def test_skip_keeps_history(self, checklist, make_stub_check):
        check = checklist.register(make_stub_check("Alpha", CheckStatus.FAIL, ["x"]))
        result = checklist.run_check(check)

        checklist.skip(check, actor="admin", timestamp=123)

        assert checklist.history.get(check.identity) == result
        assert checklist.last_result(check) is None
        assert checklist.last_result(check, skip_access_check=True) == result

    def test_run_check_unaffected_by_skip(self, checklist, make_stub_check):
        check = checklist.register(make_stub_check("Alpha", CheckStatus.FAIL, ["x"]))
        checklist.skip(check)

        result = checklist.run_check(check)

        assert result.status == CheckStatus.FAIL
        assert checklist.last_result(check, skip_access_check=True) == result
        assert checklist.is_skipped(check)

    def test_skipped_fail_excluded_from_aggregate(self, checklist, make_stub_check):
        check = checklist.register(make_stub_check("Alpha", CheckStatus.FAIL, ["x"]))
        checklist.run_check(check)
        assert checklist.aggregate_status() == AggregateStatus.FAIL

        checklist.skip(check, actor="admin")

        assert checklist.aggregate_status() == AggregateStatus.CLEAN
        assert checklist.last_result(check, skip_access_check=True).status == CheckStatus.FAIL

        checklist.unskip(check)
        assert checklist.aggregate_status() == AggregateStatus.FAIL

    def test_skip_metadata(self, checklist, make_stub_check, clock):
        check = checklist.register(make_stub_check("Alpha"))

        checklist.skip(check, actor="admin")

        assert checklist.skipped_by(check) == "admin"
        assert checklist.skipped_on(check) == clock.now
        assert checklist.get_skipped_checks() == [check]
        assert checklist.get_enabled_checks() == []

    def test_unskip_not_skipped_is_noop(self, checklist, make_stub_check):
        check = checklist.register(make_stub_check("Alpha"))

        checklist.unskip(check)

        assert not checklist.is_skipped(check)
        assert checklist.skipped_by(check) is None
        assert checklist.skipped_on(check) is None


class TestAggregate:
    def test_empty_is_clean(self, checklist):
        assert checklist.aggregate_status() == AggregateStatus.CLEAN

    def test_never_run_checks_ignored(self, checklist, make_stub_check):
        checklist.register(make_stub_check("Alpha"))

        assert checklist.aggregate_status() == AggregateStatus.CLEAN

    def test_fail_dominates_warn(self, checklist, make_stub_check):
        checklist.register(make_stub_check("Alpha", CheckStatus.WARN))
        checklist.register(make_stub_check("Beta", CheckStatus.FAIL, ["x"]))
        checklist.register(make_stub_check("Gamma", CheckStatus.SUCCESS))
        checklist.run_all()

        assert checklist.aggregate_status() == AggregateStatus.FAIL

    def test_warn_without_fail(self, checklist, make_stub_check):
        checklist.register(make_stub_check("Alpha", CheckStatus.WARN))
        checklist.register(make_stub_check("Beta", CheckStatus.SUCCESS))
        checklist.run_all()

        assert checklist.aggregate_status() == AggregateStatus.WARN

    def test_hide_and_info_excluded(self, checklist, make_stub_check):
        checklist.register(make_stub_check("Alpha", CheckStatus.HIDE))
        checklist.register(make_stub_check("Beta", CheckStatus.INFO))
        checklist.run_all()

        assert checklist.aggregate_status() == AggregateStatus.CLEAN

    def test_precedence_without_warn(self, history, skips, make_stub_check):
        checklist = Checklist(history, skips, AuditPolicy(aggregate_precedence=[CheckStatus.FAIL]))
        checklist.register(make_stub_check("Alpha", CheckStatus.WARN))
        checklist.run_all()

        assert checklist.aggregate_status() == AggregateStatus.CLEAN

    def test_stored_history_survives_new_checklist(self, history, skips, policy, make_stub_check):
        first = Checklist(history, skips, policy)
        first.register(make_stub_check("Alpha", CheckStatus.FAIL, ["x"]))
        first.run_all()

        second = Checklist(history, skips, policy, checks=[make_stub_check("Alpha")])

        assert second.aggregate_status() == AggregateStatus.FAIL
        assert second.last_result(second.get_check("test_suite", "alpha")) == CheckResult(
            CheckStatus.FAIL, ("x",), time=history.get(CheckIdentity("test_suite", "alpha")).time
        )
