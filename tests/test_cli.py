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
Tests for the command-line interface.
"""

import json
import os
from unittest.mock import patch

import pytest

from site_audit.cli.cli import build_parser, main
from site_audit.core.log_store import JsonLinesLogStore


@pytest.fixture(autouse=True)
def clean_env():
    env = {k: v for k, v in os.environ.items() if not k.startswith("SITE_AUDIT_")}
    with patch.dict("os.environ", env, clear=True):
        yield


@pytest.fixture
def state_args(tmp_path):
    """Flags pointing every store at the temporary directory."""
    return ["--history", str(tmp_path / "history.json"), "--skips", str(tmp_path / "skips.json")]


@pytest.fixture
def event_log(tmp_path, make_failed_login, make_sql_error):
    """JSON-lines event log with a brute-force burst and a SQL error burst."""
    path = tmp_path / "events.jsonl"
    store = JsonLinesLogStore(path)
    for i in range(11):
        store.append(make_failed_login("192.0.2.10", 1_000 + i))
    for i in range(12):
        store.append(make_sql_error("192.0.2.20", 2_000 + i))
    return path


class TestParser:
    def test_no_command(self, capsys):
        assert main([]) == 1

    def test_run_defaults(self):
        args = build_parser().parse_args(["run"])

        assert args.namespace is None
        assert args.format is None
        assert not args.fail_on_findings


class TestRunCommand:
    def test_run_json(self, capsys, state_args, event_log):
        exit_code = main(["run", "--log", str(event_log), "--format", "json", *state_args])

        assert exit_code == 0
        data = json.loads(capsys.readouterr().out)
        assert data["summary"]["aggregate_status"] == "FAIL"
        findings = {r["id"]: r["result"]["findings"] for r in data["results"]}
        assert findings == {
            "security_review/failed_logins": ["192.0.2.10"],
            "security_review/query_errors": ["192.0.2.20"],
        }

    def test_fail_on_findings(self, state_args, event_log):
        assert main(["run", "--log", str(event_log), "--fail-on-findings", *state_args]) == 1

    def test_second_run_only_sees_new_events(self, capsys, state_args, event_log):
        main(["run", "--log", str(event_log), *state_args])
        capsys.readouterr()

        main(["run", "--log", str(event_log), "--format", "json", *state_args])

        data = json.loads(capsys.readouterr().out)
        assert {r["result"]["status"] for r in data["results"]} == {"HIDE"}
        assert data["summary"]["aggregate_status"] == "CLEAN"

    def test_summary_without_log(self, capsys, state_args):
        assert main(["run", *state_args]) == 0

        out = capsys.readouterr().out
        assert "Overall status: CLEAN" in out
        assert "[INFO] Security Review: Failed logins - Event logging is not enabled." in out
        assert "Query errors" not in out

    def test_summary_lists_suspicious_ips(self, capsys, state_args, event_log):
        main(["run", "--log", str(event_log), *state_args])

        out = capsys.readouterr().out
        assert "Suspicious IP addresses:" in out
        assert "192.0.2.10" in out

    def test_markdown_to_file(self, tmp_path, state_args, event_log):
        output = tmp_path / "report.md"

        main(["run", "--log", str(event_log), "--format", "markdown", "-o", str(output), *state_args])

        content = output.read_text()
        assert "# Security Audit Report" in content
        assert "`192.0.2.10`" in content

    def test_unknown_namespace(self, capsys, state_args):
        assert main(["run", "--namespace", "Nothing", *state_args]) == 1
        assert "No checks registered" in capsys.readouterr().err


class TestRunCheckCommand:
    def test_single_check(self, capsys, state_args, event_log):
        exit_code = main(["run-check", "security_review", "query_errors", "--log", str(event_log), *state_args])

        out = capsys.readouterr().out
        assert exit_code == 0
        assert out.startswith("[FAIL] Security Review: Query errors")
        assert "192.0.2.20" in out

    def test_unknown_check(self, capsys, state_args):
        assert main(["run-check", "security_review", "nope", *state_args]) == 1
        assert "nope" in capsys.readouterr().err


class TestSkipCommands:
    def test_skip_clears_status(self, capsys, state_args, event_log):
        main(["run", "--log", str(event_log), *state_args])
        assert main(["status", "--fail-on-findings", *state_args]) == 1

        assert main(["skip", "security_review", "failed_logins", "--actor", "admin", *state_args]) == 0
        assert main(["skip", "security_review", "query_errors", *state_args]) == 0
        capsys.readouterr()

        assert main(["status", "--fail-on-findings", *state_args]) == 0
        assert "Overall status: CLEAN" in capsys.readouterr().out

        main(["unskip", "security_review", "query_errors", *state_args])
        assert main(["status", "--fail-on-findings", *state_args]) == 1

    def test_skip_actor_from_env(self, capsys, state_args):
        with patch.dict("os.environ", {"SITE_AUDIT_ACTOR": "ops"}):
            main(["skip", "security_review", "failed_logins", *state_args])

        assert capsys.readouterr().out.rstrip().endswith("by ops")

    def test_list_checks(self, capsys, state_args):
        main(["skip", "security_review", "query_errors", *state_args])
        capsys.readouterr()

        main(["list-checks", "--format", "json", *state_args])

        rows = {r["id"]: r for r in json.loads(capsys.readouterr().out)["checks"]}
        assert rows["security_review/query_errors"]["skipped"] is True
        assert rows["security_review/failed_logins"]["last_status"] is None


class TestHelpCommand:
    def test_general_help(self, capsys, state_args):
        assert main(["help", *state_args]) == 0

        out = capsys.readouterr().out
        assert "Security Review:" in out
        assert "/help/security_review/failed_logins" in out

    def test_check_help(self, capsys, state_args):
        assert main(["help", "security_review", "failed_logins", *state_args]) == 0

        assert "Abundant failed logins from the same IP" in capsys.readouterr().out

    def test_namespace_without_title(self, state_args):
        assert main(["help", "security_review", *state_args]) == 1
