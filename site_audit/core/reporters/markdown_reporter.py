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
Markdown format reporter for audit runs.
"""

from __future__ import annotations

from ..checklist import Checklist
from ..models import AggregateStatus, BatchReport, CheckOutcome, CheckStatus


class MarkdownReporter:
    """Generates Markdown format reports."""

    def __init__(self, checklist: Checklist | None = None, detailed: bool = True):
        """
        Initialize Markdown reporter.

        Args:
            checklist: Used to look up each check's status message and
                evidence.  Without it only raw results are shown.
            detailed: If True, list the evidence of every result
        """
        self.checklist = checklist
        self.detailed = detailed

    def generate_report(self, report: BatchReport) -> str:
        lines = []

        lines.append("# Security Audit Report")
        lines.append("")
        lines.append(f"**Overall Status:** {self._status_label(report)}")
        lines.append(f"**Timestamp:** {report.timestamp.isoformat()}")
        lines.append("")

        lines.append("## Summary")
        lines.append("")
        lines.append(f"- **Checks Run:** {len(report.outcomes) - len(report.not_run)}")
        lines.append(f"- **Completed:** {len(report.succeeded)}")
        lines.append(f"- **Errored:** {len(report.failed)}")
        if report.not_run:
            lines.append(f"- **Not Run (skipped):** {len(report.not_run)}")
        for status, count in report.count_by_status().items():
            if count:
                lines.append(f"- **{status.title()}:** {count}")
        lines.append("")

        lines.append("## Results")
        lines.append("")
        for outcome in report.outcomes:
            if not outcome.reportable:
                continue
            lines.extend(self._format_outcome(outcome))
            lines.append("")

        return "\n".join(lines)

    @staticmethod
    def _status_label(report: BatchReport) -> str:
        if report.aggregate is None:
            return f"[UNKNOWN] {report.aggregate_error}"
        if report.aggregate == AggregateStatus.CLEAN:
            return "[OK] CLEAN"
        return f"[{report.aggregate.value}]"

    def _format_outcome(self, outcome: CheckOutcome) -> list[str]:
        lines = [f"### {outcome.namespace}: {outcome.title}", ""]
        if outcome.skipped:
            lines.append("*Skipped - excluded from the overall status.*")
            lines.append("")

        if not outcome.ran:
            lines.append("**Status:** not run")
            return lines

        if outcome.result is None:
            lines.append(f"**Error:** {outcome.error}")
            return lines

        lines.append(f"**Status:** {outcome.result.status.value}")
        if outcome.error:
            lines.append(f"**Warning:** {outcome.error}")

        check = self._lookup(outcome)
        if check is not None:
            lines.append(f"**Message:** {check.message(outcome.result.status)}")

        if self.detailed and outcome.result.findings and outcome.result.status != CheckStatus.HIDE:
            lines.append("")
            if check is not None:
                lines.extend(check.evaluate(outcome.result).paragraphs)
                lines.append("")
            for finding in outcome.result.findings:
                lines.append(f"- `{finding}`")
        return lines

    def _lookup(self, outcome: CheckOutcome):
        if self.checklist is None:
            return None
        return self.checklist.get_check(outcome.identity.namespace, outcome.identity.title)
