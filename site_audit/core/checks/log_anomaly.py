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
Incremental log-anomaly checks.

A log-anomaly check counts the log entries matching its signature per
source address, over the window since its previous run, and reports every
address whose count exceeds a threshold.
"""

from __future__ import annotations

import logging
from abc import abstractmethod
from collections.abc import Callable, Iterable

from ...config.constants import SiteAuditConstants
from ..log_store import LogEntry, LogStore
from ..models import CheckResult, CheckStatus, Evaluation
from .base import BaseCheck

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = SiteAuditConstants.DEFAULT_ANOMALY_THRESHOLD


def count_by_source(
    entries: Iterable[LogEntry],
    source_of: Callable[[LogEntry], str | None],
    matches: Callable[[LogEntry], bool] | None = None,
) -> dict[str, int]:
    """
    Count matching entries per source address.

    Each entry is visited once.  Entries rejected by *matches* or without a
    source address are not counted.

    Returns:
        Mapping of source address to count, in first-seen order
    """
    counts: dict[str, int] = {}
    for entry in entries:
        if matches is not None and not matches(entry):
            continue
        source = source_of(entry)
        if not source:
            logger.debug("Ignoring %s entry at %s without a source address", entry.type, entry.timestamp)
            continue
        counts[source] = counts.get(source, 0) + 1
    return counts


def sources_over_threshold(counts: dict[str, int], threshold: int) -> list[str]:
    """Return the sources whose count is strictly greater than *threshold*."""
    return [source for source, count in counts.items() if count > threshold]


class LogAnomalyCheck(BaseCheck):
    """Base for checks that flag sources with too many matching log events.

    Subclasses choose the status reported when the log is unavailable through
    ``unavailable_status``; it is deliberately not shared.
    """

    unavailable_status: CheckStatus = CheckStatus.INFO

    # Lead-in shown above the flagged addresses
    evaluation_intro: str = "The following IPs were observed with an abundance of suspicious events."

    def __init__(
        self,
        log_store: LogStore,
        threshold: int = DEFAULT_THRESHOLD,
        clock: Callable[[], float] | None = None,
    ):
        super().__init__(clock=clock)
        self.log_store = log_store
        self.threshold = threshold

    @abstractmethod
    def select_entries(self, since: int | None) -> Iterable[LogEntry]:
        """Query the log for candidate entries recorded at or after *since*."""
        pass

    @abstractmethod
    def source_address(self, entry: LogEntry) -> str | None:
        """Extract the grouping key of *entry*."""
        pass

    def matches(self, entry: LogEntry) -> bool:
        """Extra filter applied after the query; accepts everything by default."""
        return True

    def run(self, last_result: CheckResult | None) -> CheckResult:
        if not self.log_store.is_available():
            return self.create_result(self.unavailable_status)

        # Only look at entries recorded since the last run
        since = last_result.time if last_result is not None else None

        counts = count_by_source(self.select_entries(since), self.source_address, self.matches)
        findings = sources_over_threshold(counts, self.threshold)
        logger.debug(
            "%s: %d sources seen since %s, %d over threshold %d",
            self.identity,
            len(counts),
            since,
            len(findings),
            self.threshold,
        )

        if findings:
            return self.create_result(CheckStatus.FAIL, findings)
        return self.create_result(CheckStatus.HIDE)

    def evaluate(self, result: CheckResult) -> Evaluation:
        if not result.findings:
            return Evaluation()
        return Evaluation(paragraphs=(self.evaluation_intro,), items=result.findings)

    def evaluate_plain(self, result: CheckResult) -> str:
        if not result.findings:
            return ""
        output = "Suspicious IP addresses:\n"
        for ip in result.findings:
            output += f"\t{ip}\n"
        return output
