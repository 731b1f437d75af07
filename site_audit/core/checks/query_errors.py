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
SQL probing detection: abundant query errors triggered from the same IP.
"""

from __future__ import annotations

from collections.abc import Iterable

from ...config.constants import SiteAuditConstants
from ..log_store import LogEntry, LogSeverity
from ..models import CheckStatus, HelpContent
from .log_anomaly import LogAnomalyCheck

QUERY_ERROR_TYPE = "php"

# Both markers must appear in the rendered message
SQL_MARKERS = ("SQL", "SELECT")


class QueryErrorsCheck(LogAnomalyCheck):
    """Flags IPs with more than ``threshold`` SQL errors since the last run.

    An unavailable log yields HIDE here, unlike :class:`FailedLoginsCheck`
    which reports INFO.
    """

    unavailable_status = CheckStatus.HIDE
    evaluation_intro = "The following IPs were observed with an abundance of query errors."

    def get_namespace(self) -> str:
        return SiteAuditConstants.SECURITY_REVIEW_NAMESPACE

    def get_title(self) -> str:
        return "Query errors"

    def select_entries(self, since: int | None) -> Iterable[LogEntry]:
        return self.log_store.select(type=QUERY_ERROR_TYPE, severity=LogSeverity.ERROR, since=since)

    def matches(self, entry: LogEntry) -> bool:
        message = entry.render()
        return all(marker in message for marker in SQL_MARKERS)

    def source_address(self, entry: LogEntry) -> str | None:
        return entry.hostname or None

    def help(self) -> HelpContent:
        return HelpContent(
            title="Abundant query errors from the same IP",
            paragraphs=(
                "Database errors triggered from the same IP may be an artifact of a malicious user attempting to "
                "probe the system for weaknesses like SQL injection or information disclosure.",
            ),
        )

    def message(self, status: CheckStatus | str) -> str:
        try:
            status = CheckStatus(status)
        except ValueError:
            return "Unexpected result."

        if status == CheckStatus.FAIL:
            return (
                "Query errors from the same IP. These may be a SQL injection attack or an attempt at "
                "information disclosure."
            )
        if status == CheckStatus.INFO:
            return "Event logging is not enabled."
        if status == CheckStatus.HIDE:
            return "No IP exceeded the query error limit since the last run."
        return "Unexpected result."
