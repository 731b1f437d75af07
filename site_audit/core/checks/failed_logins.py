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
Brute-force detection: abundant failed logins from the same IP.
"""

from __future__ import annotations

from collections.abc import Iterable

from ...config.constants import SiteAuditConstants
from ..log_store import LogEntry, LogSeverity
from ..models import CheckStatus, HelpContent
from .log_anomaly import LogAnomalyCheck

LOGIN_FAILED_TYPE = "user"
LOGIN_FAILED_MESSAGE = "Login attempt failed from %ip."


class FailedLoginsCheck(LogAnomalyCheck):
    """Flags IPs with more than ``threshold`` failed logins since the last run."""

    unavailable_status = CheckStatus.INFO
    evaluation_intro = "The following IPs were observed with an abundance of failed login attempts."

    def get_namespace(self) -> str:
        return SiteAuditConstants.SECURITY_REVIEW_NAMESPACE

    def get_title(self) -> str:
        return "Failed logins"

    def select_entries(self, since: int | None) -> Iterable[LogEntry]:
        return self.log_store.select(
            type=LOGIN_FAILED_TYPE,
            severity=LogSeverity.NOTICE,
            message=LOGIN_FAILED_MESSAGE,
            since=since,
        )

    def source_address(self, entry: LogEntry) -> str | None:
        # The address is a structured parameter of the message
        ip = (entry.variables or {}).get("%ip")
        return str(ip) if ip else None

    def help(self) -> HelpContent:
        return HelpContent(
            title="Abundant failed logins from the same IP",
            paragraphs=(
                "Failed login attempts from the same IP may be an artifact of a malicious user attempting to "
                "brute-force their way onto your site as an authenticated user to carry out nefarious deeds.",
            ),
        )

    def message(self, status: CheckStatus | str) -> str:
        try:
            status = CheckStatus(status)
        except ValueError:
            return "Unexpected result."

        if status == CheckStatus.FAIL:
            return (
                "Failed login attempts from the same IP. These may be a brute-force attack to gain access to your site."
            )
        if status == CheckStatus.INFO:
            return "Event logging is not enabled."
        if status == CheckStatus.HIDE:
            return "No IP exceeded the failed login limit since the last run."
        return "Unexpected result."
