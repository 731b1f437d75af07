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
Help page content for the checklist.

Pages are returned as plain dictionaries; rendering them is left to the
caller (API, CLI, templates).
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from .checklist import Checklist
from .exceptions import CheckNotFoundError

GENERAL_HELP_PARAGRAPHS = (
    "You should take the security of your site very seriously. The checks in this audit automate the detection "
    "of many easy-to-make mistakes and suspicious activity, however passing them does not make your site "
    "impenetrable.",
    "Log-based checks only look at events recorded since their previous run, so run the audit regularly and "
    "review every failure before it scrolls out of the window.",
    "Skipping a check removes it from the overall status without deleting its last result.",
)


def help_path(namespace: str, title: str) -> str:
    return f"/help/{namespace}/{title}"


def format_timestamp(timestamp: int) -> str:
    """Render an epoch timestamp as UTC for display."""
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S UTC")


def general_help(checklist: Checklist) -> dict[str, Any]:
    """Introductory page listing every check grouped by namespace."""
    namespaces: dict[str, dict[str, Any]] = {}
    for check in checklist.get_checks():
        group = namespaces.setdefault(
            check.get_machine_namespace(),
            {"namespace": check.get_namespace(), "checks": []},
        )
        group["checks"].append(
            {
                "title": check.get_title(),
                "namespace": check.get_machine_namespace(),
                "path": help_path(check.get_machine_namespace(), check.get_machine_title()),
            }
        )

    return {"paragraphs": list(GENERAL_HELP_PARAGRAPHS), "checks": namespaces}


def check_help(checklist: Checklist, namespace: str, title: str) -> dict[str, Any]:
    """
    Help page of a single check.

    Skipped checks show who skipped them and when; other checks show the
    evaluation of their last result, if any.

    Raises:
        CheckNotFoundError: If no such check is registered.
    """
    check = checklist.get_check(namespace, title)
    if check is None:
        raise CheckNotFoundError(namespace, title)

    page: dict[str, Any] = {
        "id": check.identity.key,
        "namespace": check.get_namespace(),
        "title": check.get_title(),
        "help": check.help().to_dict(),
        "skipped": False,
    }

    skip_state = checklist.skips.get(check.identity)
    if skip_state is not None:
        actor = skip_state.actor or "Anonymous"
        page["skipped"] = True
        page["skip_message"] = (
            f"Check marked for skipping on {format_timestamp(skip_state.skipped_on)} by {actor}"
        )
        return page

    last_result = checklist.last_result(check, skip_access_check=True)
    if last_result is not None:
        page["last_result"] = last_result.to_dict()
        page["message"] = check.message(last_result.status)
        page["evaluation"] = check.evaluate(last_result).to_dict()
    return page
