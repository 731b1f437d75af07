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
Data models for audit checks, their results and skip state.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any

_MACHINE_NAME_RE = re.compile(r"[^a-z0-9]+")


def machine_name(value: str) -> str:
    """Return the machine-safe form of a display name.

    ``"Security Review"`` and ``"security_review"`` both become
    ``"security_review"``.
    """
    return _MACHINE_NAME_RE.sub("_", value.strip().lower()).strip("_")


class CheckStatus(str, Enum):
    """Outcome of a single check run."""

    SUCCESS = "SUCCESS"
    FAIL = "FAIL"
    WARN = "WARN"
    INFO = "INFO"
    HIDE = "HIDE"


class AggregateStatus(str, Enum):
    """Worst-case summary over all reportable check results."""

    FAIL = "FAIL"
    WARN = "WARN"
    CLEAN = "CLEAN"


@dataclass(frozen=True, order=True)
class CheckIdentity:
    """Two-part key naming a check: machine namespace and machine title."""

    namespace: str
    title: str

    @classmethod
    def of(cls, namespace: str, title: str) -> CheckIdentity:
        """Build an identity from display or machine names."""
        return cls(machine_name(namespace), machine_name(title))

    @classmethod
    def from_key(cls, key: str) -> CheckIdentity:
        """Parse the ``namespace/title`` form used in persisted state."""
        namespace, sep, title = key.partition("/")
        if not sep or not namespace or not title:
            raise ValueError(f"Invalid check identity key: {key!r}")
        return cls(namespace, title)

    @property
    def key(self) -> str:
        return f"{self.namespace}/{self.title}"

    def __str__(self) -> str:
        return self.key


@dataclass(frozen=True)
class CheckResult:
    """A check's outcome at one point in time.

    ``time`` is the epoch second the check ran; the next run of the same
    check uses it as the inclusive lower bound of its log scan.
    """

    status: CheckStatus
    findings: tuple[str, ...] = ()
    time: int = 0

    def __post_init__(self):
        # Accept any iterable and the plain string form of the status
        object.__setattr__(self, "status", CheckStatus(self.status))
        object.__setattr__(self, "findings", tuple(self.findings))
        object.__setattr__(self, "time", int(self.time))

    @property
    def has_findings(self) -> bool:
        return bool(self.findings)

    def to_dict(self) -> dict[str, Any]:
        """Convert result to its persisted dictionary form."""
        return {
            "status": self.status.value,
            "findings": list(self.findings),
            "time": self.time,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CheckResult:
        """Rebuild a result from :meth:`to_dict` output."""
        return cls(
            status=CheckStatus(data["status"]),
            findings=tuple(str(f) for f in data.get("findings") or ()),
            time=int(data["time"]),
        )


@dataclass(frozen=True)
class SkipState:
    """Who excluded a check from reporting, and when.

    ``actor`` is ``None`` when the skip was recorded anonymously.
    """

    actor: str | None
    skipped_on: int

    def to_dict(self) -> dict[str, Any]:
        return {"actor": self.actor, "skipped_on": self.skipped_on}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SkipState:
        return cls(actor=data.get("actor"), skipped_on=int(data["skipped_on"]))


@dataclass(frozen=True)
class HelpContent:
    """Static explanatory content for a check."""

    title: str
    paragraphs: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {"title": self.title, "paragraphs": list(self.paragraphs)}


@dataclass(frozen=True)
class Evaluation:
    """Human-presentable evidence derived from a result's findings."""

    paragraphs: tuple[str, ...] = ()
    items: tuple[str, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.paragraphs and not self.items

    def to_dict(self) -> dict[str, Any]:
        return {"paragraphs": list(self.paragraphs), "items": list(self.items)}


@dataclass
class CheckOutcome:
    """What happened to one check during a batch run.

    A skipped check the policy keeps out of batch runs is still listed, with
    ``skipped`` set and neither a result nor an error.
    """

    identity: CheckIdentity
    namespace: str
    title: str
    result: CheckResult | None = None
    error: str | None = None
    skipped: bool = False

    @property
    def succeeded(self) -> bool:
        """True when the check produced a result and it was stored."""
        return self.result is not None and self.error is None

    @property
    def ran(self) -> bool:
        return self.result is not None or self.error is not None

    @property
    def reportable(self) -> bool:
        """False for a clean HIDE result, which summaries leave out."""
        return not (self.succeeded and self.result.status == CheckStatus.HIDE)

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.identity.key,
            "namespace": self.namespace,
            "title": self.title,
            "succeeded": self.succeeded,
            "skipped": self.skipped,
            "ran": self.ran,
            "result": self.result.to_dict() if self.result else None,
            "error": self.error,
        }


@dataclass
class BatchReport:
    """Results from running a set of checks.

    ``aggregate`` is None when the stored state could not be read to compute
    it; ``aggregate_error`` then holds the reason.
    """

    outcomes: list[CheckOutcome] = field(default_factory=list)
    aggregate: AggregateStatus | None = AggregateStatus.CLEAN
    aggregate_error: str | None = None
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def succeeded(self) -> list[CheckOutcome]:
        return [o for o in self.outcomes if o.succeeded]

    @property
    def failed(self) -> list[CheckOutcome]:
        """Checks whose run raised instead of producing a stored result."""
        return [o for o in self.outcomes if o.error is not None]

    @property
    def not_run(self) -> list[CheckOutcome]:
        return [o for o in self.outcomes if not o.ran]

    def get_outcome(self, identity: CheckIdentity) -> CheckOutcome | None:
        for outcome in self.outcomes:
            if outcome.identity == identity:
                return outcome
        return None

    def count_by_status(self) -> dict[str, int]:
        """Count produced results per status; HIDE results are not counted."""
        counts = {status.value: 0 for status in CheckStatus if status != CheckStatus.HIDE}
        for outcome in self.outcomes:
            if outcome.result is not None and outcome.result.status.value in counts:
                counts[outcome.result.status.value] += 1
        return counts

    def to_dict(self) -> dict[str, Any]:
        """Convert report to dictionary."""
        return {
            "summary": {
                "checks_run": len(self.outcomes) - len(self.not_run),
                "succeeded": len(self.succeeded),
                "failed": len(self.failed),
                "not_run": len(self.not_run),
                "aggregate_status": self.aggregate.value if self.aggregate else None,
                "aggregate_error": self.aggregate_error,
                "results_by_status": self.count_by_status(),
                "timestamp": self.timestamp.isoformat(),
            },
            "results": [outcome.to_dict() for outcome in self.outcomes],
        }
