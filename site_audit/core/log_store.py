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
Application event log consumed by the log-anomaly checks.

Entries keep their message as an unsubstituted template plus a variables
mapping, so checks can match on the template and still inspect the
rendered text.
"""

from __future__ import annotations

import json
import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass
from enum import IntEnum
from pathlib import Path
from typing import Any

from .exceptions import LogStoreError

logger = logging.getLogger(__name__)

# Placeholder prefixes recognised in message templates
_PLACEHOLDER_PREFIXES = ("%", "@", "!", ":")


class LogSeverity(IntEnum):
    """RFC 5424 severity levels."""

    EMERGENCY = 0
    ALERT = 1
    CRITICAL = 2
    ERROR = 3
    WARNING = 4
    NOTICE = 5
    INFO = 6
    DEBUG = 7

    @classmethod
    def parse(cls, value: int | str) -> LogSeverity:
        """Accept either the numeric level or its (case-insensitive) name."""
        if isinstance(value, str) and not value.isdigit():
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise ValueError(f"Unknown log severity: {value!r}") from None
        return cls(int(value))


def render_message(template: str, variables: Mapping[str, Any] | None) -> str:
    """Substitute placeholder values into a message template.

    Keys are used verbatim (``"%ip"``, ``"@name"``...).  Longer keys are
    replaced first so ``%ip`` never clobbers ``%ipv6``.
    """
    if not variables:
        return template
    message = template
    for key in sorted(variables, key=len, reverse=True):
        if not key.startswith(_PLACEHOLDER_PREFIXES):
            continue
        message = message.replace(key, str(variables[key]))
    return message


@dataclass(frozen=True)
class LogEntry:
    """A single event log record."""

    severity: LogSeverity
    type: str
    timestamp: int
    message: str
    variables: Mapping[str, Any] | None = None
    hostname: str = ""

    def render(self) -> str:
        """Return the message with its variables substituted."""
        if self.variables is None:
            return self.message
        return render_message(self.message, self.variables)

    def to_dict(self) -> dict[str, Any]:
        return {
            "severity": int(self.severity),
            "type": self.type,
            "timestamp": self.timestamp,
            "message": self.message,
            "variables": dict(self.variables) if self.variables is not None else None,
            "hostname": self.hostname,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> LogEntry:
        variables = data.get("variables")
        if variables is not None and not isinstance(variables, Mapping):
            raise ValueError("variables must be an object or null")
        return cls(
            severity=LogSeverity.parse(data["severity"]),
            type=str(data["type"]),
            timestamp=int(data["timestamp"]),
            message=str(data["message"]),
            variables=dict(variables) if variables is not None else None,
            hostname=str(data.get("hostname") or ""),
        )


class LogStore(ABC):
    """Append-only event log queried by the log-anomaly checks."""

    @abstractmethod
    def is_available(self) -> bool:
        """Return False when the logging facility is disabled or missing."""
        pass

    @abstractmethod
    def entries(self) -> Iterable[LogEntry]:
        """Return every stored entry in insertion order."""
        pass

    def select(
        self,
        type: str,
        severity: LogSeverity,
        message: str | None = None,
        since: int | None = None,
    ) -> list[LogEntry]:
        """
        Select entries by exact type and severity.

        Args:
            type: Event type to match exactly
            severity: Severity to match exactly
            message: Optional message template to match exactly
            since: Optional inclusive lower bound on the entry timestamp

        Returns:
            Matching entries ordered by timestamp (ties keep insertion order)
        """
        matched = [
            entry
            for entry in self.entries()
            if entry.type == type
            and entry.severity == severity
            and (message is None or entry.message == message)
            and (since is None or entry.timestamp >= since)
        ]
        matched.sort(key=lambda e: e.timestamp)
        return matched


class InMemoryLogStore(LogStore):
    """Log store held in process memory; mostly used by tests and embedders."""

    def __init__(self, entries: Iterable[LogEntry] | None = None, available: bool = True):
        self._entries: list[LogEntry] = list(entries or [])
        self._lock = threading.Lock()
        self.available = available

    def is_available(self) -> bool:
        return self.available

    def append(self, entry: LogEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def extend(self, entries: Iterable[LogEntry]) -> None:
        with self._lock:
            self._entries.extend(entries)

    def entries(self) -> list[LogEntry]:
        with self._lock:
            return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)


class JsonLinesLogStore(LogStore):
    """Log store backed by a JSON-lines file, one entry per line.

    The store reports itself unavailable while the file does not exist.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def is_available(self) -> bool:
        return self.path.is_file()

    def entries(self) -> Iterator[LogEntry]:
        try:
            fh = open(self.path, encoding="utf-8")
        except OSError as exc:
            raise LogStoreError(f"Cannot open event log {self.path}: {exc}") from exc
        with fh:
            for line_no, line in enumerate(fh, start=1):
                line = line.strip()
                if not line:
                    continue
                try:
                    yield LogEntry.from_dict(json.loads(line))
                except (ValueError, KeyError, TypeError) as exc:
                    raise LogStoreError(f"Malformed log entry at {self.path}:{line_no}: {exc}") from exc

    def append(self, entry: LogEntry) -> None:
        """Append one entry to the file, creating it if needed."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.path, "a", encoding="utf-8") as fh:
            fh.write(json.dumps(entry.to_dict()) + "\n")
