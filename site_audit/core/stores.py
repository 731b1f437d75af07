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
Persistence for check state: the most recent result per check and the
per-check skip flag.

Both stores are keyed by :class:`CheckIdentity` and delegate raw storage to
a :class:`StateBackend`.  Two backends ship with the package: a process-local
dictionary and a JSON file rewritten atomically on every change.  Every
backend operation is applied whole or not at all, so concurrent readers never
see a half-written record.
"""

from __future__ import annotations

import copy
import json
import logging
import os
import tempfile
import threading
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any

from .exceptions import StoreError
from .models import CheckIdentity, CheckResult, SkipState

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Backends
# ---------------------------------------------------------------------------


class StateBackend(ABC):
    """Key/record storage; records are JSON-compatible dictionaries."""

    @abstractmethod
    def load(self, key: str) -> dict[str, Any] | None:
        pass

    @abstractmethod
    def save(self, key: str, record: dict[str, Any]) -> None:
        pass

    @abstractmethod
    def remove(self, key: str) -> bool:
        """Delete *key*; return False if it was not present."""
        pass

    @abstractmethod
    def items(self) -> dict[str, dict[str, Any]]:
        pass

    @abstractmethod
    def clear(self) -> None:
        pass


class MemoryBackend(StateBackend):
    """Process-local backend; state lives as long as the instance."""

    def __init__(self) -> None:
        self._data: dict[str, dict[str, Any]] = {}
        self._lock = threading.Lock()

    def load(self, key: str) -> dict[str, Any] | None:
        with self._lock:
            record = self._data.get(key)
            return copy.deepcopy(record) if record is not None else None

    def save(self, key: str, record: dict[str, Any]) -> None:
        with self._lock:
            self._data[key] = copy.deepcopy(record)

    def remove(self, key: str) -> bool:
        with self._lock:
            return self._data.pop(key, None) is not None

    def items(self) -> dict[str, dict[str, Any]]:
        with self._lock:
            return copy.deepcopy(self._data)

    def clear(self) -> None:
        with self._lock:
            self._data.clear()


class JsonFileBackend(StateBackend):
    """Backend persisting all records in a single JSON object on disk.

    A missing file reads as empty.  Writes go to a temporary file in the same
    directory that then replaces the original.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = threading.RLock()

    def _read(self) -> dict[str, dict[str, Any]]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, encoding="utf-8") as fh:
                data = json.load(fh)
        except (OSError, ValueError) as exc:
            raise StoreError(f"Cannot read state file {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StoreError(f"State file {self.path} does not contain a JSON object")
        return data

    def _write(self, data: dict[str, dict[str, Any]]) -> None:
        tmp_name = None
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=self.path.parent)
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(data, fh, indent=2, sort_keys=True)
            os.replace(tmp_name, self.path)
        except OSError as exc:
            if tmp_name and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise StoreError(f"Cannot write state file {self.path}: {exc}") from exc

    def load(self, key: str) -> dict[str, Any] | None:
        with self._lock:
            return self._read().get(key)

    def save(self, key: str, record: dict[str, Any]) -> None:
        with self._lock:
            data = self._read()
            data[key] = record
            self._write(data)

    def remove(self, key: str) -> bool:
        with self._lock:
            data = self._read()
            if key not in data:
                return False
            del data[key]
            self._write(data)
            return True

    def items(self) -> dict[str, dict[str, Any]]:
        with self._lock:
            return self._read()

    def clear(self) -> None:
        with self._lock:
            self._write({})


# ---------------------------------------------------------------------------
# Stores
# ---------------------------------------------------------------------------


class ResultHistoryStore:
    """Most recent :class:`CheckResult` per check identity.

    History depth is one: :meth:`put` replaces whatever was stored before.
    """

    def __init__(self, backend: StateBackend | None = None):
        self.backend = backend or MemoryBackend()

    @classmethod
    def in_memory(cls) -> ResultHistoryStore:
        return cls(MemoryBackend())

    @classmethod
    def json_file(cls, path: str | Path) -> ResultHistoryStore:
        return cls(JsonFileBackend(path))

    def get(self, identity: CheckIdentity) -> CheckResult | None:
        record = self.backend.load(identity.key)
        if record is None:
            return None
        try:
            return CheckResult.from_dict(record)
        except (KeyError, ValueError, TypeError) as exc:
            raise StoreError(f"Corrupt history record for '{identity}': {exc}") from exc

    def put(self, identity: CheckIdentity, result: CheckResult) -> None:
        self.backend.save(identity.key, result.to_dict())

    def delete(self, identity: CheckIdentity) -> bool:
        return self.backend.remove(identity.key)

    def all(self) -> dict[CheckIdentity, CheckResult]:
        return {CheckIdentity.from_key(k): CheckResult.from_dict(v) for k, v in self.backend.items().items()}

    def clear(self) -> None:
        self.backend.clear()


class SkipStateStore:
    """Per-check skip flags with the acting principal and timestamp.

    Absence of a record means the check is not skipped.
    """

    def __init__(self, backend: StateBackend | None = None):
        self.backend = backend or MemoryBackend()

    @classmethod
    def in_memory(cls) -> SkipStateStore:
        return cls(MemoryBackend())

    @classmethod
    def json_file(cls, path: str | Path) -> SkipStateStore:
        return cls(JsonFileBackend(path))

    def get(self, identity: CheckIdentity) -> SkipState | None:
        record = self.backend.load(identity.key)
        if record is None:
            return None
        try:
            return SkipState.from_dict(record)
        except (KeyError, ValueError, TypeError) as exc:
            raise StoreError(f"Corrupt skip record for '{identity}': {exc}") from exc

    def mark_skipped(self, identity: CheckIdentity, actor: str | None, timestamp: int | None = None) -> SkipState:
        """Mark *identity* skipped; re-marking updates actor and timestamp."""
        state = SkipState(actor=actor, skipped_on=int(timestamp if timestamp is not None else time.time()))
        self.backend.save(identity.key, state.to_dict())
        logger.info("Check %s marked skipped by %s", identity, actor or "anonymous")
        return state

    def unmark(self, identity: CheckIdentity) -> None:
        """Clear the skip flag; a no-op when the check is not skipped."""
        if self.backend.remove(identity.key):
            logger.info("Check %s unskipped", identity)

    def is_skipped(self, identity: CheckIdentity) -> bool:
        return self.get(identity) is not None

    def skipped_by(self, identity: CheckIdentity) -> str | None:
        state = self.get(identity)
        return state.actor if state else None

    def skipped_on(self, identity: CheckIdentity) -> int | None:
        state = self.get(identity)
        return state.skipped_on if state else None

    def all(self) -> dict[CheckIdentity, SkipState]:
        return {CheckIdentity.from_key(k): SkipState.from_dict(v) for k, v in self.backend.items().items()}
