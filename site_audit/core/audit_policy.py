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
Audit policy: tunable thresholds and aggregate-status rules.

Usage
-----
    from site_audit.core.audit_policy import AuditPolicy

    # Load built-in defaults
    policy = AuditPolicy.default()

    # Load an org policy (merges on top of defaults)
    policy = AuditPolicy.from_yaml("my_policy.yaml")

    # Dump the current policy for editing
    policy.to_yaml("generated_policy.yaml")
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from ..config.constants import SiteAuditConstants
from .models import AggregateStatus, CheckStatus

logger = logging.getLogger(__name__)

_DEFAULT_POLICY_PATH = SiteAuditConstants.get_default_policy_path()

# Statuses that may appear in ``aggregate_precedence``
_AGGREGATING_STATUSES = (CheckStatus.FAIL, CheckStatus.WARN)


@dataclass
class AuditPolicy:
    """Organisational audit policy."""

    policy_name: str = "default"
    policy_version: str = "1.0"
    anomaly_threshold: int = SiteAuditConstants.DEFAULT_ANOMALY_THRESHOLD
    aggregate_precedence: list[CheckStatus] = field(default_factory=lambda: [CheckStatus.FAIL, CheckStatus.WARN])
    run_skipped_checks: bool = True

    def __post_init__(self):
        self.aggregate_precedence = [CheckStatus(s) for s in self.aggregate_precedence]
        self.validate()

    def validate(self) -> None:
        """Raise :class:`ValueError` if the policy cannot be applied."""
        if isinstance(self.anomaly_threshold, bool) or not isinstance(self.anomaly_threshold, int):
            raise ValueError(f"anomaly_threshold must be an integer, got {self.anomaly_threshold!r}")
        if self.anomaly_threshold < 0:
            raise ValueError("anomaly_threshold must not be negative")
        if not self.aggregate_precedence or self.aggregate_precedence[0] != CheckStatus.FAIL:
            raise ValueError("aggregate_precedence must start with FAIL")
        if len(set(self.aggregate_precedence)) != len(self.aggregate_precedence):
            raise ValueError("aggregate_precedence must not repeat a status")
        for status in self.aggregate_precedence:
            if status not in _AGGREGATING_STATUSES:
                raise ValueError(f"Status {status.value} cannot take part in the aggregate status")

    def fold(self, statuses: list[CheckStatus]) -> AggregateStatus:
        """Reduce reportable statuses to a single worst-case indicator."""
        present = set(statuses)
        for status in self.aggregate_precedence:
            if status in present:
                return AggregateStatus(status.value)
        return AggregateStatus.CLEAN

    # -----------------------------------------------------------------------
    # Construction helpers
    # -----------------------------------------------------------------------

    @classmethod
    def default(cls) -> AuditPolicy:
        """Load the built-in default policy that ships with the package."""
        return cls.from_yaml(_DEFAULT_POLICY_PATH)

    @classmethod
    def from_yaml(cls, path: str | Path) -> AuditPolicy:
        """
        Load a policy from a YAML file.

        The YAML is merged on top of the built-in defaults so that users only
        need to specify the keys they want to override.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Policy file not found: {path}")

        with open(path) as fh:
            raw: dict[str, Any] = yaml.safe_load(fh) or {}
        if not isinstance(raw, dict):
            raise ValueError(f"Policy file must contain a mapping: {path}")

        if path.resolve() == _DEFAULT_POLICY_PATH.resolve():
            return cls._from_dict(raw)

        merged = cls._deep_merge(cls._load_default_raw(), raw)
        policy = cls._from_dict(merged)
        logger.debug("Loaded audit policy %s from %s", policy.policy_name, path)
        return policy

    def to_yaml(self, path: str | Path) -> None:
        """Dump the full policy to a YAML file for editing."""
        with open(path, "w") as fh:
            fh.write("# Site Audit – Audit Policy\n")
            fh.write("# Only include keys you want to override; omitted keys\n")
            fh.write("# will use the built-in defaults.\n\n")
            yaml.dump(self._to_dict(), fh, default_flow_style=False, sort_keys=False)

    # -----------------------------------------------------------------------
    # Internal parsing
    # -----------------------------------------------------------------------

    @classmethod
    def _load_default_raw(cls) -> dict[str, Any]:
        if _DEFAULT_POLICY_PATH.exists():
            with open(_DEFAULT_POLICY_PATH) as fh:
                return yaml.safe_load(fh) or {}
        return {}

    @staticmethod
    def _deep_merge(base: dict, override: dict) -> dict:
        """Recursively merge *override* into *base*; lists are replaced."""
        result = dict(base)
        for key, val in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(val, dict):
                result[key] = AuditPolicy._deep_merge(result[key], val)
            else:
                result[key] = val
        return result

    @classmethod
    def _from_dict(cls, d: dict[str, Any]) -> AuditPolicy:
        try:
            precedence = [CheckStatus(str(s).upper()) for s in d.get("aggregate_precedence", ["FAIL", "WARN"])]
        except ValueError as exc:
            raise ValueError(f"Invalid aggregate_precedence: {exc}") from exc
        return cls(
            policy_name=str(d.get("policy_name", "default")),
            policy_version=str(d.get("policy_version", "1.0")),
            anomaly_threshold=d.get("anomaly_threshold", SiteAuditConstants.DEFAULT_ANOMALY_THRESHOLD),
            aggregate_precedence=precedence,
            run_skipped_checks=bool(d.get("run_skipped_checks", True)),
        )

    def _to_dict(self) -> dict[str, Any]:
        return {
            "policy_name": self.policy_name,
            "policy_version": self.policy_version,
            "anomaly_threshold": self.anomaly_threshold,
            "aggregate_precedence": [s.value for s in self.aggregate_precedence],
            "run_skipped_checks": self.run_skipped_checks,
        }
