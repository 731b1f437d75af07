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
Configuration class for Site Audit.
"""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

from .constants import SiteAuditConstants


@dataclass
class Config:
    """
    Configuration for Site Audit.

    Explicit constructor arguments win; anything left unset is read from the
    ``SITE_AUDIT_*`` environment variables, then from the built-in defaults.
    """

    # State persistence
    history_path: Path | None = None
    skip_path: Path | None = None

    # Event log consumed by the log-anomaly checks
    log_path: Path | None = None

    # Audit policy YAML (None -> built-in default)
    policy_path: Path | None = None

    # Principal recorded when marking checks as skipped
    actor: str | None = None

    # Output Options
    output_format: str | None = None

    def __post_init__(self):
        """Load configuration from environment variables if not provided."""

        if self.history_path is None:
            self.history_path = Path(
                os.getenv("SITE_AUDIT_HISTORY_PATH", str(SiteAuditConstants.DEFAULT_HISTORY_PATH))
            )

        if self.skip_path is None:
            self.skip_path = Path(os.getenv("SITE_AUDIT_SKIP_PATH", str(SiteAuditConstants.DEFAULT_SKIP_PATH)))

        if self.log_path is None:
            if env_log := os.getenv("SITE_AUDIT_LOG_PATH"):
                self.log_path = Path(env_log)

        if self.policy_path is None:
            if env_policy := os.getenv("SITE_AUDIT_POLICY"):
                self.policy_path = Path(env_policy)

        if self.actor is None:
            self.actor = os.getenv("SITE_AUDIT_ACTOR")

        if self.output_format is None:
            self.output_format = os.getenv("SITE_AUDIT_OUTPUT_FORMAT") or "summary"

        # Normalise str paths passed by callers
        self.history_path = Path(self.history_path)
        self.skip_path = Path(self.skip_path)
        if self.log_path is not None:
            self.log_path = Path(self.log_path)
        if self.policy_path is not None:
            self.policy_path = Path(self.policy_path)

    @classmethod
    def from_env(cls) -> "Config":
        """
        Create configuration from environment variables.

        Returns:
            Config instance with values from environment
        """
        return cls()

    @classmethod
    def from_file(cls, config_file: Path) -> "Config":
        """
        Load configuration from .env file.

        Values in the file override variables already present in the
        environment.

        Args:
            config_file: Path to .env file

        Returns:
            Config instance
        """
        if Path(config_file).exists():
            load_dotenv(config_file, override=True)

        return cls.from_env()
