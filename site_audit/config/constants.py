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
Constants for Site Audit.
"""

from pathlib import Path

from .._version import __version__ as PACKAGE_VERSION
from ..data import DATA_DIR


class SiteAuditConstants:
    """Constants used throughout the audit engine."""

    VERSION = PACKAGE_VERSION

    # Project paths
    PROJECT_ROOT = Path(__file__).parent.parent.parent
    PACKAGE_ROOT = Path(__file__).parent.parent

    # Resource paths
    DATA_DIR = DATA_DIR
    DEFAULT_POLICY_PATH = DATA_DIR / "default_policy.yaml"

    # Default state locations (relative to the working directory)
    DEFAULT_HISTORY_PATH = Path(".site_audit") / "history.json"
    DEFAULT_SKIP_PATH = Path(".site_audit") / "skips.json"

    # Log-anomaly checks
    DEFAULT_ANOMALY_THRESHOLD = 10
    SECURITY_REVIEW_NAMESPACE = "Security Review"

    @classmethod
    def get_default_policy_path(cls) -> Path:
        """Get path to the built-in audit policy."""
        return cls.DEFAULT_POLICY_PATH
