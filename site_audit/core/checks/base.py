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
Base check interface for the audit checklist.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable

from ..models import CheckIdentity, CheckResult, CheckStatus, Evaluation, HelpContent, machine_name


class BaseCheck(ABC):
    """Abstract base class for all audit checks.

    A check is stateless audit logic plus identity metadata.  It never owns
    its history or skip state; the checklist hands it the previous result
    when running it and stores whatever it returns.
    """

    def __init__(self, clock: Callable[[], float] | None = None):
        """
        Initialize check.

        Args:
            clock: Returns the current epoch time; used to stamp results.
                Defaults to :func:`time.time`.
        """
        self._clock = clock or time.time

    # -- Identity -------------------------------------------------------------

    @abstractmethod
    def get_namespace(self) -> str:
        """Display namespace, e.g. ``"Security Review"``."""
        pass

    @abstractmethod
    def get_title(self) -> str:
        """Display title, e.g. ``"Failed logins"``."""
        pass

    def get_machine_namespace(self) -> str:
        return machine_name(self.get_namespace())

    def get_machine_title(self) -> str:
        return machine_name(self.get_title())

    @property
    def identity(self) -> CheckIdentity:
        return CheckIdentity(self.get_machine_namespace(), self.get_machine_title())

    # -- Execution --------------------------------------------------------------

    @abstractmethod
    def run(self, last_result: CheckResult | None) -> CheckResult:
        """
        Run the check.

        Args:
            last_result: The stored result of the previous run, or None if
                the check never ran.

        Returns:
            Exactly one result.  Expected conditions such as a missing data
            source are reported through the status, not raised.
        """
        pass

    def create_result(self, status: CheckStatus, findings: Iterable[str] | None = None) -> CheckResult:
        """Build a result stamped with the current time."""
        return CheckResult(status=status, findings=tuple(findings or ()), time=int(self._clock()))

    # -- Presentation -----------------------------------------------------------

    @abstractmethod
    def help(self) -> HelpContent:
        pass

    def evaluate(self, result: CheckResult) -> Evaluation:
        """Map a result's findings to presentable evidence."""
        return Evaluation()

    def evaluate_plain(self, result: CheckResult) -> str:
        """Plain-text form of :meth:`evaluate`."""
        return ""

    @abstractmethod
    def message(self, status: CheckStatus | str) -> str:
        """Summary line for *status*; unknown statuses get a fallback."""
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.identity})"
