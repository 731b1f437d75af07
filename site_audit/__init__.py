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
Site Audit - pluggable security-audit engine for application event logs.
"""

from ._version import __version__

__author__ = "Cisco Systems, Inc."


def __getattr__(name: str):
    """Lazy-load public API symbols on first access.

    Keeps ``python -m site_audit.cli.cli`` from importing FastAPI and the
    check implementations before they are needed.
    """
    _lazy_map = {
        "Config": (".config.config", "Config"),
        "SiteAuditConstants": (".config.constants", "SiteAuditConstants"),
        "AuditPolicy": (".core.audit_policy", "AuditPolicy"),
        "CheckStatus": (".core.models", "CheckStatus"),
        "CheckIdentity": (".core.models", "CheckIdentity"),
        "CheckResult": (".core.models", "CheckResult"),
        "SkipState": (".core.models", "SkipState"),
        "BatchReport": (".core.models", "BatchReport"),
        "AggregateStatus": (".core.models", "AggregateStatus"),
        "BaseCheck": (".core.checks.base", "BaseCheck"),
        "FailedLoginsCheck": (".core.checks.failed_logins", "FailedLoginsCheck"),
        "QueryErrorsCheck": (".core.checks.query_errors", "QueryErrorsCheck"),
        "Checklist": (".core.checklist", "Checklist"),
        "build_checklist": (".core.check_factory", "build_checklist"),
        "LogEntry": (".core.log_store", "LogEntry"),
        "LogSeverity": (".core.log_store", "LogSeverity"),
        "InMemoryLogStore": (".core.log_store", "InMemoryLogStore"),
        "JsonLinesLogStore": (".core.log_store", "JsonLinesLogStore"),
    }
    if name in _lazy_map:
        module_path, attr = _lazy_map[name]
        import importlib

        mod = importlib.import_module(module_path, __package__)
        val = getattr(mod, attr)
        # Cache on the module so __getattr__ is only called once per symbol
        globals()[name] = val
        return val
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "__version__",
    "Config",
    "SiteAuditConstants",
    "AuditPolicy",
    "CheckStatus",
    "CheckIdentity",
    "CheckResult",
    "SkipState",
    "BatchReport",
    "AggregateStatus",
    "BaseCheck",
    "FailedLoginsCheck",
    "QueryErrorsCheck",
    "Checklist",
    "build_checklist",
    "LogEntry",
    "LogSeverity",
    "InMemoryLogStore",
    "JsonLinesLogStore",
]
