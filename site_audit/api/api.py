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

"""API module for Site Audit.

This module provides a FastAPI application serving the audit checklist.
"""

from fastapi import FastAPI

from .. import __version__ as PACKAGE_VERSION
from ..core.checklist import Checklist
from .router import router as api_router


def create_app(checklist: Checklist | None = None) -> FastAPI:
    """Build the application around *checklist*.

    Without a checklist one is built from the environment on the first
    request.
    """
    application = FastAPI(
        title="Site Audit API",
        description="Security audit checklist with incremental log-anomaly checks",
        version=PACKAGE_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
    )
    application.state.checklist = checklist
    application.include_router(api_router)
    return application


app = create_app()
