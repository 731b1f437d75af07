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

"""API router for Site Audit endpoints.

The router is composable: mount it in any FastAPI application whose
``app.state.checklist`` holds a :class:`~site_audit.core.checklist.Checklist`
(see :func:`site_audit.api.api.create_app`).
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, Field

from .. import __version__ as PACKAGE_VERSION
from ..config.config import Config
from ..core.check_factory import build_checklist
from ..core.checklist import Checklist
from ..core.checks.base import BaseCheck
from ..core.exceptions import CheckNotFoundError, ResultPersistenceError, StoreError
from ..core.help_pages import check_help, general_help

logger = logging.getLogger("site_audit.api")

router = APIRouter()


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------


class SkipRequest(BaseModel):
    """Request model for marking a check as skipped."""

    actor: str | None = Field(None, description="Principal recording the skip (anonymous if omitted)")


class HealthResponse(BaseModel):
    status: str
    version: str
    checks_registered: int


class StatusResponse(BaseModel):
    aggregate_status: str
    skipped_checks: list[str]


# ---------------------------------------------------------------------------
# Dependencies & helpers
# ---------------------------------------------------------------------------


def get_checklist(request: Request) -> Checklist:
    """Return the application's checklist, building it from the environment on first use."""
    checklist = getattr(request.app.state, "checklist", None)
    if checklist is None:
        checklist = build_checklist(Config.from_env())
        request.app.state.checklist = checklist
    return checklist


def _resolve(checklist: Checklist, namespace: str, title: str) -> BaseCheck:
    check = checklist.get_check(namespace, title)
    if check is None:
        raise HTTPException(status_code=404, detail=str(CheckNotFoundError(namespace, title)))
    return check


def _describe(checklist: Checklist, check: BaseCheck) -> dict[str, Any]:
    result = checklist.last_result(check, skip_access_check=True)
    return {
        "id": check.identity.key,
        "namespace": check.get_namespace(),
        "title": check.get_title(),
        "skipped": checklist.is_skipped(check),
        "skipped_by": checklist.skipped_by(check),
        "skipped_on": checklist.skipped_on(check),
        "last_result": result.to_dict() if result else None,
        "message": check.message(result.status) if result else None,
    }


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("/health", response_model=HealthResponse)
def health_check(checklist: Checklist = Depends(get_checklist)):
    """Health check endpoint."""
    return HealthResponse(status="healthy", version=PACKAGE_VERSION, checks_registered=len(checklist))


@router.get("/checks")
def list_checks(checklist: Checklist = Depends(get_checklist)):
    """List registered checks with their skip state and last result."""
    try:
        return {"checks": [_describe(checklist, check) for check in checklist.get_checks()]}
    except StoreError as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.get("/status", response_model=StatusResponse)
def audit_status(checklist: Checklist = Depends(get_checklist)):
    """Aggregate status over all non-skipped checks."""
    try:
        return StatusResponse(
            aggregate_status=checklist.aggregate_status().value,
            skipped_checks=[check.identity.key for check in checklist.get_skipped_checks()],
        )
    except StoreError as e:
        raise HTTPException(status_code=503, detail=str(e))


@router.post("/run")
def run_checks(namespace: str | None = None, checklist: Checklist = Depends(get_checklist)):
    """Run every check, or only those in *namespace*."""
    if namespace is not None:
        if not checklist.get_namespace_checks(namespace):
            raise HTTPException(status_code=404, detail=f"No checks registered in namespace '{namespace}'")
        report = checklist.run_namespace(namespace)
    else:
        report = checklist.run_all()
    return report.to_dict()


@router.post("/checks/{namespace}/{title}/run")
def run_single_check(namespace: str, title: str, checklist: Checklist = Depends(get_checklist)):
    """Run one check and return its new result."""
    check = _resolve(checklist, namespace, title)
    try:
        result = checklist.run_check(check)
    except ResultPersistenceError as e:
        raise HTTPException(
            status_code=503,
            detail={"error": str(e), "result": e.result.to_dict()},
        )
    except StoreError as e:
        raise HTTPException(status_code=503, detail=str(e))
    except Exception as e:
        logger.error("Check %s failed: %s", check.identity, e, exc_info=True)
        raise HTTPException(status_code=500, detail=f"Check failed: {e}")

    return {"id": check.identity.key, "result": result.to_dict(), "message": check.message(result.status)}


@router.post("/checks/{namespace}/{title}/skip")
def skip_check(
    namespace: str,
    title: str,
    body: SkipRequest | None = None,
    checklist: Checklist = Depends(get_checklist),
):
    """Exclude a check from the aggregate status."""
    check = _resolve(checklist, namespace, title)
    actor = body.actor if body else None
    try:
        state = checklist.skip(check, actor=actor)
    except StoreError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return {"id": check.identity.key, "skipped": True, **state.to_dict()}


@router.delete("/checks/{namespace}/{title}/skip")
def unskip_check(namespace: str, title: str, checklist: Checklist = Depends(get_checklist)):
    """Include a previously skipped check in the aggregate status again."""
    check = _resolve(checklist, namespace, title)
    try:
        checklist.unskip(check)
    except StoreError as e:
        raise HTTPException(status_code=503, detail=str(e))
    return {"id": check.identity.key, "skipped": False}


@router.get("/help")
def help_index(checklist: Checklist = Depends(get_checklist)):
    """General help page."""
    return general_help(checklist)


@router.get("/help/{namespace}/{title}")
def help_for_check(namespace: str, title: str, checklist: Checklist = Depends(get_checklist)):
    """Check-specific help page."""
    try:
        return check_help(checklist, namespace, title)
    except CheckNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except StoreError as e:
        raise HTTPException(status_code=503, detail=str(e))
