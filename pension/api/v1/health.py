"""Health check endpoints for the pension planner API v1.

Liveness reports process uptime; readiness verifies that the scheme
dataset is loaded and that the user store answers a round trip.
"""

from __future__ import annotations

import time

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import ORJSONResponse
from pydantic import BaseModel

from pension.models.user import UserRecord

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

router = APIRouter(prefix="/health", tags=["health"])

_PROBE_USER_ID = "_health_check"


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------


class HealthResponse(BaseModel):
    """Basic health check response."""

    status: str
    version: str
    uptime_seconds: float


class ReadinessResponse(BaseModel):
    """Readiness check response with individual component statuses."""

    status: str
    checks: dict[str, str]


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.get("", response_model=HealthResponse)
async def health_check(request: Request) -> HealthResponse:
    """Liveness probe.  Does *not* check downstream dependencies."""
    start_time: float = getattr(request.app.state, "start_time", time.time())
    return HealthResponse(
        status="healthy",
        version=request.app.version,
        uptime_seconds=round(time.time() - start_time, 2),
    )


@router.get("/ready", response_model=ReadinessResponse)
async def readiness_check(request: Request) -> ReadinessResponse | ORJSONResponse:
    """Readiness probe.

    Returns 503 when the dataset is empty or the user store fails its
    round trip.  An unconfigured identity provider is reported but does
    not make the instance unready, since planning works without it.
    """
    checks: dict[str, str] = {}
    all_ok = True

    # -- Scheme dataset ----------------------------------------------------
    planner = getattr(request.app.state, "planner", None)
    if planner is not None and planner.schemes:
        checks["scheme_data"] = f"ok ({len(planner.schemes)} schemes loaded)"
    else:
        checks["scheme_data"] = "no_data"
        all_ok = False

    # -- User store --------------------------------------------------------
    store = getattr(request.app.state, "user_store", None)
    if store is not None:
        try:
            await store.save(UserRecord(user_id=_PROBE_USER_ID))
            probe = await store.get(_PROBE_USER_ID)
            await store.delete(_PROBE_USER_ID)
            checks["user_store"] = "ok" if probe is not None else "degraded"
            all_ok = all_ok and probe is not None
        except Exception as exc:
            checks["user_store"] = f"error: {exc!s}"
            all_ok = False
    else:
        checks["user_store"] = "not_configured"
        all_ok = False

    # -- Identity provider -------------------------------------------------
    identity = getattr(request.app.state, "identity", None)
    checks["identity"] = "configured" if identity is not None else "not_configured"

    status = "ready" if all_ok else "not_ready"
    if not all_ok:
        logger.warning("health.not_ready", checks=checks)
        return ORJSONResponse(status_code=503, content={"status": status, "checks": checks})
    return ReadinessResponse(status=status, checks=checks)
