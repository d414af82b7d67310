"""Main API router combining all v1 route modules.

Aggregates all routers under the ``/api/v1`` prefix so the
FastAPI application only needs to include a single router.

Includes:
    * Planning: personalised pension-scheme recommendations
    * Catalogue: scheme listing and lookup by id
    * Accounts: sign-up, sign-in, password reset, user records
    * Health: liveness and readiness probes
"""

from __future__ import annotations

from fastapi import APIRouter

from pension.api.v1 import auth, health, pension_schemes, schemes, users

api_router = APIRouter(prefix="/api/v1")

api_router.include_router(pension_schemes.router)
api_router.include_router(schemes.router)
api_router.include_router(auth.router)
api_router.include_router(users.router)
api_router.include_router(health.router)
