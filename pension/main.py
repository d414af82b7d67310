"""Pension planner FastAPI application entry point.

Creates the FastAPI app, configures middleware, includes routers, and
manages the lifecycle of the backend services (scheme planner, user
store, identity client).
"""

from __future__ import annotations

import time
from contextlib import asynccontextmanager
from typing import AsyncIterator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from config.settings import settings
from pension.api.router import api_router
from pension.data.seed import load_schemes
from pension.middleware.rate_limit import RateLimitMiddleware
from pension.services.eligibility import EligibilityFilter
from pension.services.identity import IdentityClient
from pension.services.planner import PensionPlanner
from pension.services.user_store import UserStore

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


# ---------------------------------------------------------------------------
# Structured logging configuration
# ---------------------------------------------------------------------------


def _configure_logging() -> None:
    """Set up structlog with JSON or console rendering based on settings."""
    processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if settings.log_format == "json":
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            structlog.stdlib.NAME_TO_LEVEL[settings.log_level.lower()],
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )


# ---------------------------------------------------------------------------
# Application lifespan
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage startup and shutdown of the planner services.

    On startup:
      1. Load the scheme dataset and build the planner
      2. Connect the user store (Redis, or in-memory without a URL)
      3. Create the identity client when an API key is configured
      4. Store everything on ``app.state``

    On shutdown the identity HTTP client and the store are closed.
    """
    _configure_logging()
    logger.info("app.startup", env=settings.env, income_rule_mode=settings.income_rule_mode)

    app.state.start_time = time.time()

    # -- 1. Scheme dataset and planner ------------------------------------
    schemes = load_schemes(settings.dataset_path or None)
    app.state.scheme_data = schemes
    app.state.planner = PensionPlanner(
        schemes,
        eligibility_filter=EligibilityFilter(settings.income_rule_mode),
    )
    logger.info("app.planner_initialised", schemes=len(schemes))

    # -- 2. User store -----------------------------------------------------
    user_store = await UserStore.connect(
        settings.redis_url or None,
        namespace=settings.user_store_namespace,
    )
    app.state.user_store = user_store

    # -- 3. Identity provider ---------------------------------------------
    identity: IdentityClient | None = None
    if settings.firebase_api_key:
        identity = IdentityClient(
            settings.firebase_api_key,
            base_url=settings.identity_base_url,
            timeout=settings.identity_timeout_seconds,
        )
        logger.info("app.identity_initialised")
    else:
        logger.warning("app.identity_not_configured", note="auth endpoints will answer 503")
    app.state.identity = identity

    logger.info("app.startup_complete")

    yield

    # -- Shutdown ----------------------------------------------------------
    logger.info("app.shutdown_start")
    if identity is not None:
        await identity.close()
    await user_store.close()
    logger.info("app.shutdown_complete")


# ---------------------------------------------------------------------------
# FastAPI application
# ---------------------------------------------------------------------------

app = FastAPI(
    title="Pension Planner API",
    description=(
        "Retirement planning across national pension schemes: eligibility "
        "filtering, relevance ranking and projected monthly pensions."
    ),
    version="0.1.0",
    lifespan=lifespan,
    default_response_class=ORJSONResponse,
    docs_url="/docs" if not settings.is_production else None,
    redoc_url="/redoc" if not settings.is_production else None,
)

# -- CORS middleware --------------------------------------------------------
# allow_credentials=True must not be combined with allow_origins=["*"].
if settings.is_production:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origin_list,
        allow_credentials=True,
        allow_methods=["GET", "POST"],
        allow_headers=["Content-Type", "Authorization"],
    )
else:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:3000", "http://localhost:8000", "http://127.0.0.1:8000"],
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS", "HEAD"],
        allow_headers=["Content-Type", "Accept", "Authorization"],
    )

# -- Custom middleware ------------------------------------------------------
app.add_middleware(
    RateLimitMiddleware,
    max_requests_per_minute=settings.rate_limit_per_minute,
    trusted_proxy_count=settings.trusted_proxy_count,
)

# -- Include routers -------------------------------------------------------
app.include_router(api_router)


@app.get("/api", response_class=ORJSONResponse)
async def api_info() -> dict:
    """API information endpoint."""
    return {
        "name": "Pension Planner API",
        "version": app.version,
        "docs": "/docs",
        "endpoints": {
            "pension_schemes": "/api/v1/pension-schemes",
            "schemes": "/api/v1/schemes",
            "auth": "/api/v1/auth",
            "users": "/api/v1/users",
            "health": "/api/v1/health",
        },
    }
