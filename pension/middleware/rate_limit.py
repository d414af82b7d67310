"""Per-client sliding-window rate limiting for the planner API.

Keeps a deque of request timestamps per client IP in process memory,
which suits single-instance deployments.  Health probes and API docs
are exempt.
"""

from __future__ import annotations

import asyncio
import time
from collections import deque
from typing import Final

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

_EXEMPT_PATHS: Final[frozenset[str]] = frozenset({
    "/api/v1/health",
    "/api/v1/health/ready",
    "/docs",
    "/redoc",
    "/openapi.json",
})

_WINDOW_SECONDS: Final[float] = 60.0
_SWEEP_EVERY: Final[int] = 1000  # requests between stale-client sweeps


def client_ip(request: Request, trusted_proxy_count: int) -> str:
    """Resolve the caller's IP, skipping *trusted_proxy_count* proxies.

    The rightmost ``trusted_proxy_count`` entries of ``X-Forwarded-For``
    belong to our own proxies; the entry just before them is the client.
    """
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        hops = [ip.strip() for ip in forwarded_for.split(",") if ip.strip()]
        if hops:
            index = len(hops) - trusted_proxy_count - 1
            return hops[index] if index >= 0 else hops[0]

    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Reject clients exceeding *max_requests_per_minute* with HTTP 429."""

    def __init__(
        self,
        app: object,
        max_requests_per_minute: int = 60,
        trusted_proxy_count: int = 1,
    ) -> None:
        super().__init__(app)  # type: ignore[arg-type]
        self._limit = max_requests_per_minute
        self._trusted_proxy_count = trusted_proxy_count
        self._hits: dict[str, deque[float]] = {}
        self._lock = asyncio.Lock()
        self._since_sweep = 0

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.url.path in _EXEMPT_PATHS:
            return await call_next(request)

        ip = client_ip(request, self._trusted_proxy_count)
        now = time.monotonic()

        async with self._lock:
            self._since_sweep += 1
            if self._since_sweep >= _SWEEP_EVERY:
                self._since_sweep = 0
                self._sweep(now)

            hits = self._hits.setdefault(ip, deque())
            while hits and hits[0] < now - _WINDOW_SECONDS:
                hits.popleft()

            if len(hits) >= self._limit:
                retry_after = max(1, int(_WINDOW_SECONDS - (now - hits[0])) + 1)
                logger.warning("rate_limit.exceeded", client_ip=ip, limit=self._limit)
                return JSONResponse(
                    status_code=429,
                    content={
                        "detail": "Rate limit exceeded. Please try again later.",
                        "retry_after_seconds": retry_after,
                    },
                    headers={"Retry-After": str(retry_after)},
                )

            hits.append(now)
            remaining = self._limit - len(hits)

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(self._limit)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        return response

    def _sweep(self, now: float) -> None:
        cutoff = now - _WINDOW_SECONDS
        stale = [ip for ip, hits in self._hits.items() if not hits or hits[-1] < cutoff]
        for ip in stale:
            del self._hits[ip]
