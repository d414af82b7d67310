"""Tests for the rate limiter and the bearer-token dependency."""

from __future__ import annotations

import pytest
from fastapi import Depends, FastAPI
from fastapi.testclient import TestClient
from starlette.requests import Request

from pension.middleware.auth import require_user
from pension.middleware.rate_limit import RateLimitMiddleware, client_ip
from pension.services.identity import IdentityUnavailableError, IdentityUser


def _rate_limited_app(limit: int) -> FastAPI:
    app = FastAPI()
    app.add_middleware(RateLimitMiddleware, max_requests_per_minute=limit, trusted_proxy_count=0)

    @app.get("/ping")
    async def ping() -> dict:
        return {"ok": True}

    @app.get("/api/v1/health")
    async def health() -> dict:
        return {"status": "healthy"}

    return app


def _request(headers: dict[str, str]) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
        "client": ("10.0.0.9", 1234),
    }
    return Request(scope)


# -----------------------------------------------------------------------
# Rate limiting
# -----------------------------------------------------------------------


class TestRateLimit:
    def test_rejects_after_limit(self) -> None:
        client = TestClient(_rate_limited_app(2))
        assert client.get("/ping").status_code == 200
        second = client.get("/ping")
        assert second.headers["X-RateLimit-Remaining"] == "0"
        third = client.get("/ping")
        assert third.status_code == 429
        assert int(third.headers["Retry-After"]) >= 1

    def test_health_is_exempt(self) -> None:
        client = TestClient(_rate_limited_app(1))
        for _ in range(3):
            assert client.get("/api/v1/health").status_code == 200

    def test_limits_are_per_client(self) -> None:
        client = TestClient(_rate_limited_app(1))
        assert client.get("/ping", headers={"X-Real-IP": "1.1.1.1"}).status_code == 200
        assert client.get("/ping", headers={"X-Real-IP": "2.2.2.2"}).status_code == 200
        assert client.get("/ping", headers={"X-Real-IP": "1.1.1.1"}).status_code == 429


class TestClientIp:
    def test_skips_trusted_proxies(self) -> None:
        request = _request({"X-Forwarded-For": "203.0.113.5, 10.0.0.1"})
        assert client_ip(request, trusted_proxy_count=1) == "203.0.113.5"

    def test_too_few_hops_falls_back_to_first(self) -> None:
        request = _request({"X-Forwarded-For": "203.0.113.5"})
        assert client_ip(request, trusted_proxy_count=3) == "203.0.113.5"

    def test_socket_peer_without_headers(self) -> None:
        assert client_ip(_request({}), trusted_proxy_count=1) == "10.0.0.9"


# -----------------------------------------------------------------------
# Bearer authentication
# -----------------------------------------------------------------------


class _Identity:
    def __init__(self, error: Exception | None = None) -> None:
        self._error = error

    async def lookup(self, id_token: str) -> IdentityUser:
        if self._error is not None:
            raise self._error
        return IdentityUser(user_id=id_token)


def _protected_app(identity) -> FastAPI:
    app = FastAPI()
    app.state.identity = identity

    @app.get("/whoami")
    async def whoami(user: IdentityUser = Depends(require_user)) -> dict:
        return {"user_id": user.user_id}

    return app


class TestRequireUser:
    def test_resolves_token(self) -> None:
        client = TestClient(_protected_app(_Identity()))
        response = client.get("/whoami", headers={"Authorization": "Bearer u42"})
        assert response.json() == {"user_id": "u42"}

    def test_missing_header(self) -> None:
        response = TestClient(_protected_app(_Identity())).get("/whoami")
        assert response.status_code == 401
        assert response.headers["WWW-Authenticate"] == "Bearer"

    @pytest.mark.parametrize(
        ("identity", "status"),
        [
            (None, 503),
            (_Identity(IdentityUnavailableError("down")), 502),
        ],
    )
    def test_provider_problems(self, identity, status: int) -> None:
        client = TestClient(_protected_app(identity))
        response = client.get("/whoami", headers={"Authorization": "Bearer u42"})
        assert response.status_code == status
