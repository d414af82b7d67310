"""Document store for user records.

Records are stored as orjson-encoded documents keyed by user id, in
Redis when a URL is configured and reachable, otherwise in a
process-local dictionary (development and tests).
"""

from __future__ import annotations

import asyncio
import contextlib
from typing import Protocol, runtime_checkable

import orjson
import structlog

from pension.models.user import UserRecord

logger = structlog.get_logger(__name__)


class UserStoreError(Exception):
    """The document store failed to read or write a record."""


# ---------------------------------------------------------------------------
# Backend protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class DocumentBackend(Protocol):
    """Async key/value document backend."""

    async def get(self, key: str) -> bytes | None: ...

    async def put(self, key: str, value: bytes) -> None: ...

    async def delete(self, key: str) -> None: ...


# ---------------------------------------------------------------------------
# Redis backend
# ---------------------------------------------------------------------------


class RedisDocumentBackend:
    """Redis-backed documents using ``redis.asyncio`` with connection pooling."""

    __slots__ = ("_pool", "_redis")

    def __init__(self, url: str, *, max_connections: int = 20) -> None:
        import redis.asyncio as aioredis

        self._pool = aioredis.ConnectionPool.from_url(
            url,
            max_connections=max_connections,
            decode_responses=False,
        )
        self._redis = aioredis.Redis(connection_pool=self._pool)

    async def get(self, key: str) -> bytes | None:
        return await self._redis.get(key)

    async def put(self, key: str, value: bytes) -> None:
        await self._redis.set(key, value)

    async def delete(self, key: str) -> None:
        await self._redis.delete(key)

    async def close(self) -> None:
        await self._redis.aclose()
        await self._pool.aclose()

    async def ping(self) -> bool:
        """Return *True* if the Redis server is reachable."""
        try:
            return bool(await self._redis.ping())
        except Exception:
            return False


# ---------------------------------------------------------------------------
# In-memory backend
# ---------------------------------------------------------------------------


class InMemoryDocumentBackend:
    """Dictionary-backed documents guarded by an :class:`asyncio.Lock`."""

    __slots__ = ("_data", "_lock")

    def __init__(self) -> None:
        self._data: dict[str, bytes] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> bytes | None:
        async with self._lock:
            return self._data.get(key)

    async def put(self, key: str, value: bytes) -> None:
        async with self._lock:
            self._data[key] = value

    async def delete(self, key: str) -> None:
        async with self._lock:
            self._data.pop(key, None)

    @property
    def size(self) -> int:
        return len(self._data)


# ---------------------------------------------------------------------------
# UserStore  --  public API
# ---------------------------------------------------------------------------


class UserStore:
    """Reads and writes :class:`UserRecord` documents.

    Parameters
    ----------
    backend:
        Storage backend.  Use :meth:`connect` to pick one from a URL.
    namespace:
        Prefix prepended to every key (e.g. ``"pension:users:"``).
    """

    __slots__ = ("_backend", "_namespace")

    def __init__(self, backend: DocumentBackend, *, namespace: str = "users:") -> None:
        self._backend = backend
        self._namespace = namespace

    @classmethod
    async def connect(cls, redis_url: str | None, *, namespace: str = "users:") -> UserStore:
        """Use Redis when *redis_url* is set and answers a ping, else memory."""
        if redis_url:
            backend = RedisDocumentBackend(redis_url)
            if await backend.ping():
                logger.info("user_store.redis_connected")
                return cls(backend, namespace=namespace)
            logger.warning("user_store.redis_unavailable_using_inmemory")
            with contextlib.suppress(Exception):
                await backend.close()
        return cls(InMemoryDocumentBackend(), namespace=namespace)

    @property
    def backend(self) -> DocumentBackend:
        return self._backend

    def _make_key(self, user_id: str) -> str:
        return f"{self._namespace}{user_id}"

    async def get(self, user_id: str) -> UserRecord | None:
        try:
            raw = await self._backend.get(self._make_key(user_id))
        except Exception as exc:
            logger.error("user_store.read_failed", user_id=user_id, exc_info=True)
            raise UserStoreError(f"failed to read user {user_id}") from exc
        if raw is None:
            return None
        return UserRecord.model_validate_json(raw)

    async def save(self, record: UserRecord) -> UserRecord:
        """Upsert *record*, keeping stored fields the new record leaves empty."""
        existing = await self.get(record.user_id)
        merged = record.merged_into(existing)
        try:
            await self._backend.put(
                self._make_key(record.user_id),
                orjson.dumps(merged.model_dump(mode="json")),
            )
        except Exception as exc:
            logger.error("user_store.write_failed", user_id=record.user_id, exc_info=True)
            raise UserStoreError(f"failed to write user {record.user_id}") from exc

        logger.info("user_store.saved", user_id=record.user_id, created=existing is None)
        return merged

    async def delete(self, user_id: str) -> None:
        await self._backend.delete(self._make_key(user_id))

    async def close(self) -> None:
        close = getattr(self._backend, "close", None)
        if close is not None:
            with contextlib.suppress(Exception):
                await close()
