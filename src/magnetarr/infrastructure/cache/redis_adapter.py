"""Redis adapter - async Redis via redis.asyncio."""

from __future__ import annotations

import asyncio
import pickle
from typing import Any

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

log = structlog.get_logger(__name__)


class RedisAdapter:
    """Async Redis cache, shared between addon instances.

    - Uses `redis.asyncio.Redis` (async-native, no to_thread needed).
    - Semaphore limits parallel Redis ops (prevents connection exhaustion).
    - Serialization via pickle (same value semantics as the Diskcache adapter).
    - Redis errors are logged and degrade to a miss / no-op.

    Args:
        url: Redis URL (e.g. `redis://localhost:6379/0`).
        max_concurrent: Max parallel Redis ops.
    """

    def __init__(
        self,
        url: str = "redis://localhost:6379/0",
        max_concurrent: int = 50,
    ) -> None:
        self.url = url
        self._client: Redis | None = None
        self._semaphore = asyncio.Semaphore(max_concurrent)

        log.info("redis_adapter_init", url=url, max_concurrent=max_concurrent)

    async def __aenter__(self) -> RedisAdapter:
        if self._client is None:
            self._client = Redis.from_url(self.url, decode_responses=False)
            try:
                await self._client.ping()
                log.info("redis_connected", url=self.url)
            except RedisError as e:
                log.error("redis_connection_failed", url=self.url, error=str(e))
                raise
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            log.info("redis_closed")

    async def get(self, key: str) -> Any | None:
        if self._client is None:
            raise RuntimeError("Redis not initialized. Use 'async with cache:'")

        async with self._semaphore:
            try:
                raw = await self._client.get(key)
            except RedisError as e:
                log.error("redis_get_error", key=key, error=str(e))
                return None

        if raw is None:
            log.debug("cache_get", key=key, hit=False)
            return None
        try:
            value = pickle.loads(raw)
        except (pickle.PickleError, EOFError) as e:
            log.error("redis_decode_error", key=key, error=str(e))
            return None
        log.debug("cache_get", key=key, hit=True)
        return value

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        """SET, or SETEX when *ttl* is given."""
        if self._client is None:
            raise RuntimeError("Redis not initialized.")

        try:
            packed = pickle.dumps(value)
        except (pickle.PickleError, TypeError) as e:
            log.error("pickle_serialize_error", key=key, error=str(e))
            return

        async with self._semaphore:
            try:
                if ttl is None:
                    await self._client.set(key, packed)
                else:
                    await self._client.setex(key, ttl, packed)
                log.debug("cache_set", key=key, ttl=ttl, size_bytes=len(packed))
            except RedisError as e:
                log.error("redis_set_error", key=key, error=str(e))

    async def delete(self, key: str) -> bool:
        if self._client is None:
            return False

        async with self._semaphore:
            try:
                deleted = await self._client.delete(key)
                log.debug("cache_delete", key=key, deleted=deleted > 0)
                return deleted > 0
            except RedisError as e:
                log.error("redis_delete_error", key=key, error=str(e))
                return False

    async def exists(self, key: str) -> bool:
        if self._client is None:
            return False

        async with self._semaphore:
            try:
                return await self._client.exists(key) > 0
            except RedisError as e:
                log.error("redis_exists_error", key=key, error=str(e))
                return False

    async def clear(self) -> None:
        """FLUSHDB (delete ALL keys in current DB)."""
        if self._client is None:
            return

        async with self._semaphore:
            try:
                await self._client.flushdb()
                log.warning("redis_flushed")
            except RedisError as e:
                log.error("redis_flush_error", error=str(e))
