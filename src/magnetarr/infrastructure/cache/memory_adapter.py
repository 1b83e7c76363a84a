"""In-process cache adapter for single-instance deployments and tests."""

from __future__ import annotations

import time
from typing import Any, Optional

import structlog

log = structlog.get_logger(__name__)


class MemoryCacheAdapter:
    """Dict-backed cache living in the event loop's process.

    - No I/O, so no semaphore and no ``to_thread``.
    - Expiry is lazy: expired keys are dropped when they are next read.
    - Values are stored as-is (no serialization).
    """

    def __init__(self) -> None:
        self._data: dict[str, tuple[Any, Optional[float]]] = {}
        log.info("memory_cache_adapter_init")

    async def __aenter__(self) -> MemoryCacheAdapter:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        self._data.clear()

    def _live(self, key: str) -> Optional[tuple[Any, Optional[float]]]:
        item = self._data.get(key)
        if item is None:
            return None
        _, expires_at = item
        if expires_at is not None and expires_at <= time.monotonic():
            del self._data[key]
            return None
        return item

    async def get(self, key: str) -> Optional[Any]:
        item = self._live(key)
        log.debug("cache_get", key=key, hit=item is not None)
        return None if item is None else item[0]

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        expires_at = time.monotonic() + ttl if ttl is not None else None
        self._data[key] = (value, expires_at)
        log.debug("cache_set", key=key, ttl=ttl)

    async def delete(self, key: str) -> bool:
        deleted = self._data.pop(key, None) is not None
        log.debug("cache_delete", key=key, deleted=deleted)
        return deleted

    async def exists(self, key: str) -> bool:
        return self._live(key) is not None

    async def clear(self) -> None:
        self._data.clear()
        log.warning("cache_cleared", backend="memory")
