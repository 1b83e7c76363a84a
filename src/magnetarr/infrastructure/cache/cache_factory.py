"""Cache factory - builds the adapter selected in the config."""

from __future__ import annotations

from typing import Literal

import structlog

from magnetarr.domain.ports.cache import CachePort
from magnetarr.infrastructure.cache.diskcache_adapter import DiskcacheAdapter
from magnetarr.infrastructure.cache.memory_adapter import MemoryCacheAdapter
from magnetarr.infrastructure.cache.redis_adapter import RedisAdapter

log = structlog.get_logger(__name__)

CacheBackend = Literal["memory", "diskcache", "redis"]


def create_cache(
    backend: CacheBackend = "diskcache",
    *,
    directory: str = "./.cache/magnetarr",
    redis_url: str = "redis://localhost:6379/0",
    max_concurrent: int = 10,
) -> CachePort:
    """Create a cache adapter for *backend*.

    Args:
        backend: "memory", "diskcache" (SQLite) or "redis".
        directory: Diskcache path.
        redis_url: Redis connection string.
        max_concurrent: Semaphore limit for diskcache (Redis uses 50).

    Raises:
        ValueError: If `backend` is unknown.
    """
    if backend == "memory":
        log.info("cache_factory_create", backend=backend)
        return MemoryCacheAdapter()
    if backend == "diskcache":
        log.info(
            "cache_factory_create",
            backend=backend,
            directory=directory,
            max_concurrent=max_concurrent,
        )
        return DiskcacheAdapter(directory=directory, max_concurrent=max_concurrent)
    if backend == "redis":
        log.info("cache_factory_create", backend=backend, url=redis_url)
        return RedisAdapter(url=redis_url, max_concurrent=50)
    raise ValueError(
        f"Unknown cache backend: {backend!r}. "
        "Must be 'memory', 'diskcache' or 'redis'."
    )
