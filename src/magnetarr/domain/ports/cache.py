"""Cache Port - Interface for backend-agnostic key-value stores."""

from __future__ import annotations

from typing import Any, Protocol


class CachePort(Protocol):
    """Port for an async key-value store with optional TTL.

    Implementations:
      - MemoryCacheAdapter (process-local dict)
      - DiskcacheAdapter (SQLite-based, no daemon)
      - RedisAdapter (Redis async client)

    Writes replace the previous value of a key (last writer wins). There
    is no per-key locking: a read never waits for a write to another key.

    Each adapter MUST support async context-manager semantics:
        async with cache:
            await cache.set("key", value)
    """

    async def get(self, key: str) -> Any:
        """Retrieve value. None = not found / expired."""
        ...

    async def set(self, key: str, value: Any, *, ttl: int | None = None) -> None:
        """Set value. ``ttl=None`` stores without expiry."""
        ...

    async def delete(self, key: str) -> bool:
        """Delete key. True = deleted, False = did not exist."""
        ...

    async def exists(self, key: str) -> bool:
        """Check if key exists (not expired)."""
        ...

    async def clear(self) -> None:
        """Delete ALL keys."""
        ...

    async def aclose(self) -> None:
        """Cleanup hook (e.g. close Redis connection)."""
        ...

    async def __aenter__(self) -> CachePort: ...

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None: ...
