"""Final stream list cache backed by CachePort."""

from __future__ import annotations

import asyncio
import json
from collections.abc import Iterable

import structlog

from magnetarr.domain.entities.media import MediaQuery, Stream, UserPreferences
from magnetarr.domain.ports.cache import CachePort
from magnetarr.infrastructure.persistence.codecs import (
    DECODE_ERRORS,
    decode_entry,
    encode_entry,
    stream_from_dict,
    stream_to_dict,
)

log = structlog.get_logger(__name__)


def stream_key(query: MediaQuery, preferences: UserPreferences) -> str:
    """``streams:{id}:{type}:{season}:{episode}:{prefs}``.

    Preferences are part of the key: two users with different lists
    must not share a result.
    """
    season = "" if query.season is None else str(query.season)
    episode = "" if query.episode is None else str(query.episode)
    return (
        f"streams:{query.external_id}:{query.media_type}:"
        f"{season}:{episode}:{preferences.fingerprint()}"
    )


def magnet_streams_key(content_hash: str) -> str:
    """``streams:by_magnet:{hash}`` -> stream keys built from that magnet."""
    return f"streams:by_magnet:{content_hash.lower()}"


class CacheStreamResultRepository:
    """Stream lists, plus a per-magnet index of the lists that use it.

    The index lets the quota manager drop every list pointing at a magnet
    it deleted from the debrid account.
    """

    def __init__(self, cache: CachePort, ttl_seconds: int | None = None) -> None:
        self.cache = cache
        self.ttl = ttl_seconds
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> list[Stream] | None:
        raw = await self.cache.get(key)
        if raw is None:
            return None
        try:
            streams = decode_entry(
                raw, lambda items: [stream_from_dict(i) for i in items]
            ).value
        except DECODE_ERRORS as e:
            log.error("streams_deserialize_error", key=key, error=str(e))
            return None
        log.debug("streams_cache_hit", key=key, count=len(streams))
        return streams

    async def put(
        self,
        key: str,
        streams: list[Stream],
        magnet_hashes: Iterable[str] = (),
    ) -> None:
        """Store *streams*; empty results are never cached."""
        if not streams:
            return
        payload = [stream_to_dict(s) for s in streams]
        await self.cache.set(key, encode_entry(key, payload), ttl=self.ttl)

        hashes = {h.lower() for h in magnet_hashes}
        if hashes:
            async with self._lock:
                for h in hashes:
                    keys = await self._load_index(h)
                    if key in keys:
                        continue
                    keys.append(key)
                    # Same TTL as the lists, refreshed on every put.
                    await self.cache.set(
                        magnet_streams_key(h), json.dumps(keys), ttl=self.ttl
                    )
        log.debug("streams_cached", key=key, count=len(streams), magnets=len(hashes))

    async def evict_for_magnets(self, hashes: Iterable[str]) -> int:
        """Delete every cached list built from one of *hashes*."""
        removed = 0
        async with self._lock:
            for h in {h.lower() for h in hashes}:
                for key in await self._load_index(h):
                    if await self.cache.delete(key):
                        removed += 1
                await self.cache.delete(magnet_streams_key(h))
        if removed:
            log.info("streams_evicted", lists=removed)
        return removed

    async def _load_index(self, content_hash: str) -> list[str]:
        raw = await self.cache.get(magnet_streams_key(content_hash))
        if raw is None:
            return []
        try:
            keys = json.loads(raw)
        except DECODE_ERRORS as e:
            log.error(
                "streams_index_deserialize_error", hash=content_hash, error=str(e)
            )
            return []
        return [k for k in keys if isinstance(k, str)] if isinstance(keys, list) else []
