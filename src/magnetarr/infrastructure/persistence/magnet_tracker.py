"""Ordered record of magnets uploaded to the debrid account."""

from __future__ import annotations

import asyncio
import json

import structlog

from magnetarr.domain.entities.media import Magnet, TrackedMagnet
from magnetarr.domain.ports.cache import CachePort
from magnetarr.infrastructure.persistence.codecs import (
    DECODE_ERRORS,
    tracked_from_dict,
    tracked_to_dict,
    utcnow,
)

log = structlog.get_logger(__name__)

_TRACKER_KEY: str = "magnets:tracked"


class CacheMagnetTracker:
    """Keeps ``magnets:tracked`` as a JSON list, oldest first.

    The list is read-modify-written under a lock, so concurrent requests
    in the same process do not lose each other's uploads. Entries never
    expire on their own; the quota manager removes them.
    """

    def __init__(self, cache: CachePort) -> None:
        self.cache = cache
        self._lock = asyncio.Lock()

    async def _load(self) -> list[TrackedMagnet]:
        raw = await self.cache.get(_TRACKER_KEY)
        if raw is None:
            return []
        try:
            return [tracked_from_dict(d) for d in json.loads(raw)]
        except DECODE_ERRORS as e:
            log.error("tracker_deserialize_error", error=str(e))
            return []

    async def _save(self, entries: list[TrackedMagnet]) -> None:
        await self.cache.set(
            _TRACKER_KEY,
            json.dumps([tracked_to_dict(t) for t in entries]),
            ttl=None,
        )

    async def track(self, magnets: list[Magnet]) -> None:
        if not magnets:
            return
        async with self._lock:
            entries = await self._load()
            known = {t.hash for t in entries}
            now = utcnow()
            added = 0
            for m in magnets:
                h = m.hash.lower()
                if h in known:
                    continue
                entries.append(TrackedMagnet(hash=h, remote_id=m.remote_id, tracked_at=now))
                known.add(h)
                added += 1
            if added:
                await self._save(entries)
            log.debug("magnets_tracked", added=added, total=len(entries))

    async def list_oldest_first(self) -> list[TrackedMagnet]:
        async with self._lock:
            entries = await self._load()
        return sorted(entries, key=lambda t: t.tracked_at)

    async def forget(self, hashes: list[str]) -> None:
        drop = {h.lower() for h in hashes}
        if not drop:
            return
        async with self._lock:
            entries = await self._load()
            kept = [t for t in entries if t.hash not in drop]
            await self._save(kept)
            log.info("magnets_forgotten", removed=len(entries) - len(kept), remaining=len(kept))
