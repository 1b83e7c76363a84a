"""Keeps the debrid account below its magnet limit."""

from __future__ import annotations

import asyncio

import structlog

from magnetarr.domain.entities.upstream import Success
from magnetarr.domain.ports.debrid import DebridClientPort
from magnetarr.domain.ports.repositories import (
    FileListingCache,
    MagnetStatusCache,
    MagnetTrackerPort,
    StreamResultCache,
)

log = structlog.get_logger(__name__)


class MagnetQuotaUseCase:
    """Delete the oldest tracked magnets once too many are tracked.

    The remote batch delete runs first; local records and cache entries
    are only removed when it succeeds, so a failed run is retried on the
    next upload. Cached stream lists built from a deleted magnet are
    dropped with it.
    """

    def __init__(
        self,
        *,
        debrid: DebridClientPort,
        tracker: MagnetTrackerPort,
        magnet_cache: MagnetStatusCache,
        files_cache: FileListingCache,
        stream_cache: StreamResultCache | None = None,
        max_tracked_magnets: int,
        delete_count: int,
    ) -> None:
        self._debrid = debrid
        self._tracker = tracker
        self._magnet_cache = magnet_cache
        self._files_cache = files_cache
        self._stream_cache = stream_cache
        self._max_tracked = max_tracked_magnets
        self._delete_count = delete_count

    async def run(self) -> int:
        """One cleanup pass. Returns the number of magnets removed."""
        tracked = await self._tracker.list_oldest_first()
        if len(tracked) <= self._max_tracked:
            log.debug(
                "magnet_quota_ok", tracked=len(tracked), limit=self._max_tracked
            )
            return 0

        victims = tracked[: self._delete_count]
        result = await self._debrid.delete_magnets([v.remote_id for v in victims])
        if not isinstance(result, Success):
            log.warning(
                "magnet_quota_remote_delete_failed",
                count=len(victims),
                kind=result.kind.value,
                detail=result.detail,
            )
            return 0

        hashes = [v.hash for v in victims]
        await self._tracker.forget(hashes)
        await asyncio.gather(
            *(self._magnet_cache.evict(h) for h in hashes),
            *(self._files_cache.evict(h) for h in hashes),
        )
        if self._stream_cache is not None:
            await self._stream_cache.evict_for_magnets(hashes)

        log.info(
            "magnet_quota_cleanup_done",
            removed=len(victims),
            remaining=len(tracked) - len(victims),
        )
        return len(victims)
