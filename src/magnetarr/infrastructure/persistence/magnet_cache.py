"""Magnet status and file listing caches backed by CachePort."""

from __future__ import annotations

import structlog

from magnetarr.domain.entities.media import Magnet, VideoFile
from magnetarr.domain.ports.cache import CachePort
from magnetarr.infrastructure.persistence.codecs import (
    DECODE_ERRORS,
    decode_entry,
    encode_entry,
    file_from_dict,
    file_to_dict,
    magnet_from_dict,
    magnet_to_dict,
)

log = structlog.get_logger(__name__)


def magnet_key(content_hash: str) -> str:
    return f"magnet:{content_hash.lower()}"


def files_key(content_hash: str) -> str:
    return f"files:{content_hash.lower()}"


class CacheMagnetStatusRepository:
    """``magnet:{hash}`` -> Magnet.

    Only ready magnets are written. A magnet that is still downloading
    remotely is re-submitted on the next request, which is idempotent
    upstream and picks up the new status.
    """

    def __init__(self, cache: CachePort, ttl_seconds: int | None = None) -> None:
        self.cache = cache
        self.ttl = ttl_seconds

    async def get(self, content_hash: str) -> Magnet | None:
        key = magnet_key(content_hash)
        raw = await self.cache.get(key)
        if raw is None:
            return None
        try:
            return decode_entry(raw, magnet_from_dict).value
        except DECODE_ERRORS as e:
            log.error("magnet_deserialize_error", key=key, error=str(e))
            return None

    async def put(self, magnet: Magnet) -> None:
        if not magnet.is_ready:
            log.debug("magnet_not_cached_not_ready", hash=magnet.hash)
            return
        key = magnet_key(magnet.hash)
        await self.cache.set(key, encode_entry(key, magnet_to_dict(magnet)), ttl=self.ttl)

    async def evict(self, content_hash: str) -> None:
        await self.cache.delete(magnet_key(content_hash))


class CacheFileListingRepository:
    """``files:{hash}`` -> list of VideoFile (already filtered to video)."""

    def __init__(self, cache: CachePort, ttl_seconds: int | None = None) -> None:
        self.cache = cache
        self.ttl = ttl_seconds

    async def get(self, content_hash: str) -> list[VideoFile] | None:
        key = files_key(content_hash)
        raw = await self.cache.get(key)
        if raw is None:
            return None
        try:
            return decode_entry(raw, lambda items: [file_from_dict(i) for i in items]).value
        except DECODE_ERRORS as e:
            log.error("files_deserialize_error", key=key, error=str(e))
            return None

    async def put(self, content_hash: str, files: list[VideoFile]) -> None:
        if not files:
            return
        key = files_key(content_hash)
        payload = [file_to_dict(f) for f in files]
        await self.cache.set(key, encode_entry(key, payload), ttl=self.ttl)

    async def evict(self, content_hash: str) -> None:
        await self.cache.delete(files_key(content_hash))
