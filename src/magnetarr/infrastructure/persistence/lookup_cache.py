"""Metadata and indexer search caches backed by CachePort."""

from __future__ import annotations

import structlog

from magnetarr.domain.entities.media import MediaMetadata, MediaType, RawCandidate
from magnetarr.domain.ports.cache import CachePort
from magnetarr.infrastructure.persistence.codecs import (
    DECODE_ERRORS,
    candidate_from_dict,
    candidate_to_dict,
    decode_entry,
    encode_entry,
    metadata_from_dict,
    metadata_to_dict,
)

log = structlog.get_logger(__name__)


def metadata_key(external_id: str) -> str:
    return f"meta:{external_id}"


def search_key(source: str, media_type: MediaType, search_text: str) -> str:
    return f"search:{source}:{media_type}:{search_text.strip().lower()}"


class CacheMetadataRepository:
    """``meta:{external_id}`` -> MediaMetadata."""

    def __init__(self, cache: CachePort, ttl_seconds: int | None = None) -> None:
        self.cache = cache
        self.ttl = ttl_seconds

    async def get(self, external_id: str) -> MediaMetadata | None:
        key = metadata_key(external_id)
        raw = await self.cache.get(key)
        if raw is None:
            return None
        try:
            return decode_entry(raw, metadata_from_dict).value
        except DECODE_ERRORS as e:
            log.error("metadata_deserialize_error", key=key, error=str(e))
            return None

    async def put(self, metadata: MediaMetadata) -> None:
        key = metadata_key(metadata.external_id)
        await self.cache.set(
            key, encode_entry(key, metadata_to_dict(metadata)), ttl=self.ttl
        )
        log.debug("metadata_cached", key=key)


class CacheSearchResultRepository:
    """``search:{source}:{media_type}:{text}`` -> list of raw candidates.

    Raw results are stored rather than classified ones: classification
    depends on the query's season/episode and on user preferences.
    """

    def __init__(self, cache: CachePort, ttl_seconds: int | None = None) -> None:
        self.cache = cache
        self.ttl = ttl_seconds

    async def get(
        self, source: str, media_type: MediaType, search_text: str
    ) -> list[RawCandidate] | None:
        key = search_key(source, media_type, search_text)
        raw = await self.cache.get(key)
        if raw is None:
            return None
        try:
            return decode_entry(
                raw, lambda items: [candidate_from_dict(i) for i in items]
            ).value
        except DECODE_ERRORS as e:
            log.error("search_deserialize_error", key=key, error=str(e))
            return None

    async def put(
        self,
        source: str,
        media_type: MediaType,
        search_text: str,
        candidates: list[RawCandidate],
    ) -> None:
        key = search_key(source, media_type, search_text)
        payload = [candidate_to_dict(c) for c in candidates]
        await self.cache.set(key, encode_entry(key, payload), ttl=self.ttl)
        log.debug("search_cached", key=key, count=len(candidates))
