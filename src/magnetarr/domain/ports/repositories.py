"""Typed cache repositories used by the stream pipeline."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from magnetarr.domain.entities.media import (
    Magnet,
    MediaMetadata,
    MediaType,
    RawCandidate,
    Stream,
    TrackedMagnet,
    VideoFile,
)


class MetadataCache(Protocol):
    async def get(self, external_id: str) -> MediaMetadata | None: ...

    async def put(self, metadata: MediaMetadata) -> None: ...


class SearchResultCache(Protocol):
    async def get(
        self, source: str, media_type: MediaType, search_text: str
    ) -> list[RawCandidate] | None: ...

    async def put(
        self,
        source: str,
        media_type: MediaType,
        search_text: str,
        candidates: list[RawCandidate],
    ) -> None: ...


class MagnetStatusCache(Protocol):
    async def get(self, content_hash: str) -> Magnet | None: ...

    async def put(self, magnet: Magnet) -> None: ...

    async def evict(self, content_hash: str) -> None: ...


class FileListingCache(Protocol):
    async def get(self, content_hash: str) -> list[VideoFile] | None: ...

    async def put(self, content_hash: str, files: list[VideoFile]) -> None: ...

    async def evict(self, content_hash: str) -> None: ...


class StreamResultCache(Protocol):
    async def get(self, key: str) -> list[Stream] | None: ...

    async def put(
        self, key: str, streams: list[Stream], magnet_hashes: Iterable[str] = ()
    ) -> None: ...

    async def evict_for_magnets(self, hashes: Iterable[str]) -> int:
        """Drop every cached list built from one of *hashes*."""
        ...


class MagnetTrackerPort(Protocol):
    """Ordered record of magnets uploaded to the debrid account."""

    async def track(self, magnets: list[Magnet]) -> None:
        """Record magnets not yet tracked (existing entries keep their age)."""
        ...

    async def list_oldest_first(self) -> list[TrackedMagnet]: ...

    async def forget(self, hashes: list[str]) -> None: ...
