"""Port for media metadata lookups (TMDB)."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from magnetarr.domain.entities.media import MediaMetadata


@runtime_checkable
class MetadataClientPort(Protocol):
    """Async interface for resolving an external id to titles."""

    async def lookup(self, external_id: str) -> MediaMetadata | None:
        """Return titles for *external_id*, or None if unknown/unreachable."""
        ...
