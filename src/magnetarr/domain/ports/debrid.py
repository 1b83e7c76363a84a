"""Port for the debrid (link-unlock) service."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from magnetarr.domain.entities.media import Magnet, VideoFile
from magnetarr.domain.entities.upstream import UpstreamResult


@runtime_checkable
class DebridClientPort(Protocol):
    """Async interface for a debrid account.

    Every method returns a tagged result; callers decide how to degrade.
    """

    async def upload_magnets(self, hashes: list[str]) -> UpstreamResult[list[Magnet]]:
        """Submit content hashes in one batch. Idempotent per hash."""
        ...

    async def get_files(self, remote_id: str) -> UpstreamResult[list[VideoFile]]:
        """Flattened file listing of a magnet."""
        ...

    async def unlock(self, locked_link: str) -> UpstreamResult[str]:
        """Convert a locked file link into a direct URL."""
        ...

    async def delete_magnets(self, remote_ids: list[str]) -> UpstreamResult[None]:
        """Remove magnets from the account in one batch."""
        ...
