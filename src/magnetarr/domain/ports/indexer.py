"""Port for torrent indexer sources."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from magnetarr.domain.entities.media import MediaType, RawCandidate


@runtime_checkable
class IndexerPort(Protocol):
    """A single torrent source.

    Both methods fail soft: transport and parse errors yield an empty
    list / None, never an exception.
    """

    name: str

    async def search(
        self,
        title: str,
        media_type: MediaType,
        season: int | None = None,
        episode: int | None = None,
        *,
        alternate_title: str | None = None,
    ) -> list[RawCandidate]:
        """Search by title, retrying once with *alternate_title* on zero hits."""
        ...

    async def resolve_hash(self, candidate: RawCandidate) -> str | None:
        """Return the content hash for *candidate* (None = unresolvable)."""
        ...
