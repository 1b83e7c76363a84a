"""Sharewood indexer (passkey-authenticated JSON API)."""

from __future__ import annotations

from typing import Any

import httpx

from magnetarr.domain.entities.media import MediaType, RawCandidate
from magnetarr.domain.ports.repositories import SearchResultCache
from magnetarr.infrastructure.indexers.base import HttpxIndexerBase

SOURCE_LABEL = "SW"

_SUBCATEGORIES: dict[str, str] = {
    "movie": "9,11",
    "series": "10,12",
}


class SharewoodIndexer(HttpxIndexerBase):
    """Results carry the info hash and a language field inline."""

    name = "sharewood"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        passkey: str,
        base_url: str = "https://www.sharewood.tv",
        search_cache: SearchResultCache | None = None,
    ) -> None:
        super().__init__(http_client, base_url=base_url, search_cache=search_cache)
        self._passkey = passkey

    def _search_text(
        self, title: str, media_type: MediaType, season: int | None
    ) -> str:
        if media_type == "series" and season is not None:
            return f"{title} S{season:02d}"
        return title

    def _to_candidate(self, item: Any) -> RawCandidate | None:
        if not isinstance(item, dict) or "id" not in item or not item.get("name"):
            return None
        info_hash = item.get("info_hash")
        return RawCandidate(
            source_id=str(item["id"]),
            display_title=str(item["name"]),
            size=self._to_int(item.get("size")),
            seeder_count=self._to_int(item.get("seeders")),
            language_tag=str(item.get("language") or ""),
            external_handle=str(item.get("download_url") or ""),
            content_hash=str(info_hash).lower() if info_hash else None,
            source_name=SOURCE_LABEL,
        )

    async def _fetch_candidates(
        self, search_text: str, media_type: MediaType
    ) -> list[RawCandidate] | None:
        resp = await self._safe_fetch(
            f"{self.base_url}/api/{self._passkey}/search",
            params={
                "name": search_text,
                "category": 1,
                "subcategory_id": _SUBCATEGORIES[media_type],
            },
            context="search",
        )
        if resp is None:
            return None
        data = self._safe_parse_json(resp, context="search")
        if not isinstance(data, list):
            return None

        candidates = []
        for item in data:
            candidate = self._to_candidate(item)
            if candidate is not None:
                candidates.append(candidate)
        return candidates

    async def resolve_hash(self, candidate: RawCandidate) -> str | None:
        return candidate.content_hash
