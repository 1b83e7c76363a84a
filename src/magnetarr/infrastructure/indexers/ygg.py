"""YggTorrent indexer via the public yggapi.eu JSON API."""

from __future__ import annotations

from typing import Any

import httpx

from magnetarr.domain.entities.media import MediaType, RawCandidate
from magnetarr.domain.ports.repositories import SearchResultCache
from magnetarr.infrastructure.indexers.base import HttpxIndexerBase

SOURCE_LABEL = "YGG"


class YggIndexer(HttpxIndexerBase):
    """Search returns ``[{id, title, seeders, size}]``; hashes need a second
    request per torrent (``/torrent/{id}``)."""

    name = "ygg"

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        base_url: str = "https://yggapi.eu",
        per_page: int = 100,
        search_cache: SearchResultCache | None = None,
    ) -> None:
        super().__init__(http_client, base_url=base_url, search_cache=search_cache)
        self._per_page = per_page

    def _to_candidate(self, item: Any) -> RawCandidate | None:
        if not isinstance(item, dict) or "id" not in item or not item.get("title"):
            return None
        return RawCandidate(
            source_id=str(item["id"]),
            display_title=str(item["title"]),
            size=self._to_int(item.get("size")),
            seeder_count=self._to_int(item.get("seeders")),
            external_handle=f"{self.base_url}/torrent/{item['id']}",
            source_name=SOURCE_LABEL,
        )

    async def _fetch_candidates(
        self, search_text: str, media_type: MediaType
    ) -> list[RawCandidate] | None:
        resp = await self._safe_fetch(
            f"{self.base_url}/torrents",
            params={
                "q": search_text,
                "page": 1,
                "per_page": self._per_page,
                "order_by": "uploaded_at",
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
        if candidate.content_hash:
            return candidate.content_hash

        resp = await self._safe_fetch(
            f"{self.base_url}/torrent/{candidate.source_id}", context="hash"
        )
        if resp is None:
            return None
        data = self._safe_parse_json(resp, context="hash")
        if not isinstance(data, dict) or not data.get("hash"):
            self._log.warning("indexer_hash_missing", source_id=candidate.source_id)
            return None
        return str(data["hash"]).lower()
