"""Shared base class for httpx-based torrent indexers.

Handles the parts every source repeats: safe fetch/parse with structured
logging, the per-title search cache, the single alternate-title retry and
the seeder pre-sort. Subclasses only build the request and map the JSON.

The httpx client is owned by the composition root and shared by all
indexers; this class never closes it.
"""

from __future__ import annotations

import json
from typing import Any

import httpx
import structlog

from magnetarr.domain.entities.media import MediaType, RawCandidate
from magnetarr.domain.ports.repositories import SearchResultCache


class HttpxIndexerBase:
    """Base for indexers satisfying ``IndexerPort``.

    Subclasses **must** set ``name`` and override ``_fetch_candidates()``
    and ``resolve_hash()``. They **may** override ``_search_text()``.
    """

    name: str = ""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        base_url: str,
        search_cache: SearchResultCache | None = None,
    ) -> None:
        self._client = http_client
        self.base_url = base_url.rstrip("/")
        self._search_cache = search_cache
        self._log = structlog.get_logger(__name__).bind(indexer=self.name)

    # ------------------------------------------------------------------
    # Convenience helpers
    # ------------------------------------------------------------------

    async def _safe_fetch(
        self,
        url: str,
        *,
        context: str = "",
        **kwargs: Any,
    ) -> httpx.Response | None:
        """GET *url*; returns ``None`` on any transport or status error."""
        try:
            resp = await self._client.get(url, **kwargs)
            resp.raise_for_status()
            return resp
        except httpx.TimeoutException:
            self._log.warning("indexer_timeout", context=context)
        except httpx.HTTPStatusError as exc:
            self._log.warning(
                "indexer_http_error",
                status=exc.response.status_code,
                context=context,
            )
        except httpx.HTTPError as exc:
            self._log.warning("indexer_fetch_error", error=str(exc), context=context)
        return None

    def _safe_parse_json(self, response: httpx.Response, context: str = "") -> Any:
        try:
            return response.json()
        except (json.JSONDecodeError, ValueError):
            self._log.warning("indexer_invalid_json", context=context)
            return None

    @staticmethod
    def _to_int(value: Any) -> int:
        try:
            return int(value)
        except (TypeError, ValueError):
            return 0

    # ------------------------------------------------------------------
    # Search
    # ------------------------------------------------------------------

    def _search_text(
        self, title: str, media_type: MediaType, season: int | None
    ) -> str:
        return title

    async def _fetch_candidates(
        self, search_text: str, media_type: MediaType
    ) -> list[RawCandidate] | None:
        """One live search request. ``None`` = upstream failure."""
        raise NotImplementedError(f"{type(self).__name__}._fetch_candidates()")

    async def _search_once(
        self, title: str, media_type: MediaType, season: int | None
    ) -> list[RawCandidate]:
        search_text = self._search_text(title, media_type, season)

        if self._search_cache is not None:
            cached = await self._search_cache.get(self.name, media_type, search_text)
            if cached is not None:
                self._log.debug(
                    "indexer_cache_hit", search_text=search_text, count=len(cached)
                )
                return cached

        fetched = await self._fetch_candidates(search_text, media_type)
        if fetched is None:
            self._log.warning("indexer_search_failed", search_text=search_text)
            return []

        candidates = sorted(fetched, key=lambda c: c.seeder_count, reverse=True)
        if candidates and self._search_cache is not None:
            await self._search_cache.put(self.name, media_type, search_text, candidates)

        self._log.info(
            "indexer_search_done", search_text=search_text, count=len(candidates)
        )
        return candidates

    async def search(
        self,
        title: str,
        media_type: MediaType,
        season: int | None = None,
        episode: int | None = None,
        *,
        alternate_title: str | None = None,
    ) -> list[RawCandidate]:
        candidates = await self._search_once(title, media_type, season)
        if candidates:
            return candidates

        alt = (alternate_title or "").strip()
        if alt and alt != title.strip():
            self._log.info("indexer_retry_alternate_title", title=title, alternate=alt)
            return await self._search_once(alt, media_type, season)
        return []

    async def resolve_hash(self, candidate: RawCandidate) -> str | None:
        raise NotImplementedError(f"{type(self).__name__}.resolve_hash()")
