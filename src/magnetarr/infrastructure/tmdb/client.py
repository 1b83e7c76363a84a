"""TMDB API client - async httpx implementation with caching."""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from magnetarr.domain.entities.media import MediaMetadata
from magnetarr.domain.ports.repositories import MetadataCache

log = structlog.get_logger(__name__)

_BASE_URL = "https://api.themoviedb.org/3"


class HttpxTmdbClient:
    """Resolves IMDb ids to titles via ``/find``.

    Implements ``MetadataClientPort``. The primary title is TMDB's display
    title (``title`` / ``name``); the alternate title is the original-language
    one (``original_title`` / ``original_name``), used as a search fallback.
    """

    def __init__(
        self,
        *,
        api_key: str,
        http_client: httpx.AsyncClient,
        cache: MetadataCache | None = None,
        base_url: str = _BASE_URL,
    ) -> None:
        self._api_key = api_key
        self._http = http_client
        self._cache = cache
        self._base_url = base_url.rstrip("/")

    async def _get(self, path: str, **extra: Any) -> dict[str, Any] | None:
        """GET request with error handling. Returns parsed JSON or None."""
        url = f"{self._base_url}{path}"
        try:
            resp = await self._http.get(url, params={"api_key": self._api_key, **extra})
            if resp.status_code == 401:
                log.error("tmdb_api_key_invalid", status=401)
                return None
            if resp.status_code == 404:
                log.debug("tmdb_resource_not_found", path=path)
                return None
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError:
            log.warning("tmdb_http_error", path=path, exc_info=True)
            return None
        except httpx.HTTPError:
            log.warning("tmdb_network_error", path=path, exc_info=True)
            return None
        except ValueError:
            log.warning("tmdb_invalid_json", path=path)
            return None
        return data if isinstance(data, dict) else None

    @staticmethod
    def _to_metadata(external_id: str, data: dict[str, Any]) -> MediaMetadata | None:
        movies = data.get("movie_results") or []
        if movies and isinstance(movies[0], dict):
            movie = movies[0]
            title = movie.get("title") or movie.get("original_title")
            if title:
                return MediaMetadata(
                    external_id=external_id,
                    media_type="movie",
                    primary_title=title,
                    alternate_title=movie.get("original_title") or "",
                )

        shows = data.get("tv_results") or []
        if shows and isinstance(shows[0], dict):
            show = shows[0]
            name = show.get("name") or show.get("original_name")
            if name:
                return MediaMetadata(
                    external_id=external_id,
                    media_type="series",
                    primary_title=name,
                    alternate_title=show.get("original_name") or "",
                )
        return None

    async def lookup(self, external_id: str) -> MediaMetadata | None:
        """Lookup titles by IMDb id. Unknown ids and failures yield None."""
        if self._cache is not None:
            cached = await self._cache.get(external_id)
            if cached is not None:
                log.debug("tmdb_cache_hit", external_id=external_id)
                return cached

        data = await self._get(f"/find/{external_id}", external_source="imdb_id")
        if data is None:
            return None

        metadata = self._to_metadata(external_id, data)
        if metadata is None:
            log.info("tmdb_no_match", external_id=external_id)
            return None

        if self._cache is not None:
            await self._cache.put(metadata)
        log.info(
            "tmdb_lookup_done",
            external_id=external_id,
            media_type=metadata.media_type,
            title=metadata.primary_title,
        )
        return metadata
