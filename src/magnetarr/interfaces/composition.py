"""Composition root: dependency injection via FastAPI lifespan."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

import httpx
import structlog
from fastapi import FastAPI

from magnetarr.application.use_cases import MagnetQuotaUseCase, StreamResolutionUseCase
from magnetarr.domain.ports import IndexerPort
from magnetarr.infrastructure.cache.cache_factory import create_cache
from magnetarr.infrastructure.config.schema import AppConfig
from magnetarr.infrastructure.debrid.alldebrid import AllDebridClient
from magnetarr.infrastructure.indexers.sharewood import SharewoodIndexer
from magnetarr.infrastructure.indexers.ygg import YggIndexer
from magnetarr.infrastructure.persistence.lookup_cache import (
    CacheMetadataRepository,
    CacheSearchResultRepository,
)
from magnetarr.infrastructure.persistence.magnet_cache import (
    CacheFileListingRepository,
    CacheMagnetStatusRepository,
)
from magnetarr.infrastructure.persistence.magnet_tracker import CacheMagnetTracker
from magnetarr.infrastructure.persistence.stream_cache import (
    CacheStreamResultRepository,
    stream_key,
)
from magnetarr.infrastructure.scheduling.debounce import DebouncedScheduler
from magnetarr.infrastructure.stremio.classifier import CandidateClassifier
from magnetarr.infrastructure.stremio.file_selector import (
    files_for_query,
    select_video_files,
)
from magnetarr.infrastructure.stremio.ranker import rank
from magnetarr.infrastructure.stremio.stream_formatter import build_stream
from magnetarr.infrastructure.tmdb.client import HttpxTmdbClient
from magnetarr.interfaces.app_state import AppState

log = structlog.get_logger(__name__)


def _build_indexers(
    config: AppConfig,
    http_client: httpx.AsyncClient,
    search_cache: CacheSearchResultRepository,
) -> list[IndexerPort]:
    """Register every source whose configuration is complete."""
    indexers: list[IndexerPort] = []
    ic = config.indexers

    if ic.ygg_enabled:
        indexers.append(
            YggIndexer(
                http_client,
                base_url=ic.ygg_base_url,
                per_page=ic.max_results,
                search_cache=search_cache,
            )
        )
    if ic.sharewood_passkey:
        indexers.append(
            SharewoodIndexer(
                http_client,
                passkey=ic.sharewood_passkey,
                base_url=ic.sharewood_base_url,
                search_cache=search_cache,
            )
        )
    else:
        log.info("indexer_disabled", indexer="sharewood", reason="no passkey")
    return indexers


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Lifespan Hook: Initialize and cleanup all resources (DI Composition Root).

    Order matters:
        1. Cache (required by every repository)
        2. HTTP client (shared by indexers, TMDB and AllDebrid)
        3. Repositories + tracker
        4. Indexers
        5. Upstream clients
        6. Quota use case + debounced scheduler
        7. Stream resolution use case
    """
    state = cast(AppState, app.state)
    config = state.config
    ttl = config.cache

    # 1) Cache
    cache = create_cache(
        backend=config.cache.backend,
        directory=str(config.cache.directory),
        redis_url=config.cache.redis_url,
        max_concurrent=config.cache.max_concurrent,
    )
    await cache.__aenter__()
    state.cache = cache
    log.info("cache_initialized", backend=config.cache.backend)

    # 2) HTTP client
    state.http_client = httpx.AsyncClient(
        timeout=httpx.Timeout(config.http_timeout_seconds),
        headers={"User-Agent": config.http_user_agent},
        follow_redirects=config.http_follow_redirects,
    )
    log.info("http_client_initialized", timeout=config.http_timeout_seconds)

    # 3) Repositories
    metadata_cache = CacheMetadataRepository(cache, ttl_seconds=ttl.metadata_ttl_seconds)
    search_cache = CacheSearchResultRepository(cache, ttl_seconds=ttl.search_ttl_seconds)
    magnet_cache = CacheMagnetStatusRepository(cache, ttl_seconds=ttl.magnet_ttl_seconds)
    files_cache = CacheFileListingRepository(cache, ttl_seconds=ttl.files_ttl_seconds)
    stream_cache = CacheStreamResultRepository(cache, ttl_seconds=ttl.streams_ttl_seconds)
    tracker = CacheMagnetTracker(cache)

    # 4) Indexers
    state.indexers = _build_indexers(config, state.http_client, search_cache)
    log.info("indexers_registered", indexers=[i.name for i in state.indexers])

    # 5) Upstream clients
    tmdb = (
        HttpxTmdbClient(
            api_key=config.tmdb_api_key,
            http_client=state.http_client,
            cache=metadata_cache,
            base_url=config.tmdb.base_url,
        )
        if config.tmdb_api_key
        else None
    )
    debrid = (
        AllDebridClient(
            api_key=config.alldebrid_api_key,
            http_client=state.http_client,
            agent=config.alldebrid.agent,
            base_url=config.alldebrid.base_url,
        )
        if config.alldebrid_api_key
        else None
    )

    # 6) Quota management
    state.quota_uc = None
    state.quota_scheduler = None
    if debrid is not None and config.quota.enabled:
        state.quota_uc = MagnetQuotaUseCase(
            debrid=debrid,
            tracker=tracker,
            magnet_cache=magnet_cache,
            files_cache=files_cache,
            stream_cache=stream_cache,
            max_tracked_magnets=config.quota.max_tracked_magnets,
            delete_count=config.quota.delete_count,
        )
        state.quota_scheduler = DebouncedScheduler(
            state.quota_uc.run,
            delay_seconds=config.quota.debounce_seconds,
            name="magnet_quota",
        )
        log.info(
            "magnet_quota_configured",
            max_tracked=config.quota.max_tracked_magnets,
            delete_count=config.quota.delete_count,
        )

    # 7) Stream resolution
    state.stream_uc = None
    if tmdb is not None and debrid is not None:
        state.stream_uc = StreamResolutionUseCase(
            metadata=tmdb,
            indexers=state.indexers,
            debrid=debrid,
            classifier=CandidateClassifier(config.classifier),
            rank_fn=rank,
            video_filter_fn=select_video_files,
            query_filter_fn=files_for_query,
            build_stream_fn=build_stream,
            stream_key_fn=stream_key,
            magnet_cache=magnet_cache,
            files_cache=files_cache,
            stream_cache=stream_cache,
            tracker=tracker,
            on_upload=(
                state.quota_scheduler.schedule
                if state.quota_scheduler is not None
                else None
            ),
            indexer_timeout_seconds=config.indexers.timeout_seconds,
        )
    else:
        log.warning(
            "stream_resolution_disabled",
            tmdb_configured=tmdb is not None,
            alldebrid_configured=debrid is not None,
        )

    log.info("app_startup_complete")

    try:
        yield
    finally:
        if state.quota_scheduler is not None:
            await state.quota_scheduler.aclose()
            log.info("quota_scheduler_stopped")

        await state.http_client.aclose()
        log.info("http_client_closed")

        await state.cache.aclose()
        log.info("cache_closed")

        log.info("app_shutdown_complete")
