"""Application state container for FastAPI dependency injection."""

from __future__ import annotations

from typing import TYPE_CHECKING

import httpx
from starlette.datastructures import State

from magnetarr.infrastructure.config import AppConfig

if TYPE_CHECKING:
    from magnetarr.application.use_cases import (
        MagnetQuotaUseCase,
        StreamResolutionUseCase,
    )
    from magnetarr.domain.ports import CachePort, IndexerPort
    from magnetarr.infrastructure.scheduling.debounce import DebouncedScheduler


class AppState(State):
    """FastAPI application state with all DI resources.

    Lifecycle managed by composition.py::lifespan().
    """

    # Configuration
    config: AppConfig

    # Infrastructure
    cache: CachePort
    http_client: httpx.AsyncClient

    # Torrent sources (registered only when their credentials are configured)
    indexers: list[IndexerPort]

    # Use cases (None when TMDB or AllDebrid credentials are missing)
    stream_uc: StreamResolutionUseCase | None
    quota_uc: MagnetQuotaUseCase | None

    # Debounced quota cleanup trigger
    quota_scheduler: DebouncedScheduler | None
