"""Shared test fixtures for the Magnetarr test suite."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from magnetarr.domain.entities.media import (
    MediaMetadata,
    MediaQuery,
    UserPreferences,
)
from magnetarr.infrastructure.cache.memory_adapter import MemoryCacheAdapter

# ---------------------------------------------------------------------------
# Domain entity fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def preferences() -> UserPreferences:
    """Typical French-audience preferences, output cap 5."""
    return UserPreferences(
        resolutions=("2160p", "1080p", "720p"),
        languages=("MULTI", "FRENCH"),
        codecs=("x265", "x264"),
        output_cap=5,
    )


@pytest.fixture()
def movie_query() -> MediaQuery:
    return MediaQuery(external_id="tt0133093", media_type="movie")


@pytest.fixture()
def episode_query() -> MediaQuery:
    return MediaQuery(external_id="tt0903747", media_type="series", season=1, episode=2)


@pytest.fixture()
def movie_metadata() -> MediaMetadata:
    return MediaMetadata(
        external_id="tt0133093",
        media_type="movie",
        primary_title="The Matrix",
        alternate_title="Matrix",
    )


@pytest.fixture()
def series_metadata() -> MediaMetadata:
    return MediaMetadata(
        external_id="tt0903747",
        media_type="series",
        primary_title="Breaking Bad",
        alternate_title="Breaking Bad",
    )


# ---------------------------------------------------------------------------
# Cache fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def mock_cache() -> AsyncMock:
    """Mock CachePort."""
    cache = AsyncMock()
    cache.get = AsyncMock(return_value=None)
    cache.set = AsyncMock()
    cache.delete = AsyncMock(return_value=True)
    cache.exists = AsyncMock(return_value=False)
    cache.clear = AsyncMock()
    cache.aclose = AsyncMock()
    return cache


@pytest.fixture()
def memory_cache() -> MemoryCacheAdapter:
    """Real in-memory CachePort (no context entry needed)."""
    return MemoryCacheAdapter()
