"""Tests for the typed cache repositories (metadata, search, magnets, files, streams)."""

from __future__ import annotations

import json
from datetime import datetime
from unittest.mock import AsyncMock

import pytest

from magnetarr.domain.entities.media import (
    Magnet,
    MagnetReadiness,
    MediaMetadata,
    MediaQuery,
    RawCandidate,
    Stream,
    UserPreferences,
    VideoFile,
)
from magnetarr.infrastructure.cache.memory_adapter import MemoryCacheAdapter
from magnetarr.infrastructure.persistence.codecs import (
    decode_entry,
    encode_entry,
    metadata_from_dict,
)
from magnetarr.infrastructure.persistence.lookup_cache import (
    CacheMetadataRepository,
    CacheSearchResultRepository,
    search_key,
)
from magnetarr.infrastructure.persistence.magnet_cache import (
    CacheFileListingRepository,
    CacheMagnetStatusRepository,
    magnet_key,
)
from magnetarr.infrastructure.persistence.stream_cache import (
    CacheStreamResultRepository,
    magnet_streams_key,
    stream_key,
)

_READY = Magnet(
    hash="abcdef",
    remote_id="42",
    display_name="The.Matrix.1999.MULTI.1080p",
    size_bytes=123,
    readiness=MagnetReadiness.READY,
    source_name="YGG",
)


# ---------------------------------------------------------------------------
# Envelope
# ---------------------------------------------------------------------------


class TestEnvelope:
    def test_carries_key_and_timestamp(self) -> None:
        d = json.loads(encode_entry("meta:tt1", {"primary_title": "X"}))
        assert d["key"] == "meta:tt1"
        assert datetime.fromisoformat(d["stored_at"]).tzinfo is not None

    def test_decode(self) -> None:
        raw = encode_entry(
            "meta:tt1",
            {"external_id": "tt1", "media_type": "movie", "primary_title": "X"},
        )
        entry = decode_entry(raw, metadata_from_dict)
        assert entry.key == "meta:tt1"
        assert entry.value.primary_title == "X"
        assert entry.value.alternate_title == ""


# ---------------------------------------------------------------------------
# Metadata
# ---------------------------------------------------------------------------


class TestCacheMetadataRepository:
    @pytest.mark.asyncio()
    async def test_roundtrip(
        self, memory_cache: MemoryCacheAdapter, movie_metadata: MediaMetadata
    ) -> None:
        repo = CacheMetadataRepository(memory_cache)
        await repo.put(movie_metadata)
        assert await repo.get("tt0133093") == movie_metadata

    @pytest.mark.asyncio()
    async def test_miss(self, memory_cache: MemoryCacheAdapter) -> None:
        assert await CacheMetadataRepository(memory_cache).get("tt404") is None

    @pytest.mark.asyncio()
    async def test_corrupt_entry_is_miss(self, memory_cache: MemoryCacheAdapter) -> None:
        await memory_cache.set("meta:tt1", "{not json")
        assert await CacheMetadataRepository(memory_cache).get("tt1") is None

    @pytest.mark.asyncio()
    async def test_ttl_forwarded(
        self, mock_cache: AsyncMock, movie_metadata: MediaMetadata
    ) -> None:
        await CacheMetadataRepository(mock_cache, ttl_seconds=3600).put(movie_metadata)
        assert mock_cache.set.call_args[1]["ttl"] == 3600


# ---------------------------------------------------------------------------
# Search results
# ---------------------------------------------------------------------------


class TestCacheSearchResultRepository:
    def test_key_normalises_text(self) -> None:
        assert search_key("ygg", "movie", "  The Matrix ") == "search:ygg:movie:the matrix"

    @pytest.mark.asyncio()
    async def test_roundtrip(self, memory_cache: MemoryCacheAdapter) -> None:
        repo = CacheSearchResultRepository(memory_cache)
        candidates = [
            RawCandidate(
                source_id="1",
                display_title="The.Matrix.MULTI.1080p",
                size=10,
                seeder_count=5,
                content_hash="ABC",
                source_name="YGG",
            ),
            RawCandidate(source_id="2", display_title="Matrix.720p", source_name="YGG"),
        ]
        await repo.put("ygg", "movie", "The Matrix", candidates)

        assert await repo.get("ygg", "movie", "the matrix") == candidates

    @pytest.mark.asyncio()
    async def test_sources_isolated(self, memory_cache: MemoryCacheAdapter) -> None:
        repo = CacheSearchResultRepository(memory_cache)
        await repo.put(
            "ygg", "movie", "x", [RawCandidate(source_id="1", display_title="x")]
        )
        assert await repo.get("sharewood", "movie", "x") is None
        assert await repo.get("ygg", "series", "x") is None


# ---------------------------------------------------------------------------
# Magnets / files
# ---------------------------------------------------------------------------


class TestCacheMagnetStatusRepository:
    @pytest.mark.asyncio()
    async def test_ready_roundtrip(self, memory_cache: MemoryCacheAdapter) -> None:
        repo = CacheMagnetStatusRepository(memory_cache)
        await repo.put(_READY)
        assert await repo.get("ABCDEF") == _READY

    @pytest.mark.asyncio()
    async def test_not_ready_not_stored(self, mock_cache: AsyncMock) -> None:
        repo = CacheMagnetStatusRepository(mock_cache)
        await repo.put(Magnet(hash="abc", remote_id="1"))
        mock_cache.set.assert_not_awaited()

    @pytest.mark.asyncio()
    async def test_evict(self, memory_cache: MemoryCacheAdapter) -> None:
        repo = CacheMagnetStatusRepository(memory_cache)
        await repo.put(_READY)
        await repo.evict("abcdef")
        assert not await memory_cache.exists(magnet_key("abcdef"))


class TestCacheFileListingRepository:
    @pytest.mark.asyncio()
    async def test_roundtrip(self, memory_cache: MemoryCacheAdapter) -> None:
        repo = CacheFileListingRepository(memory_cache)
        files = [VideoFile(name="a.mkv", size_bytes=100, locked_link="https://l/a")]
        await repo.put("abc", files)
        assert await repo.get("ABC") == files

    @pytest.mark.asyncio()
    async def test_empty_not_stored(self, mock_cache: AsyncMock) -> None:
        await CacheFileListingRepository(mock_cache).put("abc", [])
        mock_cache.set.assert_not_awaited()

    @pytest.mark.asyncio()
    async def test_evict(self, memory_cache: MemoryCacheAdapter) -> None:
        repo = CacheFileListingRepository(memory_cache)
        await repo.put("abc", [VideoFile(name="a.mkv", size_bytes=1, locked_link="l")])
        await repo.evict("abc")
        assert await repo.get("abc") is None


# ---------------------------------------------------------------------------
# Streams
# ---------------------------------------------------------------------------


class TestStreamKey:
    def test_movie(self, movie_query: MediaQuery, preferences: UserPreferences) -> None:
        key = stream_key(movie_query, preferences)
        assert key == f"streams:tt0133093:movie:::{preferences.fingerprint()}"

    def test_episode(
        self, episode_query: MediaQuery, preferences: UserPreferences
    ) -> None:
        key = stream_key(episode_query, preferences)
        assert key.startswith("streams:tt0903747:series:1:2:")

    def test_preferences_split_keys(
        self, movie_query: MediaQuery, preferences: UserPreferences
    ) -> None:
        other = UserPreferences(
            resolutions=("720p",), languages=("FRENCH",), codecs=("x264",)
        )
        assert stream_key(movie_query, preferences) != stream_key(movie_query, other)


class TestCacheStreamResultRepository:
    @pytest.mark.asyncio()
    async def test_roundtrip(self, memory_cache: MemoryCacheAdapter) -> None:
        repo = CacheStreamResultRepository(memory_cache)
        streams = [
            Stream(
                display_name="YGG + AD | 1080p | x265",
                title="The Matrix\nfile.mkv\nBluRay | 1.00 GB",
                direct_url="https://cdn/1",
                binge_group="magnetarr|1080p|x265|YGG",
            )
        ]
        await repo.put("streams:k", streams)
        assert await repo.get("streams:k") == streams

    @pytest.mark.asyncio()
    async def test_empty_not_stored(self, mock_cache: AsyncMock) -> None:
        await CacheStreamResultRepository(mock_cache).put("streams:k", [])
        mock_cache.set.assert_not_awaited()

    @pytest.mark.asyncio()
    async def test_evict_for_magnets(self, memory_cache: MemoryCacheAdapter) -> None:
        repo = CacheStreamResultRepository(memory_cache)
        streams = [Stream(display_name="n", title="t", direct_url="https://cdn/1")]
        await repo.put("streams:a", streams, magnet_hashes=["AAA"])
        await repo.put("streams:b", streams, magnet_hashes=["aaa", "bbb"])
        await repo.put("streams:c", streams, magnet_hashes=["ccc"])

        assert await repo.evict_for_magnets(["aaa"]) == 2

        assert await repo.get("streams:a") is None
        assert await repo.get("streams:b") is None
        assert await repo.get("streams:c") == streams
        assert not await memory_cache.exists(magnet_streams_key("aaa"))

    @pytest.mark.asyncio()
    async def test_index_not_duplicated(self, memory_cache: MemoryCacheAdapter) -> None:
        repo = CacheStreamResultRepository(memory_cache)
        streams = [Stream(display_name="n", title="t", direct_url="https://cdn/1")]
        await repo.put("streams:a", streams, magnet_hashes=["aaa"])
        await repo.put("streams:a", streams, magnet_hashes=["aaa"])

        raw = await memory_cache.get(magnet_streams_key("aaa"))
        assert json.loads(raw) == ["streams:a"]

    @pytest.mark.asyncio()
    async def test_evict_unknown_magnet(self, memory_cache: MemoryCacheAdapter) -> None:
        repo = CacheStreamResultRepository(memory_cache)
        assert await repo.evict_for_magnets(["zzz"]) == 0
