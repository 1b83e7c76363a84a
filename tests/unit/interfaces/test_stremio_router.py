"""Tests for Stremio addon router endpoints."""

from __future__ import annotations

import base64
import json
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from magnetarr.domain.entities.media import MediaQuery, Stream, UserPreferences
from magnetarr.infrastructure.config import AppConfig
from magnetarr.infrastructure.config.schema import StremioConfig
from magnetarr.interfaces.api.stremio.router import (
    InvalidUserConfig,
    _decode_user_config,
    _format_stream,
    _parse_stream_id,
    router,
)


def _encode(payload: object) -> str:
    raw = json.dumps(payload).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


_USER_CONFIG = _encode(
    {
        "RES_TO_SHOW": ["1080p", "720p"],
        "LANG_TO_SHOW": ["MULTI"],
        "CODECS_TO_SHOW": ["x265"],
        "FILES_TO_SHOW": 3,
    }
)


def _make_app(
    *,
    stream_uc: AsyncMock | None = None,
    config: AppConfig | None = None,
) -> FastAPI:
    """Create a minimal FastAPI app with the stremio router."""
    app = FastAPI()
    app.include_router(router)
    app.state.config = config or AppConfig()
    app.state.stream_uc = stream_uc
    return app


# ---------------------------------------------------------------------------
# _parse_stream_id
# ---------------------------------------------------------------------------


class TestParseStreamId:
    def test_movie_id(self) -> None:
        result = _parse_stream_id("movie", "tt1234567")
        assert result == MediaQuery(external_id="tt1234567", media_type="movie")

    def test_series_id_with_season_episode(self) -> None:
        result = _parse_stream_id("series", "tt1234567:1:5")
        assert result == MediaQuery(
            external_id="tt1234567", media_type="series", season=1, episode=5
        )

    def test_series_without_season_episode(self) -> None:
        result = _parse_stream_id("series", "tt1234567")
        assert result is not None
        assert result.season is None
        assert result.episode is None

    def test_invalid_prefix(self) -> None:
        assert _parse_stream_id("movie", "nm1234567") is None

    def test_invalid_content_type(self) -> None:
        assert _parse_stream_id("channel", "tt1234567") is None

    def test_series_non_numeric_season(self) -> None:
        assert _parse_stream_id("series", "tt1234567:abc:5") is None


# ---------------------------------------------------------------------------
# _decode_user_config
# ---------------------------------------------------------------------------


class TestDecodeUserConfig:
    def test_full_payload(self) -> None:
        prefs = _decode_user_config(_USER_CONFIG, StremioConfig())
        assert prefs == UserPreferences(
            resolutions=("1080p", "720p"),
            languages=("MULTI",),
            codecs=("x265",),
            output_cap=3,
        )

    def test_missing_keys_use_defaults(self) -> None:
        defaults = StremioConfig()
        prefs = _decode_user_config(_encode({"LANG_TO_SHOW": ["FRENCH"]}), defaults)
        assert prefs.languages == ("FRENCH",)
        assert prefs.resolutions == tuple(defaults.default_resolutions)
        assert prefs.codecs == tuple(defaults.default_codecs)
        assert prefs.output_cap == defaults.default_output_cap

    def test_padded_input_accepted(self) -> None:
        raw = base64.urlsafe_b64encode(b'{"FILES_TO_SHOW": 2}').decode("ascii")
        assert _decode_user_config(raw, StremioConfig()).output_cap == 2

    def test_cap_clamped(self) -> None:
        prefs = _decode_user_config(
            _encode({"FILES_TO_SHOW": 500}), StremioConfig(max_output_cap=20)
        )
        assert prefs.output_cap == 20

    def test_tokens_trimmed(self) -> None:
        prefs = _decode_user_config(
            _encode({"CODECS_TO_SHOW": [" x265 ", "", "x264"]}), StremioConfig()
        )
        assert prefs.codecs == ("x265", "x264")

    @pytest.mark.parametrize(
        "raw",
        [
            "",
            "!!!not-base64!!!",
            _encode([1, 2, 3]),
            _encode({"FILES_TO_SHOW": 0}),
            _encode({"FILES_TO_SHOW": "many"}),
            _encode({"RES_TO_SHOW": []}),
            base64.urlsafe_b64encode(b"{broken").decode("ascii"),
        ],
    )
    def test_invalid(self, raw: str) -> None:
        with pytest.raises(InvalidUserConfig):
            _decode_user_config(raw, StremioConfig())


# ---------------------------------------------------------------------------
# _format_stream
# ---------------------------------------------------------------------------


class TestFormatStream:
    def test_with_binge_group(self) -> None:
        out = _format_stream(
            Stream(display_name="n", title="t", direct_url="u", binge_group="g")
        )
        assert out == {
            "name": "n",
            "title": "t",
            "url": "u",
            "behaviorHints": {"bingeGroup": "g"},
        }

    def test_without_binge_group(self) -> None:
        out = _format_stream(Stream(display_name="n", title="t", direct_url="u"))
        assert "behaviorHints" not in out


# ---------------------------------------------------------------------------
# Manifest endpoint
# ---------------------------------------------------------------------------


class TestManifestEndpoint:
    def test_manifest(self) -> None:
        client = TestClient(_make_app())

        resp = client.get(f"/{_USER_CONFIG}/manifest.json")

        assert resp.status_code == 200
        data = resp.json()
        assert data["id"] == "community.magnetarr"
        assert data["types"] == ["movie", "series"]
        assert data["resources"] == ["stream"]
        assert data["idPrefixes"] == ["tt"]
        assert data["behaviorHints"]["configurable"] is True
        assert resp.headers["access-control-allow-origin"] == "*"

    def test_bad_config_is_400(self) -> None:
        client = TestClient(_make_app())

        resp = client.get("/%21%21%21/manifest.json")

        assert resp.status_code == 400
        assert resp.json()["error"] == "invalid configuration"


# ---------------------------------------------------------------------------
# Stream endpoint
# ---------------------------------------------------------------------------


class TestStreamEndpoint:
    def test_movie_streams(self) -> None:
        uc = AsyncMock()
        uc.execute.return_value = [
            Stream(
                display_name="YGG + AD | 1080p | x265",
                title="The Matrix\nfile.mkv\nBluRay | 4.00 GB",
                direct_url="https://cdn/1.mkv",
                binge_group="magnetarr|1080p|x265|YGG",
            )
        ]
        client = TestClient(_make_app(stream_uc=uc))

        resp = client.get(f"/{_USER_CONFIG}/stream/movie/tt0133093.json")

        assert resp.status_code == 200
        streams = resp.json()["streams"]
        assert len(streams) == 1
        assert streams[0]["url"] == "https://cdn/1.mkv"
        assert streams[0]["behaviorHints"]["bingeGroup"] == "magnetarr|1080p|x265|YGG"

        query, prefs = uc.execute.call_args[0]
        assert query == MediaQuery(external_id="tt0133093", media_type="movie")
        assert prefs.output_cap == 3
        assert prefs.languages == ("MULTI",)

    def test_series_stream_id(self) -> None:
        uc = AsyncMock()
        uc.execute.return_value = []
        client = TestClient(_make_app(stream_uc=uc))

        resp = client.get(f"/{_USER_CONFIG}/stream/series/tt0903747:1:2.json")

        assert resp.status_code == 200
        assert resp.json() == {"streams": []}
        query, _ = uc.execute.call_args[0]
        assert (query.season, query.episode) == (1, 2)

    def test_unparseable_id_returns_empty(self) -> None:
        uc = AsyncMock()
        client = TestClient(_make_app(stream_uc=uc))

        resp = client.get(f"/{_USER_CONFIG}/stream/movie/kitsu:123.json")

        assert resp.status_code == 200
        assert resp.json() == {"streams": []}
        uc.execute.assert_not_awaited()

    def test_unconfigured_returns_empty(self) -> None:
        client = TestClient(_make_app(stream_uc=None))

        resp = client.get(f"/{_USER_CONFIG}/stream/movie/tt0133093.json")

        assert resp.status_code == 200
        assert resp.json() == {"streams": []}

    def test_bad_config_is_400(self) -> None:
        uc = AsyncMock()
        client = TestClient(_make_app(stream_uc=uc))

        resp = client.get(f"/{_encode({'FILES_TO_SHOW': -1})}/stream/movie/tt0133093.json")

        assert resp.status_code == 400
        uc.execute.assert_not_awaited()
