"""Tests for create_app, /healthz and the composition root."""

from __future__ import annotations

import base64
import json
from pathlib import Path

import respx
from fastapi.testclient import TestClient

from magnetarr.infrastructure.cache.diskcache_adapter import DiskcacheAdapter
from magnetarr.infrastructure.config import AppConfig
from magnetarr.interfaces.app import create_app

_TMDB = "https://tmdb.test/3"
_YGG = "https://ygg.test"
_AD = "https://ad.test/v4"


def _config(**overrides: object) -> AppConfig:
    data: dict[str, object] = {
        "cache": {"backend": "memory"},
        "tmdb": {"base_url": _TMDB},
        "alldebrid": {"base_url": _AD},
        "indexers": {"ygg_base_url": _YGG},
    }
    data.update(overrides)
    return AppConfig.model_validate(data)


def _user_config() -> str:
    raw = json.dumps(
        {
            "RES_TO_SHOW": ["1080p"],
            "LANG_TO_SHOW": ["MULTI"],
            "CODECS_TO_SHOW": ["x265"],
            "FILES_TO_SHOW": 2,
        }
    ).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


# ---------------------------------------------------------------------------
# Composition
# ---------------------------------------------------------------------------


class TestLifespan:
    def test_without_credentials_streams_disabled(self) -> None:
        with TestClient(create_app(_config())) as client:
            resp = client.get("/healthz")

            assert resp.status_code == 200
            assert resp.json() == {
                "status": "ok",
                "indexers": ["ygg"],
                "streams_enabled": False,
            }
            assert client.app.state.quota_scheduler is None

    def test_with_credentials(self) -> None:
        config = _config(
            tmdb_api_key="tmdb-key",
            alldebrid_api_key="ad-key",
            indexers={"ygg_base_url": _YGG, "sharewood_passkey": "pk"},
        )
        with TestClient(create_app(config)) as client:
            data = client.get("/healthz").json()

            assert data["indexers"] == ["ygg", "sharewood"]
            assert data["streams_enabled"] is True
            assert client.app.state.quota_uc is not None
            assert client.app.state.quota_scheduler is not None

    def test_quota_disabled(self) -> None:
        config = _config(
            tmdb_api_key="tmdb-key",
            alldebrid_api_key="ad-key",
            quota={"enabled": False},
        )
        with TestClient(create_app(config)) as client:
            assert client.app.state.quota_uc is None
            assert client.get("/healthz").json()["streams_enabled"] is True

    def test_default_cache_is_diskcache(self, tmp_path: Path) -> None:
        config = _config(cache={"dir": str(tmp_path / "cache")})
        with TestClient(create_app(config)) as client:
            assert isinstance(client.app.state.cache, DiskcacheAdapter)

    def test_unconfigured_stream_route_returns_empty(self) -> None:
        with TestClient(create_app(_config())) as client:
            resp = client.get(f"/{_user_config()}/stream/movie/tt0133093.json")

            assert resp.status_code == 200
            assert resp.json() == {"streams": []}


# ---------------------------------------------------------------------------
# End to end over mocked upstreams
# ---------------------------------------------------------------------------


class TestStreamRoundTrip:
    @respx.mock
    def test_movie_resolves_to_direct_url(self) -> None:
        respx.get(f"{_TMDB}/find/tt0133093").respond(
            json={
                "movie_results": [
                    {"title": "The Matrix", "original_title": "The Matrix"}
                ],
                "tv_results": [],
            }
        )
        respx.get(f"{_YGG}/torrents").respond(
            json=[{"id": 1, "title": "The.Matrix.MULTI.1080p.x265", "seeders": 10}]
        )
        respx.get(f"{_YGG}/torrent/1").respond(json={"id": 1, "hash": "ABCD"})
        upload = respx.post(f"{_AD}/magnet/upload").respond(
            json={
                "status": "success",
                "data": {"magnets": [{"hash": "abcd", "id": 7, "ready": True}]},
            }
        )
        respx.post(f"{_AD}/magnet/files").respond(
            json={
                "status": "success",
                "data": {
                    "magnets": [
                        {
                            "id": "7",
                            "files": [
                                {
                                    "n": "The.Matrix.MULTI.1080p.BluRay.x265.mkv",
                                    "s": 1024**3,
                                    "l": "https://ad.test/f/7",
                                }
                            ],
                        }
                    ]
                },
            }
        )
        respx.post(f"{_AD}/link/unlock").respond(
            json={"status": "success", "data": {"link": "https://cdn.test/7.mkv"}}
        )

        config = _config(tmdb_api_key="tmdb-key", alldebrid_api_key="ad-key")
        with TestClient(create_app(config)) as client:
            resp = client.get(f"/{_user_config()}/stream/movie/tt0133093.json")

        assert resp.status_code == 200
        assert resp.json()["streams"] == [
            {
                "name": "YGG + AD | 1080p | x265",
                "title": (
                    "The Matrix\nThe.Matrix.MULTI.1080p.BluRay.x265.mkv\nBluRay | 1.00 GB"
                ),
                "url": "https://cdn.test/7.mkv",
                "behaviorHints": {"bingeGroup": "magnetarr|1080p|x265|YGG"},
            }
        ]
        request = upload.calls.last.request
        assert request.headers["Authorization"] == "Bearer ad-key"
