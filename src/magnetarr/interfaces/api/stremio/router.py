"""Stremio addon API endpoints (manifest, stream).

Every route is prefixed by the user configuration: urlsafe base64 of a
JSON object carrying the preference lists and the output cap.
"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any, Optional, cast

import structlog
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from magnetarr.domain.entities.media import (
    MediaQuery,
    MediaType,
    Stream,
    UserPreferences,
)
from magnetarr.infrastructure.config.schema import StremioConfig
from magnetarr.interfaces.app_state import AppState

log = structlog.get_logger(__name__)

router = APIRouter(tags=["stremio"])

_ADDON_VERSION = "0.1.0"

_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "*",
}


class InvalidUserConfig(ValueError):
    """The URL configuration segment could not be decoded or validated."""


class _UserConfigPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    resolutions: Optional[list[str]] = Field(default=None, alias="RES_TO_SHOW")
    languages: Optional[list[str]] = Field(default=None, alias="LANG_TO_SHOW")
    codecs: Optional[list[str]] = Field(default=None, alias="CODECS_TO_SHOW")
    output_cap: Optional[int] = Field(default=None, alias="FILES_TO_SHOW", ge=1)


def _clean_tokens(tokens: Optional[list[str]], default: list[str], name: str) -> tuple[str, ...]:
    if tokens is None:
        return tuple(default)
    cleaned = tuple(t.strip() for t in tokens if t and t.strip())
    if not cleaned:
        raise InvalidUserConfig(f"{name} must not be empty")
    return cleaned


def _decode_user_config(raw: str, defaults: StremioConfig) -> UserPreferences:
    """Decode the base64 JSON config segment into UserPreferences.

    Missing keys fall back to the server defaults; FILES_TO_SHOW is
    clamped to ``max_output_cap``.
    """
    if not raw:
        raise InvalidUserConfig("configuration missing")

    padded = raw + "=" * (-len(raw) % 4)
    try:
        decoded = base64.urlsafe_b64decode(padded.encode("ascii"))
        data = json.loads(decoded.decode("utf-8"))
    except (binascii.Error, UnicodeError, ValueError) as e:
        raise InvalidUserConfig(f"invalid configuration encoding: {e}") from e

    if not isinstance(data, dict):
        raise InvalidUserConfig("configuration must be a JSON object")

    try:
        payload = _UserConfigPayload.model_validate(data)
    except ValidationError as e:
        raise InvalidUserConfig(str(e)) from e

    cap = payload.output_cap or defaults.default_output_cap
    return UserPreferences(
        resolutions=_clean_tokens(
            payload.resolutions, defaults.default_resolutions, "RES_TO_SHOW"
        ),
        languages=_clean_tokens(
            payload.languages, defaults.default_languages, "LANG_TO_SHOW"
        ),
        codecs=_clean_tokens(payload.codecs, defaults.default_codecs, "CODECS_TO_SHOW"),
        output_cap=min(cap, defaults.max_output_cap),
    )


def _build_manifest(config: StremioConfig) -> dict[str, Any]:
    return {
        "id": config.addon_id,
        "version": _ADDON_VERSION,
        "name": config.addon_name,
        "description": "Torrent search with AllDebrid direct streams",
        "types": ["movie", "series"],
        "catalogs": [],
        "resources": ["stream"],
        "idPrefixes": ["tt"],
        "behaviorHints": {
            "adult": False,
            "configurable": True,
        },
    }


def _parse_stream_id(content_type: str, raw_id: str) -> MediaQuery | None:
    """Parse a Stremio stream id.

    Movies: "tt1234567"
    Series: "tt1234567:1:5" (season 1, episode 5)
    """
    if content_type not in ("movie", "series"):
        return None
    if not raw_id.startswith("tt"):
        return None

    media_type = cast(MediaType, content_type)
    parts = raw_id.split(":")
    external_id = parts[0]

    if media_type == "series" and len(parts) == 3:
        try:
            season = int(parts[1])
            episode = int(parts[2])
        except ValueError:
            return None
        return MediaQuery(
            external_id=external_id,
            media_type=media_type,
            season=season,
            episode=episode,
        )

    return MediaQuery(external_id=external_id, media_type=media_type)


def _format_stream(stream: Stream) -> dict[str, Any]:
    """Convert a Stream to Stremio JSON format."""
    out: dict[str, Any] = {
        "name": stream.display_name,
        "title": stream.title,
        "url": stream.direct_url,
    }
    if stream.binge_group:
        out["behaviorHints"] = {"bingeGroup": stream.binge_group}
    return out


def _bad_config(error: InvalidUserConfig) -> JSONResponse:
    log.info("stremio_invalid_user_config", error=str(error))
    return JSONResponse(
        status_code=400,
        content={"error": "invalid configuration", "detail": str(error)},
        headers=_CORS_HEADERS,
    )


@router.get("/{user_config}/manifest.json")
async def stremio_manifest(request: Request, user_config: str) -> JSONResponse:
    """Serve the Stremio addon manifest."""
    state = cast(AppState, request.app.state)
    try:
        _decode_user_config(user_config, state.config.stremio)
    except InvalidUserConfig as e:
        return _bad_config(e)

    return JSONResponse(
        content=_build_manifest(state.config.stremio), headers=_CORS_HEADERS
    )


@router.get("/{user_config}/stream/{content_type}/{stream_id}.json")
async def stremio_stream(
    request: Request,
    user_config: str,
    content_type: str,
    stream_id: str,
) -> JSONResponse:
    """Resolve streams for a movie or episode."""
    state = cast(AppState, request.app.state)
    try:
        preferences = _decode_user_config(user_config, state.config.stremio)
    except InvalidUserConfig as e:
        return _bad_config(e)

    query = _parse_stream_id(content_type, stream_id)
    if query is None:
        log.info(
            "stremio_unparseable_stream_id",
            content_type=content_type,
            stream_id=stream_id,
        )
        return JSONResponse(content={"streams": []}, headers=_CORS_HEADERS)

    uc = getattr(state, "stream_uc", None)
    if uc is None:
        log.warning("stremio_stream_unavailable", reason="use case not configured")
        return JSONResponse(content={"streams": []}, headers=_CORS_HEADERS)

    log.info(
        "stremio_stream_request",
        external_id=query.external_id,
        media_type=query.media_type,
        season=query.season,
        episode=query.episode,
        output_cap=preferences.output_cap,
    )

    streams = await uc.execute(query, preferences)
    return JSONResponse(
        content={"streams": [_format_stream(s) for s in streams]},
        headers=_CORS_HEADERS,
    )
