"""JSON codecs for entities stored in the cache.

Every stored value is an envelope ``{"key", "stored_at", "value"}`` so a
reader can tell when an entry was written.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Callable, TypeVar

from magnetarr.domain.entities.media import (
    CacheEntry,
    Magnet,
    MagnetReadiness,
    MediaMetadata,
    RawCandidate,
    Stream,
    TrackedMagnet,
    VideoFile,
)

V = TypeVar("V")

DECODE_ERRORS = (json.JSONDecodeError, KeyError, TypeError, ValueError)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def encode_entry(key: str, value: Any) -> str:
    return json.dumps(
        {"key": key, "stored_at": utcnow().isoformat(), "value": value},
        separators=(",", ":"),
    )


def decode_entry(raw: str, decode_value: Callable[[Any], V]) -> CacheEntry[V]:
    d = json.loads(raw)
    return CacheEntry(
        key=d["key"],
        value=decode_value(d["value"]),
        stored_at=datetime.fromisoformat(d["stored_at"]),
    )


# --- metadata ---


def metadata_to_dict(meta: MediaMetadata) -> dict[str, Any]:
    return {
        "external_id": meta.external_id,
        "media_type": meta.media_type,
        "primary_title": meta.primary_title,
        "alternate_title": meta.alternate_title,
    }


def metadata_from_dict(d: dict[str, Any]) -> MediaMetadata:
    return MediaMetadata(
        external_id=d["external_id"],
        media_type=d["media_type"],
        primary_title=d["primary_title"],
        alternate_title=d.get("alternate_title", ""),
    )


# --- candidates ---


def candidate_to_dict(c: RawCandidate) -> dict[str, Any]:
    return {
        "source_id": c.source_id,
        "display_title": c.display_title,
        "size": c.size,
        "seeder_count": c.seeder_count,
        "language_tag": c.language_tag,
        "external_handle": c.external_handle,
        "content_hash": c.content_hash,
        "source_name": c.source_name,
    }


def candidate_from_dict(d: dict[str, Any]) -> RawCandidate:
    return RawCandidate(
        source_id=str(d["source_id"]),
        display_title=d["display_title"],
        size=int(d.get("size", 0)),
        seeder_count=int(d.get("seeder_count", 0)),
        language_tag=d.get("language_tag", ""),
        external_handle=d.get("external_handle", ""),
        content_hash=d.get("content_hash"),
        source_name=d.get("source_name", ""),
    )


# --- magnets / files ---


def magnet_to_dict(m: Magnet) -> dict[str, Any]:
    return {
        "hash": m.hash,
        "remote_id": m.remote_id,
        "display_name": m.display_name,
        "size_bytes": m.size_bytes,
        "readiness": m.readiness.value,
        "source_name": m.source_name,
    }


def magnet_from_dict(d: dict[str, Any]) -> Magnet:
    return Magnet(
        hash=d["hash"],
        remote_id=str(d["remote_id"]),
        display_name=d.get("display_name", ""),
        size_bytes=int(d.get("size_bytes", 0)),
        readiness=MagnetReadiness(d.get("readiness", MagnetReadiness.NOT_READY.value)),
        source_name=d.get("source_name", ""),
    )


def file_to_dict(f: VideoFile) -> dict[str, Any]:
    return {"name": f.name, "size_bytes": f.size_bytes, "locked_link": f.locked_link}


def file_from_dict(d: dict[str, Any]) -> VideoFile:
    return VideoFile(
        name=d["name"],
        size_bytes=int(d["size_bytes"]),
        locked_link=d["locked_link"],
    )


# --- streams ---


def stream_to_dict(s: Stream) -> dict[str, Any]:
    return {
        "display_name": s.display_name,
        "title": s.title,
        "direct_url": s.direct_url,
        "binge_group": s.binge_group,
    }


def stream_from_dict(d: dict[str, Any]) -> Stream:
    return Stream(
        display_name=d["display_name"],
        title=d["title"],
        direct_url=d["direct_url"],
        binge_group=d.get("binge_group", ""),
    )


# --- tracker ---


def tracked_to_dict(t: TrackedMagnet) -> dict[str, Any]:
    return {
        "hash": t.hash,
        "remote_id": t.remote_id,
        "tracked_at": t.tracked_at.isoformat(),
    }


def tracked_from_dict(d: dict[str, Any]) -> TrackedMagnet:
    return TrackedMagnet(
        hash=d["hash"],
        remote_id=str(d["remote_id"]),
        tracked_at=datetime.fromisoformat(d["tracked_at"]),
    )
