"""Builds user-facing stream names from file names."""

from __future__ import annotations

import re
from dataclasses import dataclass

from magnetarr.domain.entities.media import (
    Magnet,
    MediaMetadata,
    MediaQuery,
    Stream,
    VideoFile,
)

UNKNOWN = "unknown"

_RESOLUTION_RE = re.compile(r"(4k|\d{3,4}p)", re.IGNORECASE)
_CODEC_RE = re.compile(
    r"(h.264|h.265|x.264|x.265|h264|h265|x264|x265|AV1|HEVC)", re.IGNORECASE
)
_SOURCE_RE = re.compile(r"(BluRay|WEB-?DL|WEB|HDRip|DVDRip|BRRip)", re.IGNORECASE)


@dataclass(frozen=True)
class FileTraits:
    resolution: str
    codec: str
    source: str


def _first(pattern: re.Pattern[str], text: str) -> str:
    m = pattern.search(text)
    return m.group(0) if m else UNKNOWN


def parse_file_name(name: str) -> FileTraits:
    return FileTraits(
        resolution=_first(_RESOLUTION_RE, name),
        codec=_first(_CODEC_RE, name),
        source=_first(_SOURCE_RE, name),
    )


def format_size(size_bytes: int) -> str:
    return f"{size_bytes / 1024**3:.2f} GB"


def build_stream(
    *,
    file: VideoFile,
    direct_url: str,
    magnet: Magnet,
    metadata: MediaMetadata,
    query: MediaQuery,
) -> Stream:
    traits = parse_file_name(file.name)
    source_name = magnet.source_name or UNKNOWN

    heading = metadata.primary_title
    if query.episode_marker:
        heading = f"{heading} - {query.episode_marker}"

    return Stream(
        display_name=f"{source_name} + AD | {traits.resolution} | {traits.codec}",
        title=f"{heading}\n{file.name}\n{traits.source} | {format_size(file.size_bytes)}",
        direct_url=direct_url,
        binge_group=f"magnetarr|{traits.resolution}|{traits.codec}|{source_name}",
    )
