"""Domain entities for media lookup, torrent candidates and debrid streams.

Pure value objects without framework dependencies or I/O.
"""

from __future__ import annotations

import hashlib
import json
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Generic, Literal, TypeVar

MediaType = Literal["movie", "series"]

V = TypeVar("V")


class CandidateCategory(str, Enum):
    """Classification buckets for indexer results (not mutually exclusive)."""

    COMPLETE_SERIES = "complete_series"
    COMPLETE_SEASON = "complete_season"
    EPISODE = "episode"
    MOVIE = "movie"


class MagnetReadiness(str, Enum):
    READY = "ready"
    NOT_READY = "not_ready"


@dataclass(frozen=True)
class MediaQuery:
    """Parsed stream request.

    Created from the Stremio id: ``tt1234567`` (movie) or
    ``tt1234567:1:5`` (series, season 1, episode 5).
    """

    external_id: str
    media_type: MediaType
    season: int | None = None
    episode: int | None = None

    @property
    def episode_marker(self) -> str:
        """``S01E05`` for episode queries, empty otherwise."""
        if self.season is None or self.episode is None:
            return ""
        return f"S{self.season:02d}E{self.episode:02d}"


@dataclass(frozen=True)
class MediaMetadata:
    """Titles for an external id, as returned by the metadata lookup."""

    external_id: str
    media_type: MediaType
    primary_title: str
    alternate_title: str = ""


@dataclass(frozen=True)
class RawCandidate:
    """A single indexer search result before classification."""

    source_id: str  # indexer-internal id
    display_title: str
    size: int = 0
    seeder_count: int = 0
    language_tag: str = ""
    external_handle: str = ""  # e.g. download url on the indexer
    content_hash: str | None = None  # known when the indexer returns it inline
    source_name: str = ""


@dataclass(frozen=True)
class ClassifiedCandidate:
    """RawCandidate tagged with the category predicate it satisfied."""

    candidate: RawCandidate
    category: CandidateCategory

    @property
    def source_name(self) -> str:
        return self.candidate.source_name

    @property
    def title(self) -> str:
        return self.candidate.display_title


@dataclass(frozen=True)
class ClassifiedBundle:
    """The four classifier output collections.

    A candidate may appear in more than one collection.
    """

    complete_series: list[ClassifiedCandidate] = field(default_factory=list)
    complete_season: list[ClassifiedCandidate] = field(default_factory=list)
    episode: list[ClassifiedCandidate] = field(default_factory=list)
    movie: list[ClassifiedCandidate] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (
            self.complete_series or self.complete_season or self.episode or self.movie
        )

    def for_media_type(self, media_type: MediaType) -> list[ClassifiedCandidate]:
        """Collections relevant to *media_type*, series packs first."""
        if media_type == "movie":
            return list(self.movie)
        return [*self.complete_series, *self.complete_season, *self.episode]


@dataclass(frozen=True)
class Magnet:
    """A content hash as tracked by the debrid service."""

    hash: str
    remote_id: str
    display_name: str = ""
    size_bytes: int = 0
    readiness: MagnetReadiness = MagnetReadiness.NOT_READY
    source_name: str = ""

    @property
    def is_ready(self) -> bool:
        return self.readiness is MagnetReadiness.READY


@dataclass(frozen=True)
class VideoFile:
    """One file of a ready magnet's content listing."""

    name: str
    size_bytes: int
    locked_link: str


@dataclass(frozen=True)
class Stream:
    """Terminal artifact: one unlocked, directly playable file."""

    display_name: str
    title: str
    direct_url: str
    binge_group: str = ""


@dataclass(frozen=True)
class TrackedMagnet:
    """Local record of a magnet present in the remote debrid account."""

    hash: str
    remote_id: str
    tracked_at: datetime


@dataclass(frozen=True)
class CacheEntry(Generic[V]):
    """Value stored in a typed cache, stamped with its write time."""

    key: str
    value: V
    stored_at: datetime


@dataclass(frozen=True)
class UserPreferences:
    """Per-user preference lists (ordered, most preferred first)."""

    resolutions: tuple[str, ...]
    languages: tuple[str, ...]
    codecs: tuple[str, ...]
    output_cap: int = 5

    def fingerprint(self) -> str:
        """Stable short digest used as part of result cache keys."""
        payload = json.dumps(
            [self.resolutions, self.languages, self.codecs, self.output_cap],
            separators=(",", ":"),
        )
        return hashlib.sha1(payload.encode("utf-8")).hexdigest()[:12]
