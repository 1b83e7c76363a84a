from .media import (
    CacheEntry,
    CandidateCategory,
    ClassifiedBundle,
    ClassifiedCandidate,
    Magnet,
    MagnetReadiness,
    MediaMetadata,
    MediaQuery,
    MediaType,
    RawCandidate,
    Stream,
    TrackedMagnet,
    UserPreferences,
    VideoFile,
)
from .upstream import Failure, FailureKind, Success, UpstreamResult

__all__ = [
    "CacheEntry",
    "CandidateCategory",
    "ClassifiedBundle",
    "ClassifiedCandidate",
    "Failure",
    "FailureKind",
    "Magnet",
    "MagnetReadiness",
    "MediaMetadata",
    "MediaQuery",
    "MediaType",
    "RawCandidate",
    "Stream",
    "Success",
    "TrackedMagnet",
    "UpstreamResult",
    "UserPreferences",
    "VideoFile",
]
