from .cache import CachePort
from .debrid import DebridClientPort
from .indexer import IndexerPort
from .metadata import MetadataClientPort
from .repositories import (
    FileListingCache,
    MagnetStatusCache,
    MagnetTrackerPort,
    MetadataCache,
    SearchResultCache,
    StreamResultCache,
)

__all__ = [
    "CachePort",
    "DebridClientPort",
    "FileListingCache",
    "IndexerPort",
    "MagnetStatusCache",
    "MagnetTrackerPort",
    "MetadataCache",
    "MetadataClientPort",
    "SearchResultCache",
    "StreamResultCache",
]
