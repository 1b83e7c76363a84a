"""Stream resolution use case.

IMDb id -> TMDB titles -> parallel indexer search -> classify -> rank
-> resolve hashes -> batch upload to the debrid account -> ready magnets
-> file listing -> unlock -> capped Stream list.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from dataclasses import replace
from typing import Protocol

import structlog

from magnetarr.domain.entities.media import (
    ClassifiedBundle,
    ClassifiedCandidate,
    Magnet,
    MediaMetadata,
    MediaQuery,
    RawCandidate,
    Stream,
    UserPreferences,
    VideoFile,
)
from magnetarr.domain.entities.upstream import Success
from magnetarr.domain.ports.debrid import DebridClientPort
from magnetarr.domain.ports.indexer import IndexerPort
from magnetarr.domain.ports.metadata import MetadataClientPort
from magnetarr.domain.ports.repositories import (
    FileListingCache,
    MagnetStatusCache,
    MagnetTrackerPort,
    StreamResultCache,
)

log = structlog.get_logger(__name__)


class _Classifier(Protocol):
    def classify(
        self,
        candidates: list[RawCandidate],
        query: MediaQuery,
        prefs: UserPreferences,
    ) -> ClassifiedBundle: ...


_RankFn = Callable[[Sequence[ClassifiedCandidate], UserPreferences], list[ClassifiedCandidate]]
_StreamKeyFn = Callable[[MediaQuery, UserPreferences], str]
_VideoFilterFn = Callable[[list[VideoFile]], list[VideoFile]]
_QueryFilterFn = Callable[[list[VideoFile], MediaQuery], list[VideoFile]]
_BuildStreamFn = Callable[..., Stream]

_CandidateId = tuple[str, str]


def _candidate_id(c: RawCandidate) -> _CandidateId:
    return (c.source_name, c.source_id)


class StreamResolutionUseCase:
    """Resolve one media query into at most ``output_cap`` playable streams.

    Upstream failures never raise: each one removes some candidates, magnets
    or files and the result shrinks, down to an empty list.
    """

    def __init__(
        self,
        *,
        metadata: MetadataClientPort,
        indexers: Sequence[IndexerPort],
        debrid: DebridClientPort,
        classifier: _Classifier,
        rank_fn: _RankFn,
        video_filter_fn: _VideoFilterFn,
        query_filter_fn: _QueryFilterFn,
        build_stream_fn: _BuildStreamFn,
        stream_key_fn: _StreamKeyFn,
        magnet_cache: MagnetStatusCache,
        files_cache: FileListingCache,
        stream_cache: StreamResultCache | None = None,
        tracker: MagnetTrackerPort | None = None,
        on_upload: Callable[[], None] | None = None,
        indexer_timeout_seconds: float = 20.0,
    ) -> None:
        self._metadata = metadata
        self._indexers = list(indexers)
        self._debrid = debrid
        self._classifier = classifier
        self._rank_fn = rank_fn
        self._video_filter_fn = video_filter_fn
        self._query_filter_fn = query_filter_fn
        self._build_stream_fn = build_stream_fn
        self._stream_key_fn = stream_key_fn
        self._magnet_cache = magnet_cache
        self._files_cache = files_cache
        self._stream_cache = stream_cache
        self._tracker = tracker
        self._on_upload = on_upload
        self._indexer_timeout = indexer_timeout_seconds

    async def execute(
        self, query: MediaQuery, preferences: UserPreferences
    ) -> list[Stream]:
        """Resolve streams for *query*, best first, at most ``output_cap``."""
        cap = preferences.output_cap
        if cap <= 0:
            return []

        key = self._stream_key_fn(query, preferences)
        if self._stream_cache is not None:
            cached = await self._stream_cache.get(key)
            if cached is not None:
                return cached[:cap]

        metadata = await self._metadata.lookup(query.external_id)
        if metadata is None:
            log.info("stream_metadata_not_found", external_id=query.external_id)
            return []

        raw, owners = await self._search_indexers(metadata, query)
        selected = self._collect(raw, query, preferences)
        if not selected:
            log.info("stream_no_candidates", external_id=query.external_id)
            return []

        hashes, sources = await self._resolve_hashes(selected, owners)
        magnets = await self._upload(hashes, sources)
        ready = [magnets[h] for h in hashes if h in magnets and magnets[h].is_ready]

        streams: list[Stream] = []
        used: list[str] = []
        for magnet in ready:
            if len(streams) >= cap:
                break
            before = len(streams)
            files = await self._files_for(magnet, query)
            await self._unlock_into(streams, files, magnet, metadata, query, cap)
            if len(streams) > before:
                used.append(magnet.hash)

        log.info(
            "stream_resolution_done",
            external_id=query.external_id,
            candidates=len(raw),
            selected=len(selected),
            hashes=len(hashes),
            ready=len(ready),
            streams=len(streams),
        )

        if streams and self._stream_cache is not None:
            await self._stream_cache.put(key, streams, magnet_hashes=used)
        return streams

    # ------------------------------------------------------------------
    # Search and selection
    # ------------------------------------------------------------------

    async def _search_indexers(
        self, metadata: MediaMetadata, query: MediaQuery
    ) -> tuple[list[RawCandidate], dict[_CandidateId, IndexerPort]]:
        """Search all indexers in parallel, each bounded by the timeout."""

        async def _search_one(indexer: IndexerPort) -> list[RawCandidate]:
            try:
                return await asyncio.wait_for(
                    indexer.search(
                        metadata.primary_title,
                        query.media_type,
                        query.season,
                        query.episode,
                        alternate_title=metadata.alternate_title or None,
                    ),
                    timeout=self._indexer_timeout,
                )
            except asyncio.TimeoutError:
                log.warning(
                    "indexer_search_timeout",
                    indexer=indexer.name,
                    timeout=self._indexer_timeout,
                )
                return []

        results = await asyncio.gather(*(_search_one(i) for i in self._indexers))

        raw: list[RawCandidate] = []
        owners: dict[_CandidateId, IndexerPort] = {}
        for indexer, candidates in zip(self._indexers, results):
            for c in candidates:
                owners.setdefault(_candidate_id(c), indexer)
                raw.append(c)
        return raw, owners

    def _collect(
        self,
        raw: list[RawCandidate],
        query: MediaQuery,
        preferences: UserPreferences,
    ) -> list[ClassifiedCandidate]:
        """Classify, deduplicate, rank, truncate to twice the output cap."""
        bundle = self._classifier.classify(raw, query, preferences)
        if bundle.is_empty():
            log.debug("classifier_kept_nothing", candidates=len(raw))
            return []

        seen: set[_CandidateId] = set()
        unique: list[ClassifiedCandidate] = []
        for item in bundle.for_media_type(query.media_type):
            cid = _candidate_id(item.candidate)
            if cid in seen:
                continue
            seen.add(cid)
            unique.append(item)

        ranked = self._rank_fn(unique, preferences)
        return ranked[: 2 * preferences.output_cap]

    async def _resolve_hashes(
        self,
        selected: list[ClassifiedCandidate],
        owners: dict[_CandidateId, IndexerPort],
    ) -> tuple[list[str], dict[str, str]]:
        """Ranked unique hashes plus hash -> source label."""

        async def _resolve(item: ClassifiedCandidate) -> str | None:
            c = item.candidate
            if c.content_hash:
                return c.content_hash
            indexer = owners.get(_candidate_id(c))
            if indexer is None:
                return None
            return await indexer.resolve_hash(c)

        resolved = await asyncio.gather(*(_resolve(item) for item in selected))

        hashes: list[str] = []
        sources: dict[str, str] = {}
        for item, h in zip(selected, resolved):
            if not h:
                log.debug("candidate_hash_unresolved", title=item.title)
                continue
            h = h.lower()
            if h in sources:
                continue
            sources[h] = item.source_name
            hashes.append(h)
        return hashes, sources

    # ------------------------------------------------------------------
    # Debrid
    # ------------------------------------------------------------------

    async def _upload(
        self, hashes: list[str], sources: dict[str, str]
    ) -> dict[str, Magnet]:
        """Merge cached magnets with one upload call for the rest."""
        cached = await asyncio.gather(*(self._magnet_cache.get(h) for h in hashes))
        magnets: dict[str, Magnet] = {
            h: m for h, m in zip(hashes, cached) if m is not None
        }
        missing = [h for h in hashes if h not in magnets]
        if not missing:
            return magnets

        result = await self._debrid.upload_magnets(missing)
        if not isinstance(result, Success):
            log.warning(
                "magnet_upload_failed",
                count=len(missing),
                kind=result.kind.value,
                detail=result.detail,
            )
            return magnets

        uploaded = [
            replace(m, source_name=sources.get(m.hash, m.source_name))
            for m in result.value
        ]
        for m in uploaded:
            magnets[m.hash] = m
            await self._magnet_cache.put(m)

        if uploaded and self._tracker is not None:
            await self._tracker.track(uploaded)
        if uploaded and self._on_upload is not None:
            self._on_upload()
        return magnets

    async def _files_for(self, magnet: Magnet, query: MediaQuery) -> list[VideoFile]:
        files = await self._files_cache.get(magnet.hash)
        if files is None:
            result = await self._debrid.get_files(magnet.remote_id)
            if not isinstance(result, Success):
                log.warning(
                    "magnet_files_failed",
                    hash=magnet.hash,
                    kind=result.kind.value,
                )
                return []
            files = self._video_filter_fn(result.value)
            await self._files_cache.put(magnet.hash, files)
        return self._query_filter_fn(files, query)

    async def _unlock_into(
        self,
        streams: list[Stream],
        files: list[VideoFile],
        magnet: Magnet,
        metadata: MediaMetadata,
        query: MediaQuery,
        cap: int,
    ) -> None:
        """Unlock *files* in batches no larger than the remaining cap."""
        pending = list(files)
        while pending and len(streams) < cap:
            remaining = cap - len(streams)
            batch, pending = pending[:remaining], pending[remaining:]
            results = await asyncio.gather(
                *(self._debrid.unlock(f.locked_link) for f in batch)
            )
            for file, result in zip(batch, results):
                if not isinstance(result, Success):
                    log.warning(
                        "file_unlock_failed",
                        file=file.name,
                        kind=result.kind.value,
                    )
                    continue
                streams.append(
                    self._build_stream_fn(
                        file=file,
                        direct_url=result.value,
                        magnet=magnet,
                        metadata=metadata,
                        query=query,
                    )
                )
