"""Candidate classification into complete-series / season / episode / movie.

Each category is an independent predicate on the display title, so one
candidate may land in several collections. Series candidates matching no
structural predicate are dropped.
"""

from __future__ import annotations

import re
from typing import Iterable

import structlog

from magnetarr.domain.entities.media import (
    CandidateCategory,
    ClassifiedBundle,
    ClassifiedCandidate,
    MediaQuery,
    RawCandidate,
    UserPreferences,
)
from magnetarr.infrastructure.config.schema import ClassifierConfig

log = structlog.get_logger(__name__)


def _contains_any(haystack: str, tokens: Iterable[str]) -> bool:
    return any(t.lower() in haystack for t in tokens if t)


def is_complete_series(title: str, marker: str = "COMPLETE") -> bool:
    return marker.upper() in title.upper()


def is_complete_season(title: str, season: int) -> bool:
    """``S01`` present, but no ``S01E..`` / ``S01.E..`` episode marker."""
    lowered = title.lower()
    ss = f"s{season:02d}"
    if ss not in lowered:
        return False
    return re.search(rf"{ss}\.?e\d+", lowered) is None


def is_episode(title: str, season: int, episode: int) -> bool:
    lowered = title.lower()
    ss, ee = f"s{season:02d}", f"e{episode:02d}"
    return f"{ss}{ee}" in lowered or f"{ss}.{ee}" in lowered


def matches_preferences(candidate: RawCandidate, prefs: UserPreferences) -> bool:
    """AND across the three lists, OR within each list.

    Languages also match the indexer's language tag when present.
    """
    title = candidate.display_title.lower()
    lang_haystack = f"{title} {candidate.language_tag.lower()}"
    return (
        _contains_any(title, prefs.resolutions)
        and _contains_any(lang_haystack, prefs.languages)
        and _contains_any(title, prefs.codecs)
    )


class CandidateClassifier:
    """Partitions raw candidates for one query.

    ``gate_series_packs`` decides whether complete-series and
    complete-season packs must also match the preference lists. Episode
    and movie candidates always do.
    """

    def __init__(self, config: ClassifierConfig | None = None) -> None:
        config = config or ClassifierConfig()
        self._gate_packs = config.gate_series_packs
        self._marker = config.complete_marker

    def classify(
        self,
        candidates: list[RawCandidate],
        query: MediaQuery,
        prefs: UserPreferences,
    ) -> ClassifiedBundle:
        bundle = ClassifiedBundle()

        for c in candidates:
            title = c.display_title
            gated = matches_preferences(c, prefs)

            if query.media_type == "movie":
                if gated:
                    bundle.movie.append(
                        ClassifiedCandidate(candidate=c, category=CandidateCategory.MOVIE)
                    )
                continue

            pack_ok = gated or not self._gate_packs

            if pack_ok and is_complete_series(title, self._marker):
                bundle.complete_series.append(
                    ClassifiedCandidate(
                        candidate=c, category=CandidateCategory.COMPLETE_SERIES
                    )
                )
            if (
                pack_ok
                and query.season is not None
                and is_complete_season(title, query.season)
            ):
                bundle.complete_season.append(
                    ClassifiedCandidate(
                        candidate=c, category=CandidateCategory.COMPLETE_SEASON
                    )
                )
            if (
                gated
                and query.season is not None
                and query.episode is not None
                and is_episode(title, query.season, query.episode)
            ):
                bundle.episode.append(
                    ClassifiedCandidate(candidate=c, category=CandidateCategory.EPISODE)
                )

        log.debug(
            "candidates_classified",
            external_id=query.external_id,
            total=len(candidates),
            complete_series=len(bundle.complete_series),
            complete_season=len(bundle.complete_season),
            episode=len(bundle.episode),
            movie=len(bundle.movie),
        )
        return bundle
