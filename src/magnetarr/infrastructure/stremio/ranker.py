"""Lexicographic (language, resolution, codec) ranking.

Each component is the index of the first preference token found in the
title, or ``inf`` when none matches. ``sorted`` is stable, so equal keys
keep the order the candidates arrived in (seeder pre-sort per source).
"""

from __future__ import annotations

import math
from typing import Sequence

from magnetarr.domain.entities.media import ClassifiedCandidate, UserPreferences

RankKey = tuple[float, float, float]


def preference_index(haystack: str, tokens: Sequence[str]) -> float:
    lowered = haystack.lower()
    for i, token in enumerate(tokens):
        if token and token.lower() in lowered:
            return float(i)
    return math.inf


def rank_key(item: ClassifiedCandidate, prefs: UserPreferences) -> RankKey:
    c = item.candidate
    lang_haystack = f"{c.display_title} {c.language_tag}"
    return (
        preference_index(lang_haystack, prefs.languages),
        preference_index(c.display_title, prefs.resolutions),
        preference_index(c.display_title, prefs.codecs),
    )


def rank(
    items: Sequence[ClassifiedCandidate], prefs: UserPreferences
) -> list[ClassifiedCandidate]:
    return sorted(items, key=lambda item: rank_key(item, prefs))
