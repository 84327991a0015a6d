"""Overlap between a place's tags and the traveller's expanded interests."""
from __future__ import annotations

import math
from typing import Iterable, Set

from planner.fuzzy.membership import clamp, trapezoid
from planner.fuzzy.tags import TagVocabulary, expand_interest, normalize_tags


def interest_pool(interests: Iterable[str] | None, vocabulary: TagVocabulary | None = None) -> Set[str]:
    pool: Set[str] = set()
    for interest in interests or []:
        pool |= expand_interest(interest, vocabulary)
    return pool


def interest_fit(
    place_tags: Iterable[str] | None,
    user_interests: Iterable[str] | None,
    vocabulary: TagVocabulary | None = None,
) -> float:
    """Fuzzy interest membership in [0, 1].

    Exact tag hits count 1, substring hits 0.5. The sum is damped by the square
    root of the tag count so tag-heavy places do not inflate, then shaped by a
    trapezoid that saturates on moderate overlap. Blank tags never match but
    still count towards the damping.
    """
    raw_tags = list(place_tags or [])
    if not raw_tags:
        return 0.0
    tags = normalize_tags(raw_tags, vocabulary)
    pool = interest_pool(user_interests, vocabulary)
    if not pool:
        return 0.0

    match_count = 0.0
    for tag in tags:
        if tag in pool:
            match_count += 1.0
        elif any(entry in tag or tag in entry for entry in pool):
            match_count += 0.5

    base = match_count / math.sqrt(len(raw_tags))
    return clamp(trapezoid(base, 0.15, 0.5, 1.0, 1.4))
