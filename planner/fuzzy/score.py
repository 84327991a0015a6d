"""Composite fuzzy scorer and its explainable twin."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Iterable, List, Mapping, Tuple

from planner.config import get_log_level
from planner.fuzzy.budget import price_membership
from planner.fuzzy.classify import get_place_category
from planner.fuzzy.cost import day_use_price, hotel_night_price, meal_a_la_carte_price
from planner.fuzzy.interest import interest_fit
from planner.fuzzy.membership import clamp, trapezoid
from planner.fuzzy.tags import TagVocabulary, normalize_tag, normalize_tags
from planner.schemas import (
    FuzzyComponents,
    Place,
    PlaceCategory,
    ScoreBreakdown,
    ScoredPlace,
    UserPreferences,
    Weights,
)
from planner.tools.geo import MISSING_DISTANCE_KM, km_from_start

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
logger.setLevel(getattr(logging, get_log_level(), logging.INFO))
logger.propagate = False

# Lodging leans on price, everything else on interest.
_BASE_WEIGHTS: Mapping[bool, Mapping[str, float]] = {
    True: {"interest": 0.40, "distance": 0.25, "price": 0.35},
    False: {"interest": 0.60, "distance": 0.25, "price": 0.15},
}

# priority -> (weight inflated, boost)
_PRIORITY_BOOSTS: Mapping[str, Tuple[str, float]] = {
    "interest": ("interest", 0.30),
    "distance": ("distance", 0.25),
    "price": ("price", 0.25),
    "budget": ("price", 0.25),
}

LODGING_MATCH_BOOST = 1.4
LODGING_MISMATCH_PENALTY = 0.85
TRAVELER_TYPE_BOOST = 1.2

# (user interests, place tags, factor): applies when both sides intersect.
_THEME_BOOSTS: Tuple[Tuple[FrozenSet[str], FrozenSet[str], float], ...] = (
    (frozenset({"mountain"}), frozenset({"mountain"}), 1.15),
    (
        frozenset({"nature"}),
        frozenset({"nature", "scenic_view", "trekking", "hiking", "zipline"}),
        1.12,
    ),
    (frozenset({"beach"}), frozenset({"beach"}), 1.08),
    (frozenset({"eco_resort"}), frozenset({"eco_resort", "resort"}), 1.12),
    (frozenset({"hotel"}), frozenset({"hotel"}), 1.10),
    (frozenset({"family_friendly"}), frozenset({"family_friendly"}), 1.15),
    (
        frozenset({"culture", "heritage"}),
        frozenset({"culture", "heritage", "museum", "art_gallery"}),
        1.10,
    ),
)

INDOOR_FRIENDLY_TAGS = frozenset({
    "food",
    "foodie",
    "restaurant",
    "cafe",
    "local_cuisine",
    "shopping",
    "mall",
    "market",
    "museum",
    "art_gallery",
    "heritage",
    "indoor",
})

# season -> [(place tags, factor, description)]
_SEASON_EFFECTS: Mapping[str, Tuple[Tuple[FrozenSet[str], float, str], ...]] = {
    "dry": (
        (frozenset({"beach", "island", "scenic_view"}), 1.20, "Dry season boost for beach/island/scenic (+20%)"),
        (frozenset({"mountain", "hiking"}), 1.10, "Dry season boost for mountain/hiking (+10%)"),
        (frozenset({"waterfall", "lake"}), 0.85, "Dry season penalty for waterfall/lake (-15%)"),
    ),
    "rainy": (
        (
            frozenset({"waterfall", "lake", "forest", "nature"}),
            1.18,
            "Rainy season boost for waterfall/lake/forest/nature (+18%)",
        ),
        (INDOOR_FRIENDLY_TAGS, 1.10, "Rainy season boost for indoor-friendly places (+10%)"),
        (frozenset({"beach", "island"}), 0.80, "Rainy season penalty for beach/island (-20%)"),
        (
            frozenset({"mountain", "hiking", "camping"}),
            0.75,
            "Rainy season penalty for mountain/hiking/camping (-25%)",
        ),
    ),
}


@dataclass
class _Evaluation:
    place: str
    category: PlaceCategory
    normalized_tags: List[str]
    distance_km: float
    interest_fit: float
    distance_fit: float
    price_fit: float
    weights: Dict[str, float]
    priority: str
    applied_boosts: Dict[str, float]
    traveler_type: str
    lodging_preference: str
    season_mode: str
    seasonal_effects: List[str] = field(default_factory=list)
    theme_factor: float = 1.0
    kind_multiplier: float = 1.0
    score: float = 0.0


def to_place(place: Place | Mapping[str, Any]) -> Place:
    return place if isinstance(place, Place) else Place.model_validate(place)


def to_preferences(preferences: UserPreferences | Mapping[str, Any]) -> UserPreferences:
    if isinstance(preferences, UserPreferences):
        return preferences
    return UserPreferences.model_validate(preferences)


def distance_membership(distance_km: float) -> float:
    """Ramps up to full credit at 15 km, holds to 60 km, gone by 140 km."""
    return trapezoid(distance_km, 0, 15, 60, 140)


def season_multiplier(normalized_tags: Iterable[str], season_mode: str | None) -> Tuple[float, List[str]]:
    """Multiplicative seasonal bias and the descriptions of the effects that fired."""
    tags = set(normalized_tags)
    factor = 1.0
    effects: List[str] = []
    for group, boost, description in _SEASON_EFFECTS.get(season_mode or "", ()):
        if tags & group:
            factor *= boost
            effects.append(description)
    return factor, effects


def _theme_factor(normalized_tags: Iterable[str], user_interests: Iterable[str]) -> float:
    tags = set(normalized_tags)
    interests = set(user_interests)
    factor = 1.0
    for wanted, present, boost in _THEME_BOOSTS:
        if interests & wanted and tags & present:
            factor *= boost
    return factor


def _weights(is_lodging: bool, priority: str) -> Tuple[Dict[str, float], Dict[str, float]]:
    weights = dict(_BASE_WEIGHTS[is_lodging])
    applied: Dict[str, float] = {}
    if priority in _PRIORITY_BOOSTS:
        key, boost = _PRIORITY_BOOSTS[priority]
        weights[key] *= 1 + boost
        applied[key] = boost
    total = sum(weights.values())
    return {key: value / total for key, value in weights.items()}, applied


def _evaluate(place: Place, preferences: UserPreferences, vocabulary: TagVocabulary | None) -> _Evaluation:
    norm_tags = normalize_tags(place.tags, vocabulary)
    tag_set = set(norm_tags)
    raw_interests = {normalize_tag(i, vocabulary) for i in preferences.interests} - {""}
    category = get_place_category(place, vocabulary)
    is_lodging = category is PlaceCategory.HOTEL
    lodging_pref = normalize_tag(preferences.lodging_preference, vocabulary) or "any"
    season_mode = preferences.season_mode or "dry"

    distance = km_from_start(place, preferences.start_city)
    if distance >= MISSING_DISTANCE_KM:
        logger.debug("Missing coordinates for %r; treating as %.0f km away", place.name, distance)

    interest_value = interest_fit(place.tags, preferences.interests, vocabulary)
    distance_value = distance_membership(distance)
    price_value = price_membership(place, preferences, category)

    multiplier = 1.0
    if is_lodging and lodging_pref != "any":
        multiplier *= LODGING_MATCH_BOOST if lodging_pref in tag_set else LODGING_MISMATCH_PENALTY

    if preferences.travel_type in ("family", "group"):
        if "family_friendly" in tag_set:
            multiplier *= TRAVELER_TYPE_BOOST
    elif preferences.travel_type == "couple":
        if "romantic" in tag_set:
            multiplier *= TRAVELER_TYPE_BOOST

    theme = _theme_factor(tag_set, raw_interests)
    multiplier *= theme

    seasonal, effects = season_multiplier(tag_set, season_mode)
    multiplier *= seasonal

    weights, applied = _weights(is_lodging, preferences.priority)
    weighted = (
        weights["interest"] * interest_value
        + weights["distance"] * distance_value
        + weights["price"] * price_value
    )

    return _Evaluation(
        place=place.name,
        category=category,
        normalized_tags=norm_tags,
        distance_km=distance,
        interest_fit=interest_value,
        distance_fit=distance_value,
        price_fit=price_value,
        weights=weights,
        priority=preferences.priority,
        applied_boosts=applied,
        traveler_type=preferences.travel_type,
        lodging_preference=lodging_pref,
        season_mode=season_mode,
        seasonal_effects=effects,
        theme_factor=theme,
        kind_multiplier=multiplier,
        score=clamp(weighted * multiplier),
    )


def fuzzy_score(
    place: Place | Mapping[str, Any],
    preferences: UserPreferences | Mapping[str, Any],
    vocabulary: TagVocabulary | None = None,
) -> float:
    """Score in [0, 1] of how well ``place`` suits ``preferences``."""
    return _evaluate(to_place(place), to_preferences(preferences), vocabulary).score


def explain_score(
    place: Place | Mapping[str, Any],
    preferences: UserPreferences | Mapping[str, Any],
    vocabulary: TagVocabulary | None = None,
) -> ScoreBreakdown:
    """Same number as ``fuzzy_score`` plus every intermediate that produced it."""
    ev = _evaluate(to_place(place), to_preferences(preferences), vocabulary)
    return ScoreBreakdown(
        place=ev.place,
        category=ev.category,
        normalized_tags=ev.normalized_tags,
        distance_km=ev.distance_km,
        fuzzy_components=FuzzyComponents(
            interest_fit=ev.interest_fit,
            distance_fit=ev.distance_fit,
            price_fit=ev.price_fit,
        ),
        normalized_weights=Weights(**ev.weights),
        priority_used=ev.priority,
        applied_boosts=ev.applied_boosts,
        traveler_type=ev.traveler_type,
        lodging_preference=ev.lodging_preference,
        season_mode=ev.season_mode,
        seasonal_effects=ev.seasonal_effects,
        theme_boost_factor=ev.theme_factor,
        kind_multiplier_used=ev.kind_multiplier,
        final_score=ev.score,
    )


def ideal_cost(place: Place, category: PlaceCategory) -> float:
    """The record's own ``idealCost`` when present, else its category price."""
    if place.ideal_cost is not None:
        return place.ideal_cost
    if category is PlaceCategory.HOTEL:
        return hotel_night_price(place)
    if category is PlaceCategory.MEAL:
        return meal_a_la_carte_price(place)
    return day_use_price(place)


def score_place(
    place: Place | Mapping[str, Any],
    preferences: UserPreferences | Mapping[str, Any],
    vocabulary: TagVocabulary | None = None,
) -> ScoredPlace:
    """Decorated copy of ``place``; the source record is left untouched."""
    source = to_place(place)
    ev = _evaluate(source, to_preferences(preferences), vocabulary)
    data = source.model_dump()
    data.update(
        score=ev.score,
        category=ev.category,
        distance_km=ev.distance_km,
        ideal_cost=ideal_cost(source, ev.category),
    )
    return ScoredPlace.model_validate(data)


def ranking_key(place: ScoredPlace) -> Tuple[float, str, str]:
    """Descending score; equal scores fall back to id then name."""
    return (-place.score, "" if place.id is None else str(place.id), place.name)


def rank_destinations(
    places: Iterable[Place | Mapping[str, Any]],
    preferences: UserPreferences | Mapping[str, Any],
    vocabulary: TagVocabulary | None = None,
) -> List[ScoredPlace]:
    prefs = to_preferences(preferences)
    scored = [score_place(place, prefs, vocabulary) for place in places]
    return sorted(scored, key=ranking_key)
