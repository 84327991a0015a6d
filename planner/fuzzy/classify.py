"""Place category detection (lodging / meal venue / activity)."""
from __future__ import annotations

from planner.fuzzy.tags import TagVocabulary, normalize_tags
from planner.schemas import Place, PlaceCategory

HOTEL_KINDS = frozenset({"hotel", "resort", "inn"})
MEAL_KINDS = frozenset({"restaurant"})
MEAL_TAGS = frozenset({"foodie"})


def get_place_category(place: Place, vocabulary: TagVocabulary | None = None) -> PlaceCategory:
    """Classify by pricing shape first, then by ``kind``/tags; defaults to activity."""
    pricing = place.pricing
    if pricing is not None:
        if pricing.lodging is not None and pricing.lodging.base is not None:
            return PlaceCategory.HOTEL
        if pricing.meal_plan is not None and pricing.meal_plan.a_la_carte_default is not None:
            return PlaceCategory.MEAL
        if pricing.day_use is not None and pricing.day_use.day_pass_price is not None:
            return PlaceCategory.ACTIVITY

    kind = place.kind.strip().lower()
    if kind in HOTEL_KINDS:
        return PlaceCategory.HOTEL
    if kind in MEAL_KINDS or MEAL_TAGS.intersection(normalize_tags(place.tags, vocabulary)):
        return PlaceCategory.MEAL
    return PlaceCategory.ACTIVITY
