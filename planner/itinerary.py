"""Assemble a day-by-day plan from scored candidates."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from planner.config import get_log_level
from planner.fuzzy.cost import activity_cost, hotel_night_price, meal_cost_with_hotel
from planner.fuzzy.score import ranking_key, score_place, to_place, to_preferences
from planner.fuzzy.tags import TagVocabulary, normalize_tag, normalize_tags
from planner.schemas import (
    Accommodation,
    DaySlot,
    ItineraryPlan,
    Place,
    PlaceCategory,
    PlanAlternatives,
    PlanMeta,
    PlanTotals,
    ScoredPlace,
    Slot,
    TierBucket,
    UserPreferences,
)

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
logger.setLevel(getattr(logging, get_log_level(), logging.INFO))
logger.propagate = False

HIGHLY_THRESHOLD = 0.75
CONSIDERABLE_THRESHOLD = 0.45
HIGHLY_LIMIT = 5
CONSIDERABLE_LIMIT = 15

# Hotels below the preferred lodging style survive filtering at or above this score.
LODGING_OVERRIDE_SCORE = 0.8
SEASON_ACTIVITY_PENALTY = 0.9

MEALS = ("breakfast", "lunch", "dinner")
ACTIVITY_SLOTS = ("morning", "afternoon", "night")


def day_has_hotel_coverage(day_index: int, nights: int) -> bool:
    """Every day but the trailing departure day sleeps at the hotel."""
    return 0 <= day_index < nights


def _tier_order(priority: str) -> Callable[[ScoredPlace], Tuple[Any, ...]]:
    if priority == "distance":
        return lambda p: (p.distance_km if p.distance_km is not None else float("inf"),) + ranking_key(p)
    if priority in ("price", "budget"):
        return lambda p: (p.ideal_cost if p.ideal_cost is not None else 0.0,) + ranking_key(p)
    return ranking_key


def bucket_alternatives(ranked: Iterable[ScoredPlace], priority: str = "balanced") -> TierBucket:
    """Split candidates into capped ``highly``/``considerable`` tiers ordered by ``priority``."""
    highly: List[ScoredPlace] = []
    considerable: List[ScoredPlace] = []
    for place in ranked:
        if place.score >= HIGHLY_THRESHOLD:
            highly.append(place)
        elif place.score >= CONSIDERABLE_THRESHOLD:
            considerable.append(place)

    order = _tier_order(priority)
    return TierBucket(
        highly=sorted(highly, key=order)[:HIGHLY_LIMIT],
        considerable=sorted(considerable, key=order)[:CONSIDERABLE_LIMIT],
    )


def _rank_by_category(
    places: Iterable[Place | Mapping[str, Any]],
    prefs: UserPreferences,
    vocabulary: TagVocabulary | None,
) -> Dict[PlaceCategory, List[ScoredPlace]]:
    ranked: Dict[PlaceCategory, List[ScoredPlace]] = {category: [] for category in PlaceCategory}
    for place in places:
        scored = score_place(to_place(place), prefs, vocabulary)
        ranked[scored.category].append(scored)
    for candidates in ranked.values():
        candidates.sort(key=ranking_key)
    return ranked


def _filter_lodging(
    hotels: List[ScoredPlace],
    prefs: UserPreferences,
    vocabulary: TagVocabulary | None,
) -> List[ScoredPlace]:
    preferred = normalize_tag(prefs.lodging_preference, vocabulary)
    if not preferred or preferred == "any":
        return hotels
    kept = [
        hotel
        for hotel in hotels
        if preferred in normalize_tags(hotel.tags, vocabulary) or hotel.score >= LODGING_OVERRIDE_SCORE
    ]
    logger.debug("Lodging preference %r kept %d of %d hotels", preferred, len(kept), len(hotels))
    return sorted(kept, key=ranking_key)


def _apply_season_bias(
    activities: List[ScoredPlace],
    prefs: UserPreferences,
    vocabulary: TagVocabulary | None,
) -> List[ScoredPlace]:
    wet = prefs.season_mode == "rainy"
    adjusted: List[ScoredPlace] = []
    penalised = 0
    for activity in activities:
        markers = {activity.kind.strip().lower(), *normalize_tags(activity.tags, vocabulary)}
        bias = 1.0
        if prefs.season_tolerance == "dry" and wet and markers & {"beach", "park"}:
            bias *= SEASON_ACTIVITY_PENALTY
        if prefs.season_tolerance == "wet" and not wet and markers & {"museum", "indoor"}:
            bias *= SEASON_ACTIVITY_PENALTY
        if bias != 1.0:
            penalised += 1
            activity = activity.model_copy(update={"score": max(0.0, activity.score * bias)})
        adjusted.append(activity)
    if penalised:
        logger.debug("Season tolerance %r penalised %d activities", prefs.season_tolerance, penalised)
    return sorted(adjusted, key=ranking_key)


def _with_cost(place: Optional[ScoredPlace], cost: float) -> Optional[ScoredPlace]:
    if place is None:
        return None
    return place.model_copy(update={"computed_cost": float(cost or 0.0)})


def _with_stay(place: ScoredPlace, nights: int) -> ScoredPlace:
    nightly = hotel_night_price(place)
    return place.model_copy(update={"nightly_price": nightly, "total_cost": nightly * nights})


def _activity_slot(pick: Optional[ScoredPlace], tiers: TierBucket) -> Slot:
    return Slot(
        selected=_with_cost(pick, activity_cost(pick)),
        alternatives=TierBucket(
            highly=[_with_cost(p, activity_cost(p)) for p in tiers.highly],
            considerable=[_with_cost(p, activity_cost(p)) for p in tiers.considerable],
        ),
    )


def _picks(ranked: Sequence[ScoredPlace], chained: bool) -> List[Optional[ScoredPlace]]:
    """Top three picks; short lists fall back to the best (or, chained, the previous) pick."""
    picks: List[Optional[ScoredPlace]] = []
    for idx in range(3):
        if idx < len(ranked):
            picks.append(ranked[idx])
        elif not ranked:
            picks.append(None)
        else:
            picks.append(picks[-1] if chained else ranked[0])
    return picks


def build_itinerary(
    places: Iterable[Place | Mapping[str, Any]],
    preferences: UserPreferences | Mapping[str, Any],
    vocabulary: TagVocabulary | None = None,
    generated_at: datetime | None = None,
) -> ItineraryPlan:
    """Rank every candidate and lay out lodging, meals and activities per day."""
    prefs = to_preferences(preferences)
    nights, days = prefs.nights, prefs.days

    ranked = _rank_by_category(places, prefs, vocabulary)
    hotels = _filter_lodging(ranked[PlaceCategory.HOTEL], prefs, vocabulary)
    meals = ranked[PlaceCategory.MEAL]
    activities = _apply_season_bias(ranked[PlaceCategory.ACTIVITY], prefs, vocabulary)

    hotel_tiers = bucket_alternatives(hotels, prefs.priority)
    meal_tiers = bucket_alternatives(meals, prefs.priority)
    activity_tiers = bucket_alternatives(activities, prefs.priority)

    selected_hotel = _with_stay(hotels[0], nights) if hotels else None
    accommodation = Accommodation(
        nights=nights,
        selected=selected_hotel,
        alternatives=TierBucket(
            highly=[_with_stay(p, nights) for p in hotel_tiers.highly],
            considerable=[_with_stay(p, nights) for p in hotel_tiers.considerable],
        ),
    )

    logger.info(
        "Building %d-day itinerary from %s: %d hotels, %d meal venues, %d activities (hotel=%s)",
        days,
        prefs.start_city.label or "unknown start",
        len(hotels),
        len(meals),
        len(activities),
        selected_hotel.name if selected_hotel else None,
    )

    meal_picks = _picks(meals, chained=False)
    activity_picks = _picks(activities, chained=True)

    out_days: List[DaySlot] = []
    for idx in range(days):
        covered = day_has_hotel_coverage(idx, nights)
        slots: Dict[str, Slot] = {}
        for meal_type, pick in zip(MEALS, meal_picks):
            slot = Slot(selected=pick, alternatives=meal_tiers)
            slots[meal_type] = _recost_meal_slot(slot, meal_type, selected_hotel, covered)
        for slot_name, pick in zip(ACTIVITY_SLOTS, activity_picks):
            slots[slot_name] = _activity_slot(pick, activity_tiers)
        out_days.append(DaySlot(date=prefs.start_date + timedelta(days=idx), **slots))

    meta = PlanMeta.model_validate(
        {**prefs.model_dump(), "generated_at": generated_at or datetime.now(timezone.utc)}
    )
    plan = ItineraryPlan(
        meta=meta,
        accommodation=accommodation,
        days=out_days,
        alternatives=PlanAlternatives(meal=meal_tiers, activity=activity_tiers),
    )
    return recompute_all_meal_costs(plan)


def _recost_meal_slot(slot: Slot, meal_type: str, hotel: Optional[ScoredPlace], covered: bool) -> Slot:
    def cost(place: Optional[ScoredPlace]) -> Optional[ScoredPlace]:
        return _with_cost(place, meal_cost_with_hotel(meal_type, place, hotel, covered))

    return Slot(
        selected=cost(slot.selected),
        alternatives=TierBucket(
            highly=[cost(p) for p in slot.alternatives.highly],
            considerable=[cost(p) for p in slot.alternatives.considerable],
        ),
    )


def recompute_all_meal_costs(plan: ItineraryPlan | Mapping[str, Any]) -> ItineraryPlan:
    """Return a copy whose meal costs follow the plan's own selected hotel.

    Lets a caller swap ``accommodation.selected`` without rebuilding the
    itinerary. The given plan is not modified.
    """
    source = plan if isinstance(plan, ItineraryPlan) else ItineraryPlan.model_validate(plan)
    updated = source.model_copy(deep=True)
    hotel = updated.accommodation.selected
    nights = updated.meta.nights

    days: List[DaySlot] = []
    for idx, day in enumerate(updated.days):
        covered = day_has_hotel_coverage(idx, nights)
        costed = {
            meal_type: _recost_meal_slot(getattr(day, meal_type), meal_type, hotel, covered)
            for meal_type in MEALS
        }
        days.append(day.model_copy(update=costed))
    updated.days = days
    return updated


def summarize_costs(plan: ItineraryPlan | Mapping[str, Any]) -> PlanTotals:
    """Hotel, meal and activity totals for the selected items of a plan."""
    source = plan if isinstance(plan, ItineraryPlan) else ItineraryPlan.model_validate(plan)
    hotel_total = hotel_night_price(source.accommodation.selected) * source.accommodation.nights

    meals_total = 0.0
    activities_total = 0.0
    for day in source.days:
        for meal_type in MEALS:
            selected = getattr(day, meal_type).selected
            meals_total += (selected.computed_cost or 0.0) if selected else 0.0
        for slot_name in ACTIVITY_SLOTS:
            selected = getattr(day, slot_name).selected
            activities_total += (selected.computed_cost or 0.0) if selected else 0.0

    grand_total = hotel_total + meals_total + activities_total
    max_budget = source.meta.max_budget
    return PlanTotals(
        hotel=hotel_total,
        meals=meals_total,
        activities=activities_total,
        grand_total=grand_total,
        max_budget=max_budget,
        budget_exceeded=max_budget > 0 and grand_total > max_budget,
    )
