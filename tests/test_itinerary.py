from datetime import date, datetime, timezone

import pytest

from planner.fuzzy.score import fuzzy_score
from planner.itinerary import (
    bucket_alternatives,
    build_itinerary,
    day_has_hotel_coverage,
    recompute_all_meal_costs,
    summarize_costs,
)
from planner.schemas import PlaceCategory, ScoredPlace, UserPreferences

GENERATED_AT = datetime(2025, 1, 1, tzinfo=timezone.utc)

HOTEL = {
    "id": "h1",
    "name": "Harbor Hotel",
    "kind": "hotel",
    "tags": ["hotel"],
    "pricing": {"lodging": {"base": 1000}, "mealPlan": {"breakfastIncluded": True}},
}
PLAIN_HOTEL = {
    "id": "h2",
    "name": "Plain Hotel",
    "kind": "hotel",
    "pricing": {"lodging": {"base": 800}},
}
BISTRO = {
    "id": "m1",
    "name": "Bistro",
    "kind": "restaurant",
    "tags": ["foodie"],
    "pricing": {"mealPlan": {"aLaCarteDefault": 200}},
}
POOL = {
    "id": "a1",
    "name": "Resort Pool",
    "kind": "activity",
    "pricing": {"dayUse": {"dayPassPrice": 100}},
}


def _prefs(**overrides) -> UserPreferences:
    data = {
        "startCity": {"label": "Manila", "lat": 14.5995, "lng": 120.9842},
        "startDate": "2025-01-10",
        "endDate": "2025-01-12",
        "maxBudget": 0,
        "interests": [],
        "seasonMode": "dry",
    }
    data.update(overrides)
    return UserPreferences.model_validate(data)


def _scored(idx: int, score: float, **extra) -> ScoredPlace:
    return ScoredPlace(id=f"p{idx:02d}", name=f"Place {idx}", score=score, **extra)


def test_coverage_excludes_trailing_day():
    assert [day_has_hotel_coverage(i, 2) for i in range(3)] == [True, True, False]
    assert day_has_hotel_coverage(0, 0) is False


def test_tier_thresholds_are_inclusive_at_lower_bounds():
    tiers = bucket_alternatives([_scored(1, 0.75), _scored(2, 0.45), _scored(3, 0.4499)])
    assert [p.id for p in tiers.highly] == ["p01"]
    assert [p.id for p in tiers.considerable] == ["p02"]


def test_tiers_are_capped():
    ranked = [_scored(i, 0.9) for i in range(10)] + [_scored(i, 0.5) for i in range(10, 30)]
    tiers = bucket_alternatives(ranked)
    assert len(tiers.highly) == 5
    assert len(tiers.considerable) == 15
    assert [p.id for p in tiers.highly] == ["p00", "p01", "p02", "p03", "p04"]


def test_tiers_follow_priority_order():
    ranked = [
        _scored(1, 0.95, distance_km=30, ideal_cost=50),
        _scored(2, 0.85, distance_km=10, ideal_cost=500),
        _scored(3, 0.80, distance_km=20, ideal_cost=150),
    ]
    assert [p.id for p in bucket_alternatives(ranked, "distance").highly] == ["p02", "p03", "p01"]
    assert [p.id for p in bucket_alternatives(ranked, "budget").highly] == ["p01", "p03", "p02"]
    assert [p.id for p in bucket_alternatives(ranked, "balanced").highly] == ["p01", "p02", "p03"]


def test_builds_one_slot_per_calendar_day():
    plan = build_itinerary([HOTEL, BISTRO, POOL], _prefs(), generated_at=GENERATED_AT)
    assert plan.meta.nights == 2
    assert plan.meta.generated_at == GENERATED_AT
    assert [d.date for d in plan.days] == [date(2025, 1, 10), date(2025, 1, 11), date(2025, 1, 12)]


def test_accommodation_costs_cover_every_night():
    plan = build_itinerary([HOTEL, BISTRO, POOL], _prefs())
    selected = plan.accommodation.selected
    assert selected.id == "h1"
    assert selected.category is PlaceCategory.HOTEL
    assert selected.nightly_price == 1000
    assert selected.total_cost == 2000
    assert plan.accommodation.nights == 2


def test_included_breakfast_is_free_only_on_covered_days():
    plan = build_itinerary([HOTEL, BISTRO, POOL], _prefs())
    breakfasts = [d.breakfast.selected.computed_cost for d in plan.days]
    lunches = [d.lunch.selected.computed_cost for d in plan.days]
    assert breakfasts == [0, 0, 200]
    assert lunches == [200, 200, 200]
    assert all(d.morning.selected.computed_cost == 100 for d in plan.days)


def test_same_day_trip_prices_every_meal():
    plan = build_itinerary([HOTEL, BISTRO, POOL], _prefs(endDate="2025-01-10"))
    assert len(plan.days) == 1
    assert plan.accommodation.selected is not None
    assert plan.accommodation.selected.total_cost == 0
    day = plan.days[0]
    assert [day.breakfast.selected.computed_cost, day.lunch.selected.computed_cost, day.dinner.selected.computed_cost] == [200, 200, 200]


def test_unpriced_foodie_venue_costs_default_meal_price():
    carinderia = {"id": "m9", "name": "Carinderia", "tags": ["foodie"]}
    plan = build_itinerary([carinderia], _prefs())
    assert plan.days[0].dinner.selected.id == "m9"
    assert plan.days[0].dinner.selected.computed_cost == 300


def test_meal_and_activity_picks_fall_back_when_short():
    meals = [
        {"id": "m1", "name": "Best", "kind": "restaurant", "tags": ["foodie"]},
        {"id": "m2", "name": "Second", "kind": "restaurant"},
    ]
    acts = [
        {"id": "a1", "name": "Top", "kind": "museum", "tags": ["museum"]},
        {"id": "a2", "name": "Next", "kind": "park"},
    ]
    plan = build_itinerary(meals + acts, _prefs(interests=["foodie", "culture"]))
    day = plan.days[0]
    assert (day.breakfast.selected.id, day.lunch.selected.id, day.dinner.selected.id) == ("m1", "m2", "m1")
    assert (day.morning.selected.id, day.afternoon.selected.id, day.night.selected.id) == ("a1", "a2", "a2")


def test_empty_pool_yields_empty_plan():
    plan = build_itinerary([], _prefs())
    assert plan.accommodation.selected is None
    assert plan.accommodation.alternatives.highly == []
    assert len(plan.days) == 3
    for day in plan.days:
        assert day.breakfast.selected is None
        assert day.night.selected is None
        assert day.lunch.alternatives.considerable == []


def test_lodging_preference_filters_weak_mismatches():
    homestay = {"id": "h3", "name": "Lola's", "kind": "hotel", "tags": ["homestay"]}
    plan = build_itinerary([PLAIN_HOTEL, homestay], _prefs(lodgingPreference="homestay"))
    assert plan.accommodation.selected.id == "h3"


def test_lodging_filter_keeps_excellent_alternatives():
    strong = {
        "id": "h4",
        "name": "Beach Palace",
        "kind": "resort",
        "tags": ["beach"],
        "coordinates": {"lat": 14.6, "lng": 120.98},
    }
    prefs = _prefs(lodgingPreference="homestay", interests=["beach"])
    assert fuzzy_score(strong, prefs) >= 0.8
    plan = build_itinerary([strong], prefs)
    assert plan.accommodation.selected.id == "h4"


def test_season_tolerance_penalises_beach_activities_in_rainy_season():
    beach = {"id": "a", "name": "Cove", "kind": "beach"}
    gallery = {"id": "b", "name": "Gallery", "kind": "gallery"}
    neutral = build_itinerary([beach, gallery], _prefs(seasonMode="rainy"))
    assert neutral.days[0].morning.selected.id == "a"
    biased = build_itinerary([beach, gallery], _prefs(seasonMode="rainy", seasonTolerance="dry"))
    assert biased.days[0].morning.selected.id == "b"
    assert biased.days[0].afternoon.selected.score == pytest.approx(0.15 * 0.9)


def test_recompute_is_idempotent():
    plan = build_itinerary([HOTEL, BISTRO, POOL], _prefs())
    once = recompute_all_meal_costs(plan)
    twice = recompute_all_meal_costs(once)
    assert once.model_dump() == twice.model_dump()


def test_recompute_follows_swapped_hotel_without_touching_input():
    plan = build_itinerary([HOTEL, PLAIN_HOTEL, BISTRO, POOL], _prefs())
    assert plan.days[0].breakfast.selected.computed_cost == 0

    swapped = plan.model_copy(deep=True)
    swapped.accommodation.selected = ScoredPlace.model_validate(PLAIN_HOTEL)
    refreshed = recompute_all_meal_costs(swapped)

    assert refreshed.days[0].breakfast.selected.computed_cost == 200
    assert swapped.days[0].breakfast.selected.computed_cost == 0
    assert plan.days[0].breakfast.selected.computed_cost == 0


def test_recompute_accepts_serialized_plan():
    plan = build_itinerary([HOTEL, BISTRO, POOL], _prefs())
    payload = plan.model_dump(mode="json", by_alias=True)
    refreshed = recompute_all_meal_costs(payload)
    assert [d.breakfast.selected.computed_cost for d in refreshed.days] == [0, 0, 200]


def test_summarize_costs_flags_budget_overrun():
    plan = build_itinerary([PLAIN_HOTEL, BISTRO, POOL], _prefs(maxBudget=4000))
    totals = summarize_costs(plan)
    assert totals.hotel == 1600
    assert totals.meals == 1800
    assert totals.activities == 900
    assert totals.grand_total == 4300
    assert totals.budget_exceeded is True


def test_builder_does_not_mutate_inputs():
    places = [dict(HOTEL), dict(BISTRO), dict(POOL)]
    snapshot = [dict(p) for p in places]
    build_itinerary(places, _prefs())
    assert places == snapshot
