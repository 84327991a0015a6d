"""Budget benchmarks and the price membership curve."""
from __future__ import annotations

from dataclasses import dataclass

from planner.fuzzy.classify import get_place_category
from planner.schemas import Place, PlaceCategory, UserPreferences

# Share of one day's budget and how many purchases it is spread over.
HOTEL_SHARE = 0.45
MEAL_SHARE = 0.30
MEALS_PER_DAY = 3
ACTIVITY_SHARE = 0.25
ACTIVITIES_PER_DAY = 1.5


@dataclass(frozen=True)
class BudgetBenchmarks:
    hotel: float
    meal: float
    activity: float

    def for_category(self, category: PlaceCategory) -> float:
        if category is PlaceCategory.HOTEL:
            return self.hotel
        if category is PlaceCategory.MEAL:
            return self.meal
        return self.activity


def extract_price(place: Place) -> float:
    """First present of nightly base, a-la-carte default, day-pass price; else 0."""
    pricing = place.pricing
    if pricing is None:
        return 0.0
    for value in (
        pricing.lodging.base if pricing.lodging else None,
        pricing.meal_plan.a_la_carte_default if pricing.meal_plan else None,
        pricing.day_use.day_pass_price if pricing.day_use else None,
    ):
        if value is not None:
            return float(value)
    return 0.0


def compute_budget_benchmarks(max_budget: float, days: int) -> BudgetBenchmarks:
    """Per-night, per-meal and per-activity ceilings derived from the trip budget."""
    daily_budget = max_budget / max(1, days)
    return BudgetBenchmarks(
        hotel=daily_budget * HOTEL_SHARE,
        meal=(daily_budget * MEAL_SHARE) / MEALS_PER_DAY,
        activity=(daily_budget * ACTIVITY_SHARE) / ACTIVITIES_PER_DAY,
    )


def price_membership(
    place: Place,
    preferences: UserPreferences,
    category: PlaceCategory | None = None,
) -> float:
    """1.0 at or under the category benchmark, falling linearly to 0 at twice it.

    An unconstrained budget or a free/unpriced place is never penalised.
    """
    price = extract_price(place)
    if preferences.max_budget <= 0 or price <= 0:
        return 1.0

    benchmarks = compute_budget_benchmarks(preferences.max_budget, preferences.days)
    benchmark = benchmarks.for_category(category or get_place_category(place))
    if benchmark <= 0:
        return 1.0
    if price <= benchmark:
        return 1.0
    return max(0.0, 1.0 - (price - benchmark) / benchmark)
