"""Per-place cost lookups used when assembling a plan."""
from __future__ import annotations

from typing import Literal, Optional

from planner.schemas import Place

MealType = Literal["breakfast", "lunch", "dinner"]

# Charged for a meal venue that publishes no a-la-carte price.
DEFAULT_MEAL_PRICE = 300.0


def hotel_night_price(place: Optional[Place]) -> float:
    pricing = place.pricing if place else None
    if pricing is None or pricing.lodging is None or pricing.lodging.base is None:
        return 0.0
    return float(pricing.lodging.base)


def meal_a_la_carte_price(place: Optional[Place]) -> float:
    pricing = place.pricing if place else None
    value = pricing.meal_plan.a_la_carte_default if pricing and pricing.meal_plan else None
    if value is not None and value > 0:
        return float(value)
    return DEFAULT_MEAL_PRICE


def day_use_price(place: Optional[Place]) -> float:
    pricing = place.pricing if place else None
    if pricing is None or pricing.day_use is None or pricing.day_use.day_pass_price is None:
        return 0.0
    return float(pricing.day_use.day_pass_price)


def activity_cost(place: Optional[Place]) -> float:
    if place is None:
        return 0.0
    return day_use_price(place)


def meal_cost_with_hotel(
    meal_type: MealType,
    meal_place: Optional[Place],
    hotel_selected: Optional[Place],
    has_hotel_night_for_this_day: bool,
) -> float:
    """Cost of one meal slot.

    Free when the selected hotel covers this calendar day and its meal plan
    includes ``meal_type``; otherwise the venue's a-la-carte price.
    """
    if meal_place is None:
        return 0.0

    if hotel_selected is not None and has_hotel_night_for_this_day:
        pricing = hotel_selected.pricing
        meal_plan = pricing.meal_plan if pricing else None
        if meal_plan is not None and meal_plan.includes(meal_type):
            return 0.0

    return meal_a_la_carte_price(meal_place)
