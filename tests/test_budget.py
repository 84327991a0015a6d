import pytest

from planner.fuzzy.budget import compute_budget_benchmarks, extract_price, price_membership
from planner.schemas import Place, PlaceCategory, UserPreferences


def _prefs(max_budget: float, start: str = "2025-01-10", end: str = "2025-01-12") -> UserPreferences:
    return UserPreferences(start_date=start, end_date=end, max_budget=max_budget)


def _hotel(base: float) -> Place:
    return Place(name="Hotel", pricing={"lodging": {"base": base}})


def test_extract_price_prefers_lodging_then_meal_then_day_use():
    both = Place(pricing={"lodging": {"base": 900}, "mealPlan": {"aLaCarteDefault": 250}})
    assert extract_price(both) == 900
    assert extract_price(Place(pricing={"mealPlan": {"aLaCarteDefault": 250}})) == 250
    assert extract_price(Place(pricing={"dayUse": {"dayPassPrice": 400}})) == 400
    assert extract_price(Place(name="Free")) == 0


def test_budget_benchmarks_split_daily_budget():
    benchmarks = compute_budget_benchmarks(3000, 3)
    assert benchmarks.hotel == pytest.approx(450)
    assert benchmarks.meal == pytest.approx(100)
    assert benchmarks.activity == pytest.approx(250 / 1.5)
    assert benchmarks.for_category(PlaceCategory.MEAL) == pytest.approx(100)


def test_hotel_under_benchmark_scores_full():
    prefs = _prefs(7000)
    assert prefs.days == 3
    assert compute_budget_benchmarks(7000, prefs.days).hotel == pytest.approx(1050)
    assert price_membership(_hotel(1000), prefs) == 1


def test_hotel_far_over_benchmark_floors_at_zero():
    prefs = _prefs(2100)
    assert compute_budget_benchmarks(2100, prefs.days).hotel == pytest.approx(315)
    assert price_membership(_hotel(1000), prefs) == 0


def test_linear_falloff_above_benchmark():
    meal = Place(name="Diner", pricing={"mealPlan": {"aLaCarteDefault": 150}})
    # meal benchmark: (3000 / 3 * 0.30) / 3 = 100
    assert price_membership(meal, _prefs(3000)) == pytest.approx(0.5)


def test_unconstrained_budget_or_free_place_is_not_penalised():
    assert price_membership(_hotel(99999), _prefs(0)) == 1
    assert price_membership(Place(name="Plaza"), _prefs(500)) == 1
