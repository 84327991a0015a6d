from __future__ import annotations

import math
import datetime as dt
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Iterable, List, Literal, Mapping, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

Priority = Literal["balanced", "interest", "distance", "price", "budget"]
TravelType = Literal["any", "family", "group", "couple"]
SeasonMode = Literal["dry", "rainy"]
SeasonTolerance = Literal["any", "dry", "wet"]

_PRIORITIES = ("balanced", "interest", "distance", "price", "budget")
_TRAVEL_TYPES = ("any", "family", "group", "couple")
_FALSY_STRINGS = {"", "0", "false", "no", "off", "none", "null"}


def _coerce_number(value: Any) -> Optional[float]:
    """Best-effort float; anything unusable becomes ``None``."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def _coerce_flag(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in _FALSY_STRINGS
    return bool(value)


def _string_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        value = [value]
    elif not isinstance(value, Iterable) or isinstance(value, Mapping):
        return []
    items: List[str] = []
    for item in value:
        if item is None:
            continue
        text = str(item).strip()
        if text:
            items.append(text)
    return items


def _mapping_or_none(value: Any) -> Any:
    """Nested records must be objects; scalars and lists are treated as missing."""
    if value is None or isinstance(value, (Mapping, BaseModel)):
        return value
    return None


def _iso_date(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str) and "T" in value:
        return value.split("T", 1)[0]
    return value


def season_mode_for(day: date) -> SeasonMode:
    """June through October is treated as the rainy season."""
    return "rainy" if 6 <= day.month <= 10 else "dry"


class PlaceCategory(str, Enum):
    HOTEL = "hotel"
    MEAL = "meal"
    ACTIVITY = "activity"


# ------- Place records -------
class Coordinates(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    lat: Optional[float] = Field(None, validation_alias=AliasChoices("lat", "latitude"))
    lng: Optional[float] = Field(None, validation_alias=AliasChoices("lng", "lon", "longitude"))

    _numbers = field_validator("lat", "lng", mode="before")(_coerce_number)


class LodgingPricing(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel, extra="allow")

    base: Optional[float] = None

    _numbers = field_validator("base", mode="before")(_coerce_number)


class MealPlan(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel, extra="allow")

    a_la_carte_default: Optional[float] = None
    breakfast_included: bool = False
    lunch_included: bool = False
    dinner_included: bool = False

    _numbers = field_validator("a_la_carte_default", mode="before")(_coerce_number)
    _flags = field_validator(
        "breakfast_included", "lunch_included", "dinner_included", mode="before"
    )(_coerce_flag)

    def includes(self, meal_type: str) -> bool:
        return bool(getattr(self, f"{meal_type}_included", False))


class DayUsePricing(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel, extra="allow")

    day_pass_price: Optional[float] = None

    _numbers = field_validator("day_pass_price", mode="before")(_coerce_number)


class Pricing(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel, extra="allow")

    lodging: Optional[LodgingPricing] = None
    meal_plan: Optional[MealPlan] = None
    day_use: Optional[DayUsePricing] = None

    _records = field_validator("lodging", "meal_plan", "day_use", mode="before")(_mapping_or_none)


class Place(BaseModel):
    """A candidate venue. Unknown keys are kept so decorated copies stay faithful."""

    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel, extra="allow")

    id: Optional[Union[int, str]] = None
    name: str = ""
    kind: str = ""
    tags: List[str] = Field(default_factory=list)
    coordinates: Optional[Coordinates] = None
    pricing: Optional[Pricing] = None
    activities: List[str] = Field(default_factory=list)
    ideal_cost: Optional[float] = None

    _records = field_validator("coordinates", "pricing", mode="before")(_mapping_or_none)

    @model_validator(mode="before")
    @classmethod
    def _lift_coordinates(cls, data: Any) -> Any:
        # Some records carry lat/lng at the top level or under "Coordinates".
        if not isinstance(data, dict) or data.get("coordinates") is not None:
            return data
        data = dict(data)
        if isinstance(data.get("Coordinates"), dict):
            data["coordinates"] = data.pop("Coordinates")
            return data
        lat = data.get("lat", data.get("latitude"))
        lng = data.get("lng", data.get("longitude"))
        if lat is not None or lng is not None:
            data["coordinates"] = {"lat": lat, "lng": lng}
        return data

    @field_validator("id", mode="before")
    @classmethod
    def _id(cls, value: Any) -> Any:
        return value if value is None or isinstance(value, (int, str)) else str(value)

    @field_validator("name", "kind", mode="before")
    @classmethod
    def _text(cls, value: Any) -> str:
        return "" if value is None else str(value)

    @field_validator("tags", "activities", mode="before")
    @classmethod
    def _lists(cls, value: Any) -> List[str]:
        return _string_list(value)

    @field_validator("ideal_cost", mode="before")
    @classmethod
    def _ideal_cost(cls, value: Any) -> Optional[float]:
        return _coerce_number(value)


class ScoredPlace(Place):
    """A place decorated by one scoring pass."""

    score: float = 0.0
    category: PlaceCategory = PlaceCategory.ACTIVITY
    distance_km: Optional[float] = None
    nightly_price: Optional[float] = None
    total_cost: Optional[float] = None
    computed_cost: Optional[float] = None


# ------- Preferences -------
class StartCity(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    label: str = ""
    lat: Optional[float] = Field(None, validation_alias=AliasChoices("lat", "latitude"))
    lng: Optional[float] = Field(None, validation_alias=AliasChoices("lng", "lon", "longitude"))

    _numbers = field_validator("lat", "lng", mode="before")(_coerce_number)


class UserPreferences(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel, extra="ignore")

    start_city: StartCity = Field(default_factory=StartCity)
    start_date: date
    end_date: date
    max_budget: float = Field(0.0, ge=0)
    interests: List[str] = Field(default_factory=list)
    priority: Priority = "balanced"
    travel_type: TravelType = "any"
    lodging_preference: str = "any"
    season_mode: Optional[SeasonMode] = None
    season_tolerance: SeasonTolerance = "any"

    @field_validator("start_date", "end_date", mode="before")
    @classmethod
    def _dates(cls, value: Any) -> Any:
        return _iso_date(value)

    @field_validator("start_city", mode="before")
    @classmethod
    def _start_city(cls, value: Any) -> Any:
        return value if value is not None else {}

    @field_validator("max_budget", mode="before")
    @classmethod
    def _budget(cls, value: Any) -> Any:
        return 0.0 if value is None or value == "" else value

    @field_validator("interests", mode="before")
    @classmethod
    def _interests(cls, value: Any) -> List[str]:
        return _string_list(value)

    @field_validator("priority", mode="before")
    @classmethod
    def _priority(cls, value: Any) -> str:
        key = str(value or "").strip().lower()
        return key if key in _PRIORITIES else "balanced"

    @field_validator("travel_type", mode="before")
    @classmethod
    def _travel_type(cls, value: Any) -> str:
        key = str(value or "").strip().lower()
        return key if key in _TRAVEL_TYPES else "any"

    @field_validator("lodging_preference", mode="before")
    @classmethod
    def _lodging(cls, value: Any) -> str:
        key = str(value or "").strip()
        return key or "any"

    @field_validator("season_mode", mode="before")
    @classmethod
    def _season_mode(cls, value: Any) -> Optional[str]:
        key = str(value or "").strip().lower()
        if key == "wet":
            return "rainy"
        return key if key in ("dry", "rainy") else None

    @field_validator("season_tolerance", mode="before")
    @classmethod
    def _season_tolerance(cls, value: Any) -> str:
        key = str(value or "").strip().lower()
        if key == "rainy":
            return "wet"
        return key if key in ("dry", "wet") else "any"

    @model_validator(mode="after")
    def _check_range(self) -> "UserPreferences":
        if self.end_date < self.start_date:
            raise ValueError("endDate must not be earlier than startDate")
        if self.season_mode is None:
            self.season_mode = season_mode_for(self.start_date)
        return self

    @computed_field  # type: ignore[prop-decorator]
    @property
    def nights(self) -> int:
        return max(0, (self.end_date - self.start_date).days)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def days(self) -> int:
        return self.nights + 1


# ------- Itinerary plan -------
class _Camel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)


class TierBucket(_Camel):
    highly: List[ScoredPlace] = Field(default_factory=list)
    considerable: List[ScoredPlace] = Field(default_factory=list)


class Slot(_Camel):
    selected: Optional[ScoredPlace] = None
    alternatives: TierBucket = Field(default_factory=TierBucket)


class DaySlot(_Camel):
    date: dt.date
    breakfast: Slot = Field(default_factory=Slot)
    lunch: Slot = Field(default_factory=Slot)
    dinner: Slot = Field(default_factory=Slot)
    morning: Slot = Field(default_factory=Slot)
    afternoon: Slot = Field(default_factory=Slot)
    night: Slot = Field(default_factory=Slot)


class Accommodation(_Camel):
    nights: int = 0
    selected: Optional[ScoredPlace] = None
    alternatives: TierBucket = Field(default_factory=TierBucket)


class PlanAlternatives(_Camel):
    meal: TierBucket = Field(default_factory=TierBucket)
    activity: TierBucket = Field(default_factory=TierBucket)


class PlanMeta(UserPreferences):
    generated_at: datetime


class ItineraryPlan(_Camel):
    meta: PlanMeta
    accommodation: Accommodation = Field(default_factory=Accommodation)
    days: List[DaySlot] = Field(default_factory=list)
    alternatives: PlanAlternatives = Field(default_factory=PlanAlternatives)


class PlanTotals(_Camel):
    hotel: float = 0.0
    meals: float = 0.0
    activities: float = 0.0
    grand_total: float = 0.0
    max_budget: float = 0.0
    budget_exceeded: bool = False


# ------- Score explanation -------
class FuzzyComponents(_Camel):
    interest_fit: float
    distance_fit: float
    price_fit: float


class Weights(_Camel):
    interest: float
    distance: float
    price: float


class ScoreBreakdown(_Camel):
    place: str
    category: PlaceCategory
    normalized_tags: List[str] = Field(default_factory=list)
    distance_km: float
    fuzzy_components: FuzzyComponents
    normalized_weights: Weights
    priority_used: str
    applied_boosts: Dict[str, float] = Field(default_factory=dict)
    traveler_type: str
    lodging_preference: str
    season_mode: str
    seasonal_effects: List[str] = Field(default_factory=list)
    theme_boost_factor: float = 1.0
    kind_multiplier_used: float = 1.0
    final_score: float
