from __future__ import annotations

import logging
from typing import Any, Dict, List

from fastapi import Body, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError

from planner.config import get_allowed_origins, get_log_level
from planner.fuzzy.score import explain_score, fuzzy_score, rank_destinations, to_place, to_preferences
from planner.itinerary import build_itinerary, recompute_all_meal_costs, summarize_costs
from planner.schemas import ItineraryPlan, Place, UserPreferences

logger = logging.getLogger(__name__)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("[%(levelname)s] %(name)s: %(message)s"))
    logger.addHandler(handler)
logger.setLevel(getattr(logging, get_log_level(), logging.INFO))
logger.propagate = False

app = FastAPI(title="Fuzzy Itinerary Planner API")

# Local UIs and notebooks call straight into the API; operators can narrow
# this via PLANNER_ALLOWED_ORIGINS.
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_allowed_origins(),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _errors(exc: ValidationError) -> List[Dict[str, Any]]:
    # ctx can carry raw exception objects that JSONResponse cannot encode
    return exc.errors(include_url=False, include_context=False, include_input=False)  # type: ignore[return-value]


def _preferences(payload: Dict[str, Any]) -> UserPreferences:
    try:
        return to_preferences(payload.get("preferences") or {})
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=_errors(exc)) from exc


def _place(payload: Dict[str, Any]) -> Place:
    try:
        return to_place(payload.get("place") or {})
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=_errors(exc)) from exc


def _places(payload: Dict[str, Any]) -> List[Place]:
    raw = payload.get("places") or []
    if not isinstance(raw, list):
        raise HTTPException(status_code=422, detail="places must be a list")
    try:
        return [to_place(item) for item in raw]
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=_errors(exc)) from exc


def _plan(payload: Dict[str, Any]) -> ItineraryPlan:
    try:
        return ItineraryPlan.model_validate(payload)
    except ValidationError as exc:
        raise HTTPException(status_code=422, detail=_errors(exc)) from exc


@app.post("/api/score")
async def api_score(payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    place, prefs = _place(payload), _preferences(payload)
    return {"score": fuzzy_score(place, prefs)}


@app.post("/api/explain")
async def api_explain(payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    place, prefs = _place(payload), _preferences(payload)
    return explain_score(place, prefs).model_dump(mode="json", by_alias=True)


@app.post("/api/rank")
async def api_rank(payload: Dict[str, Any] = Body(...)) -> List[Dict[str, Any]]:
    places, prefs = _places(payload), _preferences(payload)
    ranked = rank_destinations(places, prefs)
    return [place.model_dump(mode="json", by_alias=True) for place in ranked]


@app.post("/api/itinerary")
async def api_itinerary(payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    """Primary endpoint: rank the candidates and lay out the trip."""
    places, prefs = _places(payload), _preferences(payload)
    logger.info(
        "Itinerary request: %d places, %s to %s, budget %.2f, priority %s",
        len(places),
        prefs.start_date,
        prefs.end_date,
        prefs.max_budget,
        prefs.priority,
    )
    plan = build_itinerary(places, prefs)
    return plan.model_dump(mode="json", by_alias=True)


@app.post("/api/itinerary/recompute")
async def api_recompute(payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    plan = recompute_all_meal_costs(_plan(payload))
    return plan.model_dump(mode="json", by_alias=True)


@app.post("/api/itinerary/totals")
async def api_totals(payload: Dict[str, Any] = Body(...)) -> Dict[str, Any]:
    return summarize_costs(_plan(payload)).model_dump(mode="json", by_alias=True)
