from fastapi.testclient import TestClient

from planner.main import app

PREFERENCES = {
    "startCity": {"label": "Manila", "lat": 14.5995, "lng": 120.9842},
    "startDate": "2025-01-10",
    "endDate": "2025-01-12",
    "maxBudget": 0,
    "interests": ["culture"],
    "seasonMode": "dry",
}

PLACES = [
    {
        "id": "h1",
        "name": "Harbor Hotel",
        "kind": "hotel",
        "pricing": {"lodging": {"base": 1000}, "mealPlan": {"breakfastIncluded": True}},
    },
    {
        "id": "m1",
        "name": "Bistro",
        "kind": "restaurant",
        "pricing": {"mealPlan": {"aLaCarteDefault": 200}},
    },
    {
        "id": "a1",
        "name": "National Museum",
        "kind": "museum",
        "tags": ["museum"],
        "pricing": {"dayUse": {"dayPassPrice": 200}},
    },
]


def test_score_endpoint():
    client = TestClient(app)
    response = client.post("/api/score", json={"place": PLACES[2], "preferences": PREFERENCES})

    assert response.status_code == 200
    assert abs(response.json()["score"] - 0.825) < 1e-9


def test_explain_endpoint_uses_camel_case():
    client = TestClient(app)
    response = client.post("/api/explain", json={"place": PLACES[2], "preferences": PREFERENCES})

    assert response.status_code == 200
    body = response.json()
    assert body["category"] == "activity"
    assert body["fuzzyComponents"]["interestFit"] == 1.0
    assert body["themeBoostFactor"] == 1.1
    assert abs(body["finalScore"] - 0.825) < 1e-9


def test_rank_endpoint_orders_by_score():
    client = TestClient(app)
    response = client.post("/api/rank", json={"places": PLACES, "preferences": PREFERENCES})

    assert response.status_code == 200
    ranked = response.json()
    assert [p["id"] for p in ranked][0] == "a1"
    scores = [p["score"] for p in ranked]
    assert scores == sorted(scores, reverse=True)


def test_itinerary_endpoint():
    client = TestClient(app)
    response = client.post("/api/itinerary", json={"places": PLACES, "preferences": PREFERENCES})

    assert response.status_code == 200
    plan = response.json()
    assert plan["meta"]["nights"] == 2
    assert plan["accommodation"]["selected"]["totalCost"] == 2000
    assert [d["date"] for d in plan["days"]] == ["2025-01-10", "2025-01-11", "2025-01-12"]
    assert [d["breakfast"]["selected"]["computedCost"] for d in plan["days"]] == [0, 0, 200]


def test_recompute_and_totals_round_trip():
    client = TestClient(app)
    plan = client.post("/api/itinerary", json={"places": PLACES, "preferences": PREFERENCES}).json()
    plan["accommodation"]["selected"]["pricing"]["mealPlan"]["breakfastIncluded"] = False

    refreshed = client.post("/api/itinerary/recompute", json=plan)
    assert refreshed.status_code == 200
    assert [d["breakfast"]["selected"]["computedCost"] for d in refreshed.json()["days"]] == [200, 200, 200]

    totals = client.post("/api/itinerary/totals", json=refreshed.json())
    assert totals.status_code == 200
    body = totals.json()
    assert body["hotel"] == 2000
    assert body["meals"] == 1800
    assert body["activities"] == 1800
    assert body["grandTotal"] == 5600
    assert body["budgetExceeded"] is False


def test_invalid_dates_return_422():
    client = TestClient(app)
    prefs = dict(PREFERENCES, endDate="2025-01-01")
    response = client.post("/api/itinerary", json={"places": PLACES, "preferences": prefs})

    assert response.status_code == 422
    assert isinstance(response.json()["detail"], list)


def test_places_must_be_a_list():
    client = TestClient(app)
    response = client.post("/api/rank", json={"places": {"id": "x"}, "preferences": PREFERENCES})

    assert response.status_code == 422
    assert response.json()["detail"] == "places must be a list"


def test_malformed_place_is_scored_not_rejected():
    client = TestClient(app)
    place = {"name": "Odd", "tags": 5, "pricing": {"lodging": 500}}
    response = client.post("/api/score", json={"place": place, "preferences": PREFERENCES})

    assert response.status_code == 200
    assert 0.0 <= response.json()["score"] <= 1.0
