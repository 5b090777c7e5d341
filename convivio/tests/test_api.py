from __future__ import annotations

from datetime import datetime, timedelta
from unittest.mock import patch

from fastapi.testclient import TestClient

from convivio.app import app
from convivio.meals.data_store import MealStoreError, set_meals
from convivio.preferences.store import clear_preferences

client = TestClient(app)

MILAN = {"latitude": 45.4642, "longitude": 9.1900}


def _soon(hours: int) -> datetime:
    return datetime.now().replace(minute=0, second=0, microsecond=0) + timedelta(hours=hours)


def _seed_meals():
    set_meals([
        {
            "id": "m1", "title": "Risotto", "cuisine_type": "italian", "scheduled_at": _soon(6),
            "estimated_cost": 30, "max_participants": 6, "participants": ["anna"], "host_id": "anna",
            "latitude": 45.4650, "longitude": 9.1905, "location_name": "Trattoria Brera",
            "status": "upcoming", "meal_type": "physical",
        },
        {
            "id": "m2", "title": "Sushi", "cuisine_type": "japanese", "scheduled_at": _soon(30),
            "estimated_cost": 45, "max_participants": 4, "participants": ["luca", "sara"], "host_id": "luca",
            "latitude": 45.4800, "longitude": 9.2100, "location_name": "Sakura",
            "status": "upcoming", "meal_type": "physical",
        },
        {
            "id": "m3", "title": "Tacos", "cuisine_type": "mexican", "scheduled_at": _soon(50),
            "estimated_cost": 18, "max_participants": 10, "participants": [], "host_id": "diego",
            "latitude": 45.4500, "longitude": 9.1700, "location_name": "La Cantina",
            "status": "ongoing", "meal_type": "physical",
        },
        {
            "id": "old", "title": "Last week", "cuisine_type": "italian", "scheduled_at": _soon(-200),
            "estimated_cost": 30, "max_participants": 6, "participants": ["user"], "host_id": "anna",
            "latitude": 45.4650, "longitude": 9.1905, "location_name": "Trattoria Brera",
            "status": "completed", "meal_type": "physical",
        },
    ])


def _login_user(c):
    c.post("/auth/login", json={"username": "user", "password": "user123"})


def _login_admin(c):
    c.post("/auth/login", json={"username": "admin", "password": "admin123"})


def setup_function():
    _seed_meals()
    clear_preferences()


# ── Nearby meals ─────────────────────────────────────────────────────────


def test_nearby_meals_sorted_by_distance():
    _login_user(client)
    resp = client.get("/meals/nearby", params={**MILAN, "radius": 10})
    assert resp.status_code == 200
    body = resp.json()
    assert body["count"] == 3
    distances = [m["distance_km"] for m in body["data"]]
    assert distances == sorted(distances)


def test_nearby_meals_status_filter():
    _login_user(client)
    resp = client.get("/meals/nearby", params={**MILAN, "status": "completed"})
    assert [m["id"] for m in resp.json()["data"]] == ["old"]


def test_nearby_meals_rejects_bad_coordinates():
    _login_user(client)
    resp = client.get("/meals/nearby", params={"latitude": 95, "longitude": 9.19})
    assert resp.status_code == 400


def test_nearby_meals_rejects_bad_radius():
    _login_user(client)
    resp = client.get("/meals/nearby", params={**MILAN, "radius": 5000})
    assert resp.status_code == 400


@patch("convivio.app.find_nearby_meals", side_effect=MealStoreError("down"))
def test_nearby_meals_store_failure(mock_find):
    _login_user(client)
    resp = client.get("/meals/nearby", params=MILAN)
    assert resp.status_code == 503


# ── Recommendations ──────────────────────────────────────────────────────


def test_recommendations_envelope():
    _login_user(client)
    resp = client.post("/recommendations", json={"user_location": MILAN})
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["meta"] == {
        "totalFound": 3,
        "recommended": 3,
        "radius": 15.0,
        "aiProvider": "smart-internal",
    }
    assert [item["rank"] for item in body["data"]] == [1, 2, 3]
    scores = [item["score"] for item in body["data"]]
    assert scores == sorted(scores, reverse=True)


def test_recommendations_respects_limit():
    _login_user(client)
    resp = client.post("/recommendations", params={"limit": 2}, json={"user_location": MILAN})
    body = resp.json()
    assert len(body["data"]) == 2
    assert body["meta"]["recommended"] == 2
    assert body["meta"]["totalFound"] == 3


def test_recommendations_use_home_location():
    _login_user(client)
    resp = client.post("/recommendations")
    assert resp.status_code == 200
    assert resp.json()["meta"]["totalFound"] == 3


def test_recommendations_require_location():
    _login_admin(client)
    resp = client.post("/recommendations", json={})
    assert resp.status_code == 400


def test_recommendations_reject_bad_coordinates():
    _login_user(client)
    resp = client.post("/recommendations", json={"user_location": {"latitude": 45.0, "longitude": 200.0}})
    assert resp.status_code == 400


def test_recommendations_reject_bad_radius():
    _login_user(client)
    resp = client.post("/recommendations", params={"radius": 0}, json={"user_location": MILAN})
    assert resp.status_code == 400


def test_recommendations_validation_rejects_bad_limit():
    _login_user(client)
    resp = client.post("/recommendations", params={"limit": 0}, json={"user_location": MILAN})
    assert resp.status_code == 422


def test_recommendations_empty_when_nothing_nearby():
    _login_user(client)
    resp = client.post("/recommendations", json={"user_location": {"latitude": -33.86, "longitude": 151.2}})
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["data"] == []
    assert body["message"]


@patch("convivio.recommendations.retrieval.score_meal", side_effect=ValueError("bad meal"))
def test_recommendations_report_fallback_provider(mock_score):
    _login_user(client)
    resp = client.post("/recommendations", json={"user_location": MILAN})
    body = resp.json()
    assert resp.status_code == 200
    assert body["meta"]["aiProvider"] == "basic-distance"
    assert all(item["provider"] == "basic-distance" for item in body["data"])


@patch("convivio.recommendations.retrieval.find_nearby_meals", side_effect=MealStoreError("down"))
def test_recommendations_store_failure(mock_find):
    _login_user(client)
    resp = client.post("/recommendations", json={"user_location": MILAN})
    assert resp.status_code == 503


# ── Preferences ──────────────────────────────────────────────────────────


def test_get_preferences_creates_defaults_once():
    _login_user(client)
    first = client.get("/preferences").json()
    assert first["message"] == "Default preferences created"
    assert first["data"]["cuisine_affinity"]["italian"] == 0.6
    second = client.get("/preferences").json()
    assert second["message"] is None
    assert second["data"]["created_at"] == first["data"]["created_at"]


def test_update_preferences():
    _login_user(client)
    resp = client.put("/preferences", json={"cuisine_affinity": {"thai": 0.8}, "max_distance_km": 25})
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["cuisine_affinity"]["thai"] == 0.8
    assert data["max_distance_km"] == 25


def test_update_preferences_rejects_out_of_range():
    _login_user(client)
    resp = client.put("/preferences", json={"price_affinity": {"budget": -2}})
    assert resp.status_code == 422


def test_reset_preferences():
    _login_user(client)
    client.put("/preferences", json={"cuisine_affinity": {"italian": -1}})
    resp = client.delete("/preferences")
    assert resp.status_code == 200
    assert resp.json()["data"]["cuisine_affinity"]["italian"] == 0.6


def test_insights():
    _login_user(client)
    assert client.get("/insights").json()["data"]["has_preferences"] is False
    client.get("/preferences")
    data = client.get("/insights").json()["data"]
    assert data["has_preferences"] is True
    assert data["top_cuisines"][0] == {"name": "italian", "score": 60}


# ── Interaction tracking ─────────────────────────────────────────────────


def test_track_interaction_learns():
    _login_user(client)
    resp = client.post("/track", json={
        "meal_id": "external",
        "interaction_type": "joined",
        "meal_data": {"cuisineType": "japanese", "scheduledAt": "2026-10-19T19:00:00", "estimatedCost": 25},
    })
    assert resp.status_code == 200
    assert resp.json()["activity"]["total_joined"] == 1
    prefs = client.get("/preferences").json()["data"]
    assert prefs["cuisine_affinity"]["japanese"] == 0.2
    assert prefs["time_affinity"]["dinner"] == 0.7
    assert prefs["price_affinity"]["moderate"] == 0.7


def test_track_interaction_looks_up_meal():
    _login_user(client)
    resp = client.post("/track", json={"meal_id": "m3", "interaction_type": "created"})
    assert resp.status_code == 200
    assert resp.json()["activity"]["total_hosted"] == 1
    prefs = client.get("/preferences").json()["data"]
    assert prefs["cuisine_affinity"]["mexican"] == 0.1
    assert prefs["price_affinity"]["budget"] == 0.5


def test_track_interaction_rejects_unknown_type():
    _login_user(client)
    resp = client.post("/track", json={"meal_id": "m1", "interaction_type": "liked"})
    assert resp.status_code == 400
    prefs = client.get("/preferences").json()["data"]
    assert prefs["activity"]["total_meals"] == 0
