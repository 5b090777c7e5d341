from __future__ import annotations

from fastapi.testclient import TestClient

from convivio.app import app
from convivio.auth.users import authenticate, get_account

client = TestClient(app)


def _login_user(c):
    c.post("/auth/login", json={"username": "user", "password": "user123"})


def _login_admin(c):
    c.post("/auth/login", json={"username": "admin", "password": "admin123"})


# ── Login / Logout ───────────────────────────────────────────────────────


def test_login_success_user():
    resp = client.post("/auth/login", json={"username": "user", "password": "user123"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["status"] == "ok"
    assert body["user"]["username"] == "user"
    assert body["user"]["role"] == "user"


def test_login_success_admin():
    resp = client.post("/auth/login", json={"username": "admin", "password": "admin123"})
    assert resp.status_code == 200
    assert resp.json()["user"]["role"] == "admin"


def test_login_wrong_password():
    resp = client.post("/auth/login", json={"username": "user", "password": "wrong"})
    assert resp.status_code == 401


def test_login_unknown_user():
    resp = client.post("/auth/login", json={"username": "nobody", "password": "x"})
    assert resp.status_code == 401


def test_login_rejects_empty_password():
    resp = client.post("/auth/login", json={"username": "user", "password": ""})
    assert resp.status_code == 422


def test_auth_me_when_logged_in():
    _login_user(client)
    resp = client.get("/auth/me")
    assert resp.status_code == 200
    body = resp.json()
    assert body["username"] == "user"
    assert body["home_location"] == {"latitude": 45.4642, "longitude": 9.19}


def test_auth_me_not_logged_in():
    c = TestClient(app)  # fresh client, no session
    resp = c.get("/auth/me")
    assert resp.status_code == 401


def test_logout():
    _login_user(client)
    resp = client.post("/auth/logout")
    assert resp.status_code == 200
    assert resp.json()["status"] == "logged_out"
    # Session should be cleared
    resp = client.get("/auth/me")
    assert resp.status_code == 401


# ── Accounts ─────────────────────────────────────────────────────────────


def test_authenticate_returns_public_fields_only():
    user = authenticate("giulia", "giulia123")
    assert user == {"username": "giulia", "role": "user"}


def test_get_account_unknown():
    assert get_account("nobody") is None


def test_admin_has_no_home_location():
    assert get_account("admin")["home_location"] is None


# ── Route protection ─────────────────────────────────────────────────────


def test_recommendations_requires_login():
    c = TestClient(app)
    resp = c.post("/recommendations", json={"user_location": {"latitude": 45.46, "longitude": 9.19}})
    assert resp.status_code == 401


def test_preferences_requires_login():
    c = TestClient(app)
    assert c.get("/preferences").status_code == 401
    assert c.put("/preferences", json={}).status_code == 401
    assert c.delete("/preferences").status_code == 401


def test_track_requires_login():
    c = TestClient(app)
    resp = c.post("/track", json={"meal_id": "m001", "interaction_type": "viewed"})
    assert resp.status_code == 401


def test_nearby_meals_requires_login():
    c = TestClient(app)
    resp = c.get("/meals/nearby", params={"latitude": 45.46, "longitude": 9.19})
    assert resp.status_code == 401


def test_analytics_requires_admin():
    c = TestClient(app)
    _login_user(c)
    resp = c.get("/analytics")
    assert resp.status_code == 403


def test_analytics_allowed_for_admin():
    c = TestClient(app)
    _login_admin(c)
    resp = c.get("/analytics")
    assert resp.status_code == 200


# ── Public endpoints stay public ─────────────────────────────────────────


def test_health_is_public():
    c = TestClient(app)
    assert c.get("/health").status_code == 200
