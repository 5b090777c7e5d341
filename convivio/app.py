from __future__ import annotations

import os

from fastapi import Depends, FastAPI, HTTPException, Query, Request
from starlette.middleware.sessions import SessionMiddleware

from .analytics.aggregator import compute_analytics
from .analytics.store import get_events, record_event
from .auth.dependencies import require_admin, require_user
from .auth.models import LoginRequest
from .auth.users import authenticate
from .geo import InvalidLocationError, validate_coordinates, validate_radius
from .meals.config import DEFAULT_MEAL_STORE_CONFIG
from .meals.data_store import MealStoreError, find_nearby_meals, get_meal
from .meals.models import NearbyMealsResponse
from .preferences.models import (
    InsightsResponse,
    InteractionRequest,
    InteractionResponse,
    MealAttributes,
    PreferencesResponse,
    PreferenceUpdate,
)
from .preferences.store import (
    InvalidInteractionError,
    build_insights,
    get_or_create,
    get_preferences,
    record_interaction,
    reset,
    update_preferences,
)
from .recommendations.models import (
    RecommendationRequest,
    RecommendationResponse,
    UserLocation,
)
from .recommendations.retrieval import get_recommendations

app = FastAPI(title="Convivio Meal Recommendation API", version="1.0.0")
app.add_middleware(
    SessionMiddleware,
    secret_key=os.environ.get("SESSION_SECRET", "convivio-secret-change-in-production"),
)

_DEFAULT_RADIUS = DEFAULT_MEAL_STORE_CONFIG.default_radius_km


# ── Public endpoints ─────────────────────────────────────────────────────


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


# ── Auth endpoints ───────────────────────────────────────────────────────


@app.post("/auth/login")
def login(body: LoginRequest, request: Request) -> dict:
    user = authenticate(body.username, body.password)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    request.session["user"] = user
    return {"status": "ok", "user": user}


@app.post("/auth/logout")
def logout(request: Request) -> dict:
    request.session.clear()
    return {"status": "logged_out"}


@app.get("/auth/me")
def auth_me(user: dict = Depends(require_user)) -> dict:
    return user


# ── Meals ────────────────────────────────────────────────────────────────


@app.get("/meals/nearby", response_model=NearbyMealsResponse)
def nearby_meals(
    latitude: float,
    longitude: float,
    radius: float = _DEFAULT_RADIUS,
    meal_type: str = "physical",
    status: str = "upcoming,ongoing",
    user: dict = Depends(require_user),
) -> NearbyMealsResponse:
    statuses = [s.strip() for s in status.split(",") if s.strip()]
    try:
        meals = find_nearby_meals(latitude, longitude, radius, meal_type, statuses)
    except InvalidLocationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except MealStoreError as exc:
        raise HTTPException(status_code=503, detail="Meal store unavailable") from exc
    return NearbyMealsResponse(count=len(meals), data=meals, radius=radius)


# ── Recommendations ──────────────────────────────────────────────────────


@app.post("/recommendations", response_model=RecommendationResponse)
def recommendations(
    body: RecommendationRequest | None = None,
    limit: int = Query(default=6, ge=1, le=50),
    radius: float = _DEFAULT_RADIUS,
    user: dict = Depends(require_user),
) -> RecommendationResponse:
    # Fall back to the account's home location when the client sends none
    location = body.user_location if body and body.user_location else None
    if location is None and user.get("home_location"):
        location = UserLocation(**user["home_location"])
    if location is None:
        raise HTTPException(status_code=400, detail="User location is required for recommendations")

    try:
        validate_coordinates(location.latitude, location.longitude)
        validate_radius(radius)
        return get_recommendations(user["user_id"], location, radius, limit)
    except InvalidLocationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except MealStoreError as exc:
        raise HTTPException(status_code=503, detail="Meal store unavailable") from exc


# ── Preferences ──────────────────────────────────────────────────────────


@app.get("/preferences", response_model=PreferencesResponse)
def read_preferences(user: dict = Depends(require_user)) -> PreferencesResponse:
    existing = get_preferences(user["user_id"])
    if existing is not None:
        return PreferencesResponse(data=existing)
    return PreferencesResponse(
        data=get_or_create(user["user_id"]),
        message="Default preferences created",
    )


@app.put("/preferences", response_model=PreferencesResponse)
def write_preferences(
    body: PreferenceUpdate,
    user: dict = Depends(require_user),
) -> PreferencesResponse:
    updated = update_preferences(user["user_id"], body)
    return PreferencesResponse(data=updated, message="Preferences updated")


@app.delete("/preferences", response_model=PreferencesResponse)
def reset_preferences(user: dict = Depends(require_user)) -> PreferencesResponse:
    return PreferencesResponse(
        data=reset(user["user_id"]),
        message="Preferences restored to defaults",
    )


@app.get("/insights", response_model=InsightsResponse)
def insights(user: dict = Depends(require_user)) -> InsightsResponse:
    return InsightsResponse(data=build_insights(get_preferences(user["user_id"])))


@app.post("/track", response_model=InteractionResponse)
def track_interaction(
    body: InteractionRequest,
    user: dict = Depends(require_user),
) -> InteractionResponse:
    meal_data = body.meal_data
    if meal_data is None and body.meal_id:
        try:
            meal = get_meal(body.meal_id)
        except MealStoreError as exc:
            raise HTTPException(status_code=503, detail="Meal store unavailable") from exc
        if meal is not None:
            meal_data = MealAttributes(
                cuisine_type=meal.cuisine_type,
                scheduled_at=meal.scheduled_at,
                estimated_cost=meal.estimated_cost,
            )

    try:
        prefs = record_interaction(user["user_id"], body.interaction_type, meal_data)
    except InvalidInteractionError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    record_event("interaction", {
        "user_id": user["user_id"],
        "meal_id": body.meal_id,
        "interaction_type": body.interaction_type,
        "learned": meal_data is not None and prefs.learning_enabled,
    })

    return InteractionResponse(
        message="Interaction recorded for learning",
        activity=prefs.activity,
    )


# ── Admin endpoints ──────────────────────────────────────────────────────


@app.get("/analytics")
def analytics(user: dict = Depends(require_admin)) -> dict:
    return compute_analytics(get_events())
