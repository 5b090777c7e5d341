from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import Any

from .buckets import price_bucket_for, time_slot_for
from .config import DEFAULT_PREFERENCE_CONFIG, PreferenceConfig
from .models import (
    AFFINITY_FIELDS,
    AffinityScore,
    MealAttributes,
    PreferenceInsights,
    PreferenceUpdate,
    UserPreference,
)

logger = logging.getLogger(__name__)

_preferences: dict[str, UserPreference] = {}
_lock = threading.Lock()


class InvalidInteractionError(ValueError):
    """Raised for interaction types outside the supported vocabulary."""


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _clamp(value: float) -> float:
    return max(-1.0, min(1.0, value))


def default_preferences(
    user_id: str, config: PreferenceConfig = DEFAULT_PREFERENCE_CONFIG,
) -> UserPreference:
    """Build a fresh preference vector from the configured defaults."""
    now = _now()
    return UserPreference(
        user_id=str(user_id),
        cuisine_affinity=dict(config.cuisine_affinity),
        time_affinity=dict(config.time_affinity),
        price_affinity=dict(config.price_affinity),
        group_size_affinity=dict(config.group_size_affinity),
        age_group_affinity=dict(config.age_group_affinity),
        max_distance_km=config.max_distance_km,
        learning_enabled=True,
        created_at=now,
        last_updated=now,
        version=config.version,
    )


def get_preferences(user_id: str) -> UserPreference | None:
    """Return a copy of the stored vector, or ``None`` if the user has none."""
    with _lock:
        prefs = _preferences.get(str(user_id))
        return prefs.model_copy(deep=True) if prefs is not None else None


def _get_or_create_locked(key: str) -> UserPreference:
    prefs = _preferences.get(key)
    if prefs is None:
        prefs = default_preferences(key)
        _preferences[key] = prefs
        logger.info("Created default preferences for user %s", key)
    return prefs


def get_or_create(user_id: str) -> UserPreference:
    """Return the user's vector, creating it with defaults on first access."""
    with _lock:
        return _get_or_create_locked(str(user_id)).model_copy(deep=True)


def _nudge(affinities: dict[str, float], key: str | None, rate: float) -> None:
    # Bounded vocabulary: unknown keys are never created
    if key is None or key not in affinities:
        return
    affinities[key] = round(_clamp(affinities[key] + rate), 4)


def _learn_from_meal(
    prefs: UserPreference,
    meal: MealAttributes,
    config: PreferenceConfig,
) -> None:
    rate = config.learning_rate

    if meal.cuisine_type:
        _nudge(prefs.cuisine_affinity, meal.cuisine_type.strip().lower(), rate)

    if meal.scheduled_at is not None:
        _nudge(prefs.time_affinity, time_slot_for(meal.scheduled_at.hour), rate)

    cost = meal.estimated_cost if meal.estimated_cost is not None else config.default_cost
    _nudge(prefs.price_affinity, price_bucket_for(cost), rate)


def record_interaction(
    user_id: str,
    interaction_type: str,
    meal_attributes: MealAttributes | dict[str, Any] | None = None,
    config: PreferenceConfig = DEFAULT_PREFERENCE_CONFIG,
) -> UserPreference:
    """
    Update activity counters and, when learning is on, nudge affinities.

    Every interaction type moves the meal's cuisine, time slot and price
    band up by the learning rate; nothing ever lowers an affinity.
    Raises ``InvalidInteractionError`` before touching any state when the
    interaction type is unknown.
    """
    if interaction_type not in config.interaction_types:
        raise InvalidInteractionError(f"Invalid interaction type: {interaction_type!r}")

    if isinstance(meal_attributes, dict):
        meal_attributes = MealAttributes.model_validate(meal_attributes)

    key = str(user_id)
    with _lock:
        updated = _get_or_create_locked(key).model_copy(deep=True)

        counters = updated.activity
        counters.total_meals += 1
        if interaction_type == "created":
            counters.total_hosted += 1
        elif interaction_type == "joined":
            counters.total_joined += 1

        now = _now()
        counters.last_activity_at = now
        updated.last_updated = now

        if meal_attributes is not None and updated.learning_enabled:
            _learn_from_meal(updated, meal_attributes, config)

        _preferences[key] = updated
        return updated.model_copy(deep=True)


def update_preferences(user_id: str, update: PreferenceUpdate) -> UserPreference:
    """Apply a partial update. Keys outside the known vocabulary are ignored."""
    key = str(user_id)
    with _lock:
        updated = _get_or_create_locked(key).model_copy(deep=True)

        for field_name in AFFINITY_FIELDS:
            values = getattr(update, field_name)
            if not values:
                continue
            target: dict[str, float] = getattr(updated, field_name)
            for name, value in values.items():
                name = name.strip().lower()
                if name in target:
                    target[name] = _clamp(value)

        if update.max_distance_km is not None:
            updated.max_distance_km = update.max_distance_km
        if update.learning_enabled is not None:
            updated.learning_enabled = update.learning_enabled

        updated.last_updated = _now()
        _preferences[key] = updated
        return updated.model_copy(deep=True)


def reset(user_id: str) -> UserPreference:
    """Replace the user's vector with fresh defaults in a single step."""
    key = str(user_id)
    fresh = default_preferences(key)
    with _lock:
        _preferences[key] = fresh
    logger.info("Reset preferences for user %s", key)
    return fresh.model_copy(deep=True)


def _ranked(affinities: dict[str, float]) -> list[AffinityScore]:
    ordered = sorted(affinities.items(), key=lambda kv: (-kv[1], kv[0]))
    return [AffinityScore(name=name, score=round(value * 100)) for name, value in ordered]


def build_insights(prefs: UserPreference | None) -> PreferenceInsights:
    if prefs is None:
        return PreferenceInsights(has_preferences=False)

    price = _ranked(prefs.price_affinity)
    social = _ranked(prefs.group_size_affinity)
    return PreferenceInsights(
        has_preferences=True,
        top_cuisines=_ranked(prefs.cuisine_affinity)[:3],
        preferred_time_slots=_ranked(prefs.time_affinity),
        price_preference=price[0] if price else None,
        social_preference=social[0] if social else None,
        activity=prefs.activity,
        last_updated=prefs.last_updated,
        learning_enabled=prefs.learning_enabled,
    )


def clear_preferences() -> None:
    with _lock:
        _preferences.clear()
