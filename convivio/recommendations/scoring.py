"""
Sub-scores for one candidate meal.

Every function returns a value in [0, 1]. Affinities in [-1, 1] are
normalised with ``(a + 1) / 2`` before bonuses are added.
"""
from __future__ import annotations

import logging
import math
from datetime import datetime

from ..geo import InvalidLocationError, haversine_km, validate_coordinates
from ..meals.data_store import count_location_popularity, count_visits
from ..meals.models import CandidateMeal
from ..preferences.buckets import group_size_bucket_for, price_bucket_for, time_slot_for
from ..preferences.models import UserPreference
from .config import DEFAULT_SCORING_CONFIG, ScoringConfig
from .models import ScoreFactors, UserLocation

logger = logging.getLogger(__name__)


def _normalise(affinity: float) -> float:
    return (affinity + 1.0) / 2.0


def _hours_until(scheduled_at: datetime, now: datetime | None) -> float:
    if now is None:
        now = datetime.now(scheduled_at.tzinfo)
    elif scheduled_at.tzinfo is None and now.tzinfo is not None:
        now = now.astimezone().replace(tzinfo=None)
    elif scheduled_at.tzinfo is not None and now.tzinfo is None:
        now = now.astimezone()
    return (scheduled_at - now).total_seconds() / 3600.0


def cuisine_score(
    meal: CandidateMeal,
    prefs: UserPreference,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> float:
    cuisine = (meal.cuisine_type or config.default_cuisine).strip().lower()
    score = _normalise(prefs.cuisine_affinity.get(cuisine, 0.0))
    if cuisine == config.home_cuisine:
        score += config.home_cuisine_bonus
    return min(score, 1.0)


def time_score(
    meal: CandidateMeal,
    prefs: UserPreference,
    now: datetime | None = None,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> float:
    slot = time_slot_for(meal.scheduled_at.hour)
    if slot is None:
        return config.odd_hour_score

    score = _normalise(prefs.time_affinity.get(slot, 0.0))

    hours = _hours_until(meal.scheduled_at, now)
    prime_lo, prime_hi = config.prime_window_hours
    near_lo, near_hi = config.near_window_hours
    if prime_lo <= hours <= prime_hi:
        score += config.prime_window_bonus
    elif near_lo <= hours <= near_hi:
        score += config.near_window_bonus

    return min(score, 1.0)


def price_score(
    meal: CandidateMeal,
    prefs: UserPreference,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> float:
    cost = meal.estimated_cost if meal.estimated_cost is not None else config.default_cost
    return _normalise(prefs.price_affinity.get(price_bucket_for(cost), 0.0))


def open_spots(meal: CandidateMeal, config: ScoringConfig = DEFAULT_SCORING_CONFIG) -> int:
    max_participants = meal.max_participants or config.default_max_participants
    return max_participants - meal.participant_count


def social_score(
    meal: CandidateMeal,
    prefs: UserPreference,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> float:
    max_participants = meal.max_participants or config.default_max_participants
    group = group_size_bucket_for(max_participants)
    score = _normalise(prefs.group_size_affinity.get(group, 0.0))

    # The top tier needs at least one open spot; full meals still get the lower tier
    spots = open_spots(meal, config)
    if 0 < spots <= config.last_spots:
        score += config.last_spots_bonus
    elif spots <= config.few_spots:
        score += config.few_spots_bonus

    return min(score, 1.0)


def _usable(location: UserLocation | None) -> bool:
    if location is None:
        return False
    try:
        validate_coordinates(location.latitude, location.longitude)
    except InvalidLocationError:
        return False
    return True


def meal_distance_km(
    meal: CandidateMeal,
    user_location: UserLocation | None,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> float:
    """
    Distance from the user to the meal.

    Uses the caller's precomputed ``distance_km`` when present, otherwise
    haversine from the coordinates, otherwise the configured default.
    Raises ``ValueError`` (``InvalidLocationError``) when the meal's
    coordinates are malformed.
    """
    if meal.distance_km is not None:
        distance = meal.distance_km
    elif _usable(user_location) and meal.latitude is not None and meal.longitude is not None:
        meal_lat, meal_lon = validate_coordinates(meal.latitude, meal.longitude)
        distance = haversine_km(
            user_location.latitude, user_location.longitude, meal_lat, meal_lon,
        )
    else:
        return config.default_distance_km

    if not math.isfinite(distance) or distance < 0:
        raise ValueError(f"Malformed location for meal {meal.id}")
    return distance


def distance_score(
    distance: float,
    max_distance: float,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> float:
    if distance > max_distance:
        return config.distance_floor

    if distance < max_distance:
        if distance <= config.closest_km:
            return 1.0
        if distance <= config.close_km:
            return config.close_score

    return max(config.distance_floor, 1.0 - distance / max_distance)


def novelty_score(
    meal: CandidateMeal,
    user_id: str,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> float:
    """Reward places the user has not been to, plus a popularity bonus."""
    try:
        visits = count_visits(user_id, meal.location_name, exclude_meal_id=meal.id)
        popularity = count_location_popularity(meal.location_name)
    except Exception:
        logger.warning("Visit history lookup failed for meal %s, using neutral novelty", meal.id, exc_info=True)
        return config.novelty_on_error

    if visits == 0:
        novelty = config.novelty_base
    else:
        novelty = max(config.novelty_floor, config.novelty_base - visits * config.novelty_step)

    bonus = min(config.popularity_cap, popularity * config.popularity_step)
    return min(novelty + bonus, 1.0)


def score_meal(
    meal: CandidateMeal,
    prefs: UserPreference,
    user_id: str,
    user_location: UserLocation | None,
    now: datetime | None = None,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> tuple[float, ScoreFactors, float]:
    """Return ``(composite score, sub-scores, distance km)`` for one meal."""
    distance = meal_distance_km(meal, user_location, config)
    factors = ScoreFactors(
        cuisine=cuisine_score(meal, prefs, config),
        time=time_score(meal, prefs, now, config),
        price=price_score(meal, prefs, config),
        social=social_score(meal, prefs, config),
        distance=distance_score(distance, prefs.max_distance_km, config),
        novelty=novelty_score(meal, user_id, config),
    )

    w = config.weights
    total = sum(w[name] * value for name, value in factors.model_dump().items())
    return min(max(total, 0.0), 1.0), factors, distance
