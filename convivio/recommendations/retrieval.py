from __future__ import annotations

import logging
import math
import time
from datetime import datetime
from typing import Sequence

from ..analytics.store import record_event
from ..geo import InvalidLocationError, haversine_km, validate_coordinates
from ..meals.data_store import find_nearby_meals
from ..meals.models import CandidateMeal
from ..preferences.models import UserPreference
from ..preferences.store import get_or_create
from .config import DEFAULT_SCORING_CONFIG, ScoringConfig
from .models import (
    RecommendationMeta,
    RecommendationResponse,
    ScoredMeal,
    UserLocation,
)
from .reasons import build_reason
from .scoring import open_spots, score_meal

logger = logging.getLogger(__name__)

SMART_PROVIDER = "smart-internal"
FALLBACK_PROVIDER = "basic-distance"

NO_LOCATION_REASON = "Available in your area"


def _scored(
    meal: CandidateMeal,
    *,
    score: float,
    rank: int,
    reason: str,
    provider: str,
    distance_km: float | None,
    reason_tags: list[str] | None = None,
    factors: dict[str, float] | None = None,
) -> ScoredMeal:
    data = meal.model_dump()
    data.update(
        distance_km=round(distance_km, 2) if distance_km is not None else None,
        score=score,
        rank=rank,
        compatibility=round(score * 100),
        reason=reason,
        reason_tags=reason_tags or [],
        factors=factors,
        provider=provider,
    )
    return ScoredMeal(**data)


def _fallback_distance(
    meal: CandidateMeal,
    user_location: UserLocation,
    config: ScoringConfig,
) -> float:
    distance = meal.distance_km
    if distance is None and meal.latitude is not None and meal.longitude is not None:
        try:
            meal_lat, meal_lon = validate_coordinates(meal.latitude, meal.longitude)
        except InvalidLocationError:
            return config.unknown_distance_km
        distance = haversine_km(
            user_location.latitude, user_location.longitude, meal_lat, meal_lon,
        )
    if distance is None or not math.isfinite(distance):
        return config.unknown_distance_km
    return distance


def _banded_score(distance: float, config: ScoringConfig) -> float:
    for limit_km, score in config.fallback_bands:
        if distance <= limit_km:
            return score
    return config.fallback_far_score


def _fallback_reason(distance: float) -> str:
    if distance <= 3:
        return "Right around the corner"
    if distance <= 10:
        return "In your area"
    return "Available nearby"


def fallback_ranking(
    candidates: Sequence[CandidateMeal],
    limit: int,
    user_location: UserLocation | None = None,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> list[ScoredMeal]:
    """
    Preference-agnostic ranking.

    Without a location the candidates keep their input order with a flat
    score; otherwise they are sorted by distance with banded scores.
    """
    if user_location is None:
        return [
            _scored(
                meal,
                score=config.fallback_score,
                rank=rank,
                reason=NO_LOCATION_REASON,
                provider=FALLBACK_PROVIDER,
                distance_km=meal.distance_km,
            )
            for rank, meal in enumerate(candidates[:limit], start=1)
        ]

    with_distance = [(_fallback_distance(m, user_location, config), m) for m in candidates]
    with_distance.sort(key=lambda pair: (pair[0], pair[1].id))

    return [
        _scored(
            meal,
            score=_banded_score(distance, config),
            rank=rank,
            reason=_fallback_reason(distance),
            provider=FALLBACK_PROVIDER,
            distance_km=distance,
        )
        for rank, (distance, meal) in enumerate(with_distance[:limit], start=1)
    ]


def score_and_rank(
    user_id: str,
    user_location: UserLocation | None,
    candidates: Sequence[CandidateMeal],
    preferences: UserPreference | None = None,
    limit: int = 6,
    now: datetime | None = None,
    config: ScoringConfig = DEFAULT_SCORING_CONFIG,
) -> list[ScoredMeal]:
    """
    Rank *candidates* for one user.

    Returns at most *limit* meals, best first, ranked from 1. Equal scores
    are ordered by meal id. If scoring any candidate fails, the whole batch
    falls back to the distance-only ranking.
    """
    if limit < 1:
        raise ValueError("limit must be at least 1")
    if not candidates:
        return []
    if user_location is None:
        return fallback_ranking(candidates, limit, None, config)

    prefs = preferences if preferences is not None else get_or_create(user_id)

    try:
        scored: list[tuple[float, CandidateMeal, dict[str, float], float]] = []
        for meal in candidates:
            total, factors, distance = score_meal(meal, prefs, user_id, user_location, now, config)
            scored.append((round(total, 4), meal, factors.model_dump(), distance))
    except Exception:
        logger.warning("Personalised scoring failed, falling back to distance ranking", exc_info=True)
        return fallback_ranking(candidates, limit, user_location, config)

    scored.sort(key=lambda item: (-item[0], item[1].id))

    results: list[ScoredMeal] = []
    for rank, (score, meal, factors, distance) in enumerate(scored[:limit], start=1):
        reason, tags = build_reason(
            meal.id, factors, open_spots(meal, config), last_spots=config.last_spots,
        )
        results.append(_scored(
            meal,
            score=score,
            rank=rank,
            reason=reason,
            reason_tags=tags,
            factors=factors,
            provider=SMART_PROVIDER,
            distance_km=distance,
        ))
    return results


def get_recommendations(
    user_id: str,
    user_location: UserLocation,
    radius_km: float,
    limit: int = 6,
) -> RecommendationResponse:
    """Look up nearby meals and rank them; the HTTP layer's entry point."""
    start_time = time.time()

    nearby = find_nearby_meals(user_location.latitude, user_location.longitude, radius_km)

    if not nearby:
        record_event("recommendation", {
            "user_id": user_id,
            "radius": radius_km,
            "total_found": 0,
            "results_returned": 0,
            "provider": None,
            "response_time_ms": round((time.time() - start_time) * 1000, 1),
        })
        return RecommendationResponse(data=[], message="No meals found nearby")

    items = score_and_rank(user_id, user_location, nearby, limit=limit)
    provider = items[0].provider if items else SMART_PROVIDER

    elapsed_ms = round((time.time() - start_time) * 1000, 1)
    record_event("recommendation", {
        "user_id": user_id,
        "radius": radius_km,
        "total_found": len(nearby),
        "results_returned": len(items),
        "provider": provider,
        "response_time_ms": elapsed_ms,
    })

    return RecommendationResponse(
        data=items,
        meta=RecommendationMeta(
            total_found=len(nearby),
            recommended=len(items),
            radius=radius_km,
            ai_provider=provider,
        ),
    )
