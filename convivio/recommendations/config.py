from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping


@dataclass(frozen=True)
class ScoringConfig:
    weights: Mapping[str, float] = field(
        default_factory=lambda: MappingProxyType({
            "cuisine": 0.25,
            "time": 0.20,
            "price": 0.15,
            "social": 0.20,
            "distance": 0.10,
            "novelty": 0.10,
        })
    )

    # Cuisine
    home_cuisine: str = "italian"
    home_cuisine_bonus: float = 0.1
    default_cuisine: str = "italian"

    # Time of day
    odd_hour_score: float = 0.3
    prime_window_hours: tuple[float, float] = (2.0, 24.0)
    prime_window_bonus: float = 0.1
    near_window_hours: tuple[float, float] = (1.0, 48.0)
    near_window_bonus: float = 0.05

    # Price
    default_cost: float = 25.0

    # Social
    default_max_participants: int = 8
    last_spots: int = 2
    last_spots_bonus: float = 0.2
    few_spots: int = 4
    few_spots_bonus: float = 0.1

    # Distance
    default_distance_km: float = 5.0
    distance_floor: float = 0.2
    closest_km: float = 1.0
    close_km: float = 3.0
    close_score: float = 0.9

    # Novelty and popularity
    novelty_base: float = 0.8
    novelty_step: float = 0.1
    novelty_floor: float = 0.2
    popularity_step: float = 0.05
    popularity_cap: float = 0.3
    novelty_on_error: float = 0.5

    # Distance-only fallback
    fallback_score: float = 0.5
    fallback_bands: tuple[tuple[float, float], ...] = (
        (1.0, 1.0),
        (3.0, 0.9),
        (5.0, 0.8),
        (10.0, 0.6),
    )
    fallback_far_score: float = 0.4
    unknown_distance_km: float = 999.0


DEFAULT_SCORING_CONFIG = ScoringConfig()
