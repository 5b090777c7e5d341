from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping


def _frozen(values: dict[str, float]) -> Mapping[str, float]:
    return MappingProxyType(dict(values))


@dataclass(frozen=True)
class PreferenceConfig:
    """
    Defaults for a freshly created preference vector and the learner.

    The affinity tables are read-only mappings; every new or reset vector
    receives its own mutable copy.
    """

    cuisine_affinity: Mapping[str, float] = field(
        default_factory=lambda: _frozen({
            "italian": 0.6,
            "japanese": 0.1,
            "mexican": 0.0,
            "indian": 0.1,
            "chinese": 0.1,
            "mediterranean": 0.4,
            "american": 0.0,
            "vegetarian": 0.2,
            "vegan": 0.1,
            "thai": 0.0,
            "french": 0.2,
            "spanish": 0.3,
        })
    )
    time_affinity: Mapping[str, float] = field(
        default_factory=lambda: _frozen({
            "breakfast": 0.1,
            "lunch": 0.4,
            "aperitif": 0.3,
            "dinner": 0.6,
        })
    )
    price_affinity: Mapping[str, float] = field(
        default_factory=lambda: _frozen({"budget": 0.4, "moderate": 0.6, "upscale": 0.2})
    )
    group_size_affinity: Mapping[str, float] = field(
        default_factory=lambda: _frozen({"intimate": 0.6, "medium": 0.4, "large": 0.1})
    )
    age_group_affinity: Mapping[str, float] = field(
        default_factory=lambda: _frozen({"young": 0.3, "adult": 0.6, "mature": 0.4})
    )
    max_distance_km: float = 15.0
    min_distance_limit_km: float = 1.0
    max_distance_limit_km: float = 100.0
    learning_rate: float = 0.1
    default_cost: float = 25.0
    interaction_types: frozenset[str] = frozenset(
        {"viewed", "joined", "created", "declined", "favorited"}
    )
    version: str = "1.0"


DEFAULT_PREFERENCE_CONFIG = PreferenceConfig()
