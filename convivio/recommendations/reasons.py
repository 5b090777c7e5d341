"""
Human-readable rationale for a recommendation.

Phrases are presentation data: each factor maps to a few synonyms and the
one shown is picked from a hash of the meal id, so the same meal always
gets the same wording.
"""
from __future__ import annotations

import hashlib
from types import MappingProxyType
from typing import Mapping

REASON_PHRASES: Mapping[str, tuple[str, ...]] = MappingProxyType({
    "cuisine": ("A cuisine you love", "Flavours you prefer", "Your kind of kitchen"),
    "time": ("An ideal time for you", "Perfect timing", "Just the right moment"),
    "price": ("Good value", "Great value for money", "Within your budget"),
    "social": ("Your kind of group size", "The right social vibe", "Perfect company"),
    "distance": ("Very close to you", "A convenient area", "Easy to reach"),
    "novelty": ("A new place to discover", "An original experience", "An interesting location"),
})
DEFAULT_PHRASE = "Recommended for you"
SEPARATOR = " • "


def pick_phrase(
    factor: str,
    seed: str,
    phrases: Mapping[str, tuple[str, ...]] = REASON_PHRASES,
) -> str:
    options = phrases.get(factor) or (DEFAULT_PHRASE,)
    digest = hashlib.sha256(f"{seed}:{factor}".encode()).hexdigest()
    return options[int(digest[:8], 16) % len(options)]


def top_factors(factors: Mapping[str, float], count: int = 2) -> list[str]:
    """Factor names by descending sub-score; equal scores keep input order."""
    ranked = sorted(factors.items(), key=lambda kv: kv[1], reverse=True)
    return [name for name, _ in ranked[:count]]


def urgency_phrase(spots: int) -> str:
    return f"Only {spots} spot left" if spots == 1 else f"Only {spots} spots left"


def build_reason(
    meal_id: str,
    factors: Mapping[str, float],
    spots: int,
    last_spots: int = 2,
    phrases: Mapping[str, tuple[str, ...]] = REASON_PHRASES,
) -> tuple[str, list[str]]:
    """Return ``(reason text, reason tags)`` for one scored meal."""
    tags = top_factors(factors)
    reasons = [pick_phrase(tag, meal_id, phrases) for tag in tags]
    if 0 < spots <= last_spots:
        reasons.insert(0, urgency_phrase(spots))
    return SEPARATOR.join(reasons[:2]), tags
