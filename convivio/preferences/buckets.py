"""Map raw meal attributes onto the preference vocabulary."""
from __future__ import annotations

BUDGET_MAX_COST = 20.0
MODERATE_MAX_COST = 40.0

INTIMATE_MAX_GUESTS = 4
MEDIUM_MAX_GUESTS = 8


def time_slot_for(hour: int) -> str | None:
    """Return the meal slot for an hour of the day, or ``None`` for odd hours."""
    if 7 <= hour < 10:
        return "breakfast"
    if 12 <= hour < 15:
        return "lunch"
    if 17 <= hour < 19:
        return "aperitif"
    if 19 <= hour <= 23:
        return "dinner"
    return None


def price_bucket_for(cost: float) -> str:
    if cost <= BUDGET_MAX_COST:
        return "budget"
    if cost <= MODERATE_MAX_COST:
        return "moderate"
    return "upscale"


def group_size_bucket_for(max_participants: int) -> str:
    if max_participants <= INTIMATE_MAX_GUESTS:
        return "intimate"
    if max_participants <= MEDIUM_MAX_GUESTS:
        return "medium"
    return "large"
