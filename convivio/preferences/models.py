from __future__ import annotations

from datetime import datetime
from typing import Annotated

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

Affinity = Annotated[float, Field(ge=-1.0, le=1.0)]

AFFINITY_FIELDS: tuple[str, ...] = (
    "cuisine_affinity",
    "time_affinity",
    "price_affinity",
    "group_size_affinity",
    "age_group_affinity",
)


class ActivityCounters(BaseModel):
    total_meals: int = Field(default=0, ge=0)
    total_hosted: int = Field(default=0, ge=0)
    total_joined: int = Field(default=0, ge=0)
    last_activity_at: datetime | None = None


class UserPreference(BaseModel):
    user_id: str
    cuisine_affinity: dict[str, Affinity]
    time_affinity: dict[str, Affinity]
    price_affinity: dict[str, Affinity]
    group_size_affinity: dict[str, Affinity]
    age_group_affinity: dict[str, Affinity]
    max_distance_km: float = Field(default=15.0, ge=1.0, le=100.0)
    activity: ActivityCounters = Field(default_factory=ActivityCounters)
    learning_enabled: bool = True
    created_at: datetime
    last_updated: datetime
    version: str = "1.0"


class PreferenceUpdate(BaseModel):
    cuisine_affinity: dict[str, Affinity] | None = None
    time_affinity: dict[str, Affinity] | None = None
    price_affinity: dict[str, Affinity] | None = None
    group_size_affinity: dict[str, Affinity] | None = None
    age_group_affinity: dict[str, Affinity] | None = None
    max_distance_km: float | None = Field(default=None, ge=1.0, le=100.0)
    learning_enabled: bool | None = None


class MealAttributes(BaseModel):
    """Attributes of a meal the user interacted with, as fed to the learner."""

    model_config = ConfigDict(populate_by_name=True)

    cuisine_type: str | None = Field(
        default=None, validation_alias=AliasChoices("cuisine_type", "cuisineType")
    )
    scheduled_at: datetime | None = Field(
        default=None, validation_alias=AliasChoices("scheduled_at", "scheduledAt")
    )
    estimated_cost: float | None = Field(
        default=None, validation_alias=AliasChoices("estimated_cost", "estimatedCost")
    )


class InteractionRequest(BaseModel):
    meal_id: str | None = None
    interaction_type: str = Field(..., min_length=1)
    meal_data: MealAttributes | None = None


class InteractionResponse(BaseModel):
    success: bool = True
    message: str
    activity: ActivityCounters


class PreferencesResponse(BaseModel):
    success: bool = True
    data: UserPreference
    message: str | None = None


class AffinityScore(BaseModel):
    name: str
    score: int


class PreferenceInsights(BaseModel):
    has_preferences: bool
    top_cuisines: list[AffinityScore] = Field(default_factory=list)
    preferred_time_slots: list[AffinityScore] = Field(default_factory=list)
    price_preference: AffinityScore | None = None
    social_preference: AffinityScore | None = None
    activity: ActivityCounters | None = None
    last_updated: datetime | None = None
    learning_enabled: bool | None = None


class InsightsResponse(BaseModel):
    success: bool = True
    data: PreferenceInsights
