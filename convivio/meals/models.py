from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class CandidateMeal(BaseModel):
    id: str
    title: str = ""
    cuisine_type: str | None = None
    scheduled_at: datetime
    estimated_cost: float | None = None
    participant_count: int = Field(default=0, ge=0)
    max_participants: int | None = None
    latitude: float | None = None
    longitude: float | None = None
    location_name: str | None = None
    status: str = "upcoming"
    meal_type: str = "physical"
    distance_km: float | None = None


class NearbyMealsResponse(BaseModel):
    success: bool = True
    count: int
    data: list[CandidateMeal]
    radius: float
