from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from ..meals.models import CandidateMeal


class UserLocation(BaseModel):
    latitude: float
    longitude: float


class RecommendationRequest(BaseModel):
    user_location: UserLocation | None = Field(
        default=None, description="Where to search from; required by the HTTP endpoint"
    )


class ScoreFactors(BaseModel):
    cuisine: float
    time: float
    price: float
    social: float
    distance: float
    novelty: float


class ScoredMeal(CandidateMeal):
    score: float = Field(..., ge=0.0, le=1.0)
    rank: int = Field(..., ge=1)
    compatibility: int
    reason: str
    reason_tags: list[str] = Field(default_factory=list)
    factors: ScoreFactors | None = None
    provider: str


class RecommendationMeta(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    total_found: int = Field(..., alias="totalFound")
    recommended: int
    radius: float
    ai_provider: str = Field(..., alias="aiProvider")


class RecommendationResponse(BaseModel):
    success: bool = True
    data: list[ScoredMeal]
    meta: RecommendationMeta | None = None
    message: str | None = None
