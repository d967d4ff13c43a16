"""
Pydantic Schemas for the rating backend APIs.
Response models for the rating endpoints.
"""
from pydantic import BaseModel, Field
from typing import Dict
from enum import Enum


# ============================================
# ENUMS
# ============================================
class RatingTrend(str, Enum):
    up = "up"
    down = "down"
    neutral = "neutral"


# ============================================
# RATING SCHEMAS
# ============================================
class SourceStats(BaseModel):
    """Count and mean rating of a single rating source."""
    count: int = 0
    average: float = 0


class SourceBreakdown(BaseModel):
    """Per-source rating statistics."""
    products: SourceStats = Field(default_factory=SourceStats)
    sessions: SourceStats = Field(default_factory=SourceStats)
    events: SourceStats = Field(default_factory=SourceStats)


class DashboardRatingResponse(BaseModel):
    """Rating card shown on the professional dashboard."""
    total: str = Field(..., description="Overall average formatted to 1 decimal")
    total_reviews: int
    trend: RatingTrend
    trend_value: str = Field(..., description="Signed change vs. stored rating, e.g. +0.3")
    distribution: Dict[int, int] = Field(..., description="Count per star value 1-5")
    source_breakdown: SourceBreakdown


class RatingOverview(BaseModel):
    average: float
    total: int


class RatingInsights(BaseModel):
    most_common_rating: int = Field(..., ge=1, le=5)
    satisfaction_rate: int = Field(..., ge=0, le=100, description="Percent of 4-5 star ratings")


class RatingAnalyticsResponse(BaseModel):
    """Detailed rating analytics for a professional."""
    overall: RatingOverview
    distribution: Dict[int, int]
    distribution_percentages: Dict[int, int]
    source_breakdown: SourceBreakdown
    insights: RatingInsights
