"""
Rating API endpoints.

Professional rating aggregated from every rating source.

=============================================================================
PROFESSIONAL RATING
=============================================================================

Sources:
- Approved product reviews
- Approved session reviews
- Reviews attached to the professional's events

Reviews are keyed by professional profile, events by the professional's user
account. The endpoints resolve the user account from the profile before
calling the service.

Stored Rating:
- The professional's stored average is refreshed lazily, whenever the
  dashboard sees it drift by more than 0.1 from the computed value.

Endpoints:
- GET /rating/professional/{professional_id}/dashboard: Dashboard rating card
- GET /rating/professional/{professional_id}/analytics: Detailed analytics
"""
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from app.database import get_db
from app.models.database_models import ProfessionalId, ProfessionalUserId
from app.services.rating_service import RatingService
from app.schemas.schemas import (
    DashboardRatingResponse,
    RatingAnalyticsResponse
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/rating", tags=["Rating"])


async def _resolve_user_id(db: AsyncSession, professional_id: int) -> ProfessionalUserId:
    user_id = await RatingService.get_professional_user_id(db, ProfessionalId(professional_id))
    if user_id is None:
        raise HTTPException(status_code=404, detail="Professional not found")
    return user_id


@router.get(
    "/professional/{professional_id}/dashboard",
    response_model=DashboardRatingResponse,
    summary="Get Dashboard Rating",
    description="""
    Overall rating card for the professional dashboard.

    Returns:
    - Overall average (formatted, 1 decimal)
    - Total number of ratings
    - Trend vs. the stored rating (up / down / neutral)
    - Star distribution and per-source breakdown

    Rating computation failures produce a zeroed card instead of an error.
    """
)
async def get_dashboard_rating(
    professional_id: int,
    db: AsyncSession = Depends(get_db)
):
    """Get the dashboard rating card."""
    try:
        user_id = await _resolve_user_id(db, professional_id)
        return await RatingService.get_dashboard_rating_stats(
            db, ProfessionalId(professional_id), user_id
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Get dashboard rating error: {e}")
        raise HTTPException(status_code=500, detail=str(e))


@router.get(
    "/professional/{professional_id}/analytics",
    response_model=RatingAnalyticsResponse,
    summary="Get Rating Analytics",
    description="""
    Detailed rating analytics: distribution percentages, most common
    rating and satisfaction rate (share of 4-5 star ratings).
    """
)
async def get_rating_analytics(
    professional_id: int,
    db: AsyncSession = Depends(get_db)
):
    """Get detailed rating analytics."""
    try:
        user_id = await _resolve_user_id(db, professional_id)
        return await RatingService.get_detailed_rating_analytics(
            db, ProfessionalId(professional_id), user_id
        )

    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Get rating analytics error: {e}")
        raise HTTPException(status_code=500, detail=str(e))
