"""
Rating Service for Professional Ratings Calculation.

Merges every rating source of a professional into one overall rating:
- approved product reviews
- approved session reviews
- reviews attached to the professional's events

Reviews reference the professional profile while events reference the
professional's user account, so callers pass both identifiers.
"""
from typing import Optional, List, Dict, Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, and_
from decimal import Decimal, ROUND_HALF_UP
import logging
import math

from app.models.database_models import (
    Professional, Review, Event, EventReview,
    ProfessionalId, ProfessionalUserId
)
from app.config import settings

logger = logging.getLogger(__name__)


def _round_half_up(value: float, decimals: int = 0) -> float:
    """Round halves away from zero (positive inputs only), unlike round()."""
    factor = 10 ** decimals
    return math.floor(value * factor + 0.5) / factor


def _format_one_decimal(value: float) -> str:
    """One decimal, halves up, decided on the exact binary value of the float."""
    return str(Decimal(value).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _mean(values: List[int]) -> float:
    return sum(values) / len(values) if values else 0


def _empty_distribution() -> Dict[int, int]:
    return {star: 0 for star in RatingService.STAR_VALUES}


def _empty_source_breakdown() -> Dict[str, Dict[str, float]]:
    return {source: {"count": 0, "average": 0} for source in RatingService.SOURCES}


class RatingService:
    """Service for aggregating professional ratings."""

    STAR_VALUES = (1, 2, 3, 4, 5)

    # Review content type -> source bucket. Other content types are still
    # counted in the totals but get no bucket of their own.
    CONTENT_TYPE_SOURCES = {
        "product": "products",
        "session": "sessions",
    }

    SOURCES = ("products", "sessions", "events")

    SATISFIED_STARS = (4, 5)

    @staticmethod
    async def get_professional_user_id(
        db: AsyncSession,
        professional_id: ProfessionalId
    ) -> Optional[ProfessionalUserId]:
        """Look up the user account that owns a professional profile."""
        query = select(Professional.user_id).where(
            Professional.professional_id == professional_id
        )
        result = await db.execute(query)
        user_id = result.scalar_one_or_none()
        return ProfessionalUserId(user_id) if user_id is not None else None

    @staticmethod
    async def _fetch_review_ratings(
        db: AsyncSession,
        professional_id: ProfessionalId
    ) -> Dict[str, List[int]]:
        """Approved review ratings grouped by content type."""
        query = select(Review.content_type, Review.rating).where(
            and_(
                Review.professional_id == professional_id,
                Review.status == "approved"
            )
        ).order_by(Review.id)
        result = await db.execute(query)

        grouped: Dict[str, List[int]] = {}
        for content_type, rating in result.all():
            grouped.setdefault(content_type, []).append(rating)
        return grouped

    @staticmethod
    async def _fetch_event_ratings(
        db: AsyncSession,
        professional_user_id: ProfessionalUserId
    ) -> List[int]:
        """Ratings of every review attached to the professional's events."""
        query = select(EventReview.rating).join(
            Event, EventReview.event_id == Event.event_id
        ).where(
            Event.professional_id == professional_user_id
        ).order_by(Event.event_id, EventReview.id)
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def compute_overall_rating(
        db: AsyncSession,
        professional_id: ProfessionalId,
        professional_user_id: ProfessionalUserId
    ) -> Dict[str, Any]:
        """
        Calculate overall rating for a professional from all sources.

        Returns overall_average (1 decimal), total_reviews, a dense 1-5
        distribution, per-source breakdown and the raw combined ratings.
        """
        try:
            all_ratings: List[int] = []
            total_reviews = 0
            source_breakdown = _empty_source_breakdown()

            # Product and session reviews
            reviews_by_type = await RatingService._fetch_review_ratings(db, professional_id)
            for content_type, ratings in reviews_by_type.items():
                all_ratings.extend(ratings)
                total_reviews += len(ratings)

                source = RatingService.CONTENT_TYPE_SOURCES.get(content_type)
                if source:
                    source_breakdown[source] = {
                        "count": len(ratings),
                        "average": _mean(ratings)
                    }

            # Event reviews (no moderation status on these)
            event_ratings = await RatingService._fetch_event_ratings(db, professional_user_id)
            all_ratings.extend(event_ratings)
            total_reviews += len(event_ratings)

            if event_ratings:
                source_breakdown["events"] = {
                    "count": len(event_ratings),
                    "average": _mean(event_ratings)
                }

            distribution = _empty_distribution()
            for rating in all_ratings:
                distribution[rating] = distribution.get(rating, 0) + 1

            overall_average = _round_half_up(_mean(all_ratings), 1)

            logger.debug(
                f"Professional {professional_id}: {total_reviews} ratings, "
                f"average {overall_average}"
            )

            return {
                "overall_average": overall_average,
                "total_reviews": total_reviews,
                "distribution": distribution,
                "source_breakdown": source_breakdown,
                "all_ratings": all_ratings
            }

        except Exception as e:
            logger.error(f"Error calculating overall rating: {e}")
            raise

    @staticmethod
    async def update_professional_rating(
        db: AsyncSession,
        professional_id: ProfessionalId,
        new_rating: float,
        total_reviews: int
    ) -> None:
        """Overwrite the professional's stored rating summary."""
        try:
            stmt = update(Professional).where(
                Professional.professional_id == professional_id
            ).values(
                rating_average=new_rating,
                rating_total_reviews=total_reviews
            )
            await db.execute(stmt)
            logger.info(
                f"Stored rating for professional {professional_id}: "
                f"{new_rating} ({total_reviews} reviews)"
            )
        except Exception as e:
            logger.error(f"Error updating professional rating: {e}")
            raise

    @staticmethod
    def _exceeds_threshold(difference: float) -> bool:
        # Rounded so that e.g. 4.1 - 4.0 compares as exactly 0.1
        return abs(round(difference, 6)) > settings.RATING_TREND_THRESHOLD

    @staticmethod
    def calculate_rating_trend(
        current_rating: float,
        stored_rating: float
    ) -> Dict[str, Any]:
        """Compare a freshly computed rating with the stored one."""
        difference = current_rating - stored_rating

        if RatingService._exceeds_threshold(difference):
            trend = "up" if difference > 0 else "down"
        else:
            trend = "neutral"

        if difference != 0:
            sign = "+" if difference >= 0 else "-"
            trend_value = f"{sign}{_format_one_decimal(abs(difference))}"
        else:
            trend_value = "0.0"

        return {
            "trend": trend,
            "trend_value": trend_value,
            "difference": difference
        }

    @staticmethod
    def _default_dashboard_stats() -> Dict[str, Any]:
        return {
            "total": "0.0",
            "total_reviews": 0,
            "trend": "neutral",
            "trend_value": "0.0",
            "distribution": _empty_distribution(),
            "source_breakdown": _empty_source_breakdown()
        }

    @staticmethod
    async def get_dashboard_rating_stats(
        db: AsyncSession,
        professional_id: ProfessionalId,
        professional_user_id: ProfessionalUserId
    ) -> Dict[str, Any]:
        """
        Get rating statistics for the professional dashboard.

        Persists the fresh rating when it moved by more than the trend
        threshold. Never raises: failures yield zeroed stats.
        """
        try:
            professional = await db.get(Professional, professional_id)
            stored_rating = (professional.rating_average or 0) if professional else 0

            rating_stats = await RatingService.compute_overall_rating(
                db, professional_id, professional_user_id
            )
            fresh_rating = rating_stats["overall_average"]

            trend_info = RatingService.calculate_rating_trend(fresh_rating, stored_rating)

            if RatingService._exceeds_threshold(fresh_rating - stored_rating):
                await RatingService.update_professional_rating(
                    db, professional_id, fresh_rating, rating_stats["total_reviews"]
                )

            return {
                "total": f"{fresh_rating:.1f}",
                "total_reviews": rating_stats["total_reviews"],
                "trend": trend_info["trend"],
                "trend_value": trend_info["trend_value"],
                "distribution": rating_stats["distribution"],
                "source_breakdown": rating_stats["source_breakdown"]
            }

        except Exception as e:
            logger.error(f"Error getting dashboard rating stats: {e}", exc_info=True)
            # Drop a partial write-back so the request still commits cleanly
            try:
                await db.rollback()
            except Exception as rollback_error:
                logger.error(f"Rollback after dashboard failure failed: {rollback_error}")
            return RatingService._default_dashboard_stats()

    @staticmethod
    def get_most_common_rating(distribution: Dict[int, int]) -> int:
        """Star value with the highest count; lower star wins ties, 5 if empty."""
        max_count = 0
        most_common = 5

        for star in RatingService.STAR_VALUES:
            count = distribution.get(star, 0)
            if count > max_count:
                max_count = count
                most_common = star

        return most_common

    @staticmethod
    def calculate_satisfaction_rate(
        distribution: Dict[int, int],
        total_reviews: int
    ) -> int:
        """Percentage of 4 and 5 star ratings."""
        if total_reviews == 0:
            return 0

        satisfied = sum(distribution.get(star, 0) for star in RatingService.SATISFIED_STARS)
        return int(_round_half_up(satisfied / total_reviews * 100))

    @staticmethod
    async def get_detailed_rating_analytics(
        db: AsyncSession,
        professional_id: ProfessionalId,
        professional_user_id: ProfessionalUserId
    ) -> Dict[str, Any]:
        """Get detailed rating breakdown for analytics."""
        try:
            rating_stats = await RatingService.compute_overall_rating(
                db, professional_id, professional_user_id
            )
            total_reviews = rating_stats["total_reviews"]
            distribution = rating_stats["distribution"]

            distribution_percentages = {
                star: int(_round_half_up(count / total_reviews * 100)) if total_reviews > 0 else 0
                for star, count in distribution.items()
            }

            return {
                "overall": {
                    "average": rating_stats["overall_average"],
                    "total": total_reviews
                },
                "distribution": distribution,
                "distribution_percentages": distribution_percentages,
                "source_breakdown": rating_stats["source_breakdown"],
                "insights": {
                    "most_common_rating": RatingService.get_most_common_rating(distribution),
                    "satisfaction_rate": RatingService.calculate_satisfaction_rate(
                        distribution, total_reviews
                    )
                }
            }

        except Exception as e:
            logger.error(f"Error getting detailed rating analytics: {e}")
            raise
