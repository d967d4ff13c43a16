"""
Services module initialization.
"""
from app.services.rating_service import RatingService

__all__ = [
    "RatingService",
]
