"""
SQLAlchemy Database Models for the wellness marketplace rating backend.

Reviews key on the professional profile, events key on the professional's
user account. Both point at the same real-world professional.
"""
from datetime import datetime
from typing import NewType
from sqlalchemy import (
    Column, String, Integer, BigInteger, Text, Boolean, Float,
    ForeignKey, DateTime, CheckConstraint, Index
)
from sqlalchemy.orm import relationship
from app.database import Base

# Identifier of a Professional row (what Review.professional_id references)
ProfessionalId = NewType("ProfessionalId", int)
# Identifier of the User account behind a professional (what Event.professional_id references)
ProfessionalUserId = NewType("ProfessionalUserId", int)

# SQLite only auto-increments INTEGER primary keys
BigIntPK = BigInteger().with_variant(Integer, "sqlite")


# ============================================
# USERS (Reference Table)
# ============================================
class User(Base):
    __tablename__ = "users"

    user_id = Column(BigIntPK, primary_key=True, autoincrement=True)
    email = Column(Text, unique=True, nullable=False)
    first_name = Column(Text)
    last_name = Column(Text)
    role = Column(String(20), default="client")
    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("role IN ('client', 'professional', 'admin')"),
    )


# ============================================
# PROFESSIONALS
# ============================================
class Professional(Base):
    __tablename__ = "professionals"

    professional_id = Column(BigIntPK, primary_key=True, autoincrement=True)
    user_id = Column(BigInteger, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False, unique=True)
    business_name = Column(Text, nullable=False)

    # Rolling rating summary, written back by RatingService
    rating_average = Column(Float, default=0, nullable=False)
    rating_total_reviews = Column(Integer, default=0, nullable=False)

    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User")

    __table_args__ = (
        CheckConstraint("rating_average >= 0 AND rating_average <= 5"),
    )


# ============================================
# REVIEWS (products and sessions)
# ============================================
class Review(Base):
    __tablename__ = "reviews"

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    client_id = Column(BigInteger, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    professional_id = Column(
        BigInteger, ForeignKey("professionals.professional_id", ondelete="CASCADE"), nullable=False
    )

    content_type = Column(String(20), nullable=False)
    content_id = Column(BigInteger, nullable=False)
    content_title = Column(Text, nullable=False)

    rating = Column(Integer, nullable=False)
    comment = Column(Text)
    status = Column(String(20), default="pending", nullable=False)
    professional_response = Column(Text)
    responded_at = Column(DateTime)

    created_at = Column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        CheckConstraint("content_type IN ('product', 'event', 'session')"),
        CheckConstraint("rating >= 1 AND rating <= 5"),
        CheckConstraint("status IN ('pending', 'approved', 'rejected')"),
        Index("ix_reviews_professional_status", "professional_id", "status"),
    )


# ============================================
# EVENTS
# ============================================
class Event(Base):
    __tablename__ = "events"

    event_id = Column(BigIntPK, primary_key=True, autoincrement=True)
    # References the professional's user account, not the profile
    professional_id = Column(BigInteger, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    title = Column(Text, nullable=False)
    event_date = Column(DateTime)
    status = Column(String(20), default="scheduled")
    created_at = Column(DateTime, default=datetime.utcnow)

    reviews = relationship(
        "EventReview",
        back_populates="event",
        order_by="EventReview.id",
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        CheckConstraint("status IN ('draft', 'scheduled', 'completed', 'cancelled')"),
        Index("ix_events_professional", "professional_id"),
    )


# ============================================
# EVENT REVIEWS (attendee feedback attached to an event)
# ============================================
class EventReview(Base):
    __tablename__ = "event_reviews"

    id = Column(BigIntPK, primary_key=True, autoincrement=True)
    event_id = Column(BigInteger, ForeignKey("events.event_id", ondelete="CASCADE"), nullable=False)
    user_id = Column(BigInteger, ForeignKey("users.user_id", ondelete="CASCADE"), nullable=False)
    rating = Column(Integer, nullable=False)
    comment = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)

    event = relationship("Event", back_populates="reviews")

    __table_args__ = (
        CheckConstraint("rating >= 1 AND rating <= 5"),
    )
