"""
Shared fixtures: an in-memory SQLite database per test and row factories.
"""

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

from app.database import Base
from app.models.database_models import User, Professional, Review, Event, EventReview


@pytest_asyncio.fixture
async def db():
    """Async session bound to a fresh in-memory database."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with session_maker() as session:
        yield session

    await engine.dispose()


@pytest.fixture
def make_professional(db):
    """Create a user account and its professional profile."""
    async def _make(email="yoga@example.com", rating_average=0.0, rating_total_reviews=0):
        user = User(email=email, first_name="Test", last_name="Pro", role="professional")
        db.add(user)
        await db.flush()

        professional = Professional(
            user_id=user.user_id,
            business_name="Test Studio",
            rating_average=rating_average,
            rating_total_reviews=rating_total_reviews,
        )
        db.add(professional)
        await db.flush()
        return professional

    return _make


@pytest.fixture
def make_client(db):
    async def _make(email="client@example.com"):
        user = User(email=email, role="client")
        db.add(user)
        await db.flush()
        return user

    return _make


@pytest.fixture
def add_reviews(db):
    """Add reviews of one content type for a professional."""
    async def _add(professional, client, ratings, content_type="product", status="approved"):
        for i, rating in enumerate(ratings):
            db.add(Review(
                client_id=client.user_id,
                professional_id=professional.professional_id,
                content_type=content_type,
                content_id=i + 1,
                content_title=f"{content_type} {i + 1}",
                rating=rating,
                comment="Review comment",
                status=status,
            ))
        await db.flush()

    return _add


@pytest.fixture
def add_event(db):
    """Add an event owned by the professional's user account, with reviews."""
    async def _add(professional_user_id, client, ratings, title="Sunrise Yoga"):
        event = Event(professional_id=professional_user_id, title=title, status="completed")
        event.reviews = [EventReview(user_id=client.user_id, rating=r) for r in ratings]
        db.add(event)
        await db.flush()
        return event

    return _add
