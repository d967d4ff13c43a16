"""
Tests for the request session lifecycle: get_db commits on success and rolls
back on failure, and the dashboard write-back survives the request.

Uses a file-backed SQLite database so separate sessions see committed data.
"""

import pytest
import pytest_asyncio
from unittest.mock import patch
from httpx import AsyncClient, ASGITransport
from sqlalchemy import update
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession

import app.database as database
from app.database import Base, get_db
from app.main import app
from app.models.database_models import User, Professional, Review
from app.services.rating_service import RatingService


@pytest_asyncio.fixture
async def session_maker(tmp_path, monkeypatch):
    """Point get_db at a fresh on-disk database."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'ratings.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    monkeypatch.setattr(database, "async_session_maker", maker)
    yield maker

    await engine.dispose()


@pytest_asyncio.fixture
async def drifted_professional(session_maker):
    """Professional stored at 2.0 whose approved reviews average 4.5."""
    async with session_maker() as session:
        pro_user = User(email="coach@example.com", role="professional")
        reviewer = User(email="client@example.com", role="client")
        session.add_all([pro_user, reviewer])
        await session.flush()

        pro = Professional(
            user_id=pro_user.user_id,
            business_name="Calm Coaching",
            rating_average=2.0,
            rating_total_reviews=1,
        )
        session.add(pro)
        await session.flush()

        for i, rating in enumerate([5, 4]):
            session.add(Review(
                client_id=reviewer.user_id,
                professional_id=pro.professional_id,
                content_type="session",
                content_id=i + 1,
                content_title=f"Session {i + 1}",
                rating=rating,
                status="approved",
            ))
        await session.commit()
        return pro.professional_id


async def _stored_rating(session_maker, professional_id):
    async with session_maker() as session:
        pro = await session.get(Professional, professional_id)
        return pro.rating_average, pro.rating_total_reviews


@pytest_asyncio.fixture
async def client():
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http


@pytest.mark.asyncio
async def test_get_db_commits_on_success(session_maker, drifted_professional):
    sessions = get_db()
    session = await sessions.__anext__()
    await session.execute(
        update(Professional)
        .where(Professional.professional_id == drifted_professional)
        .values(rating_average=3.3)
    )

    with pytest.raises(StopAsyncIteration):
        await sessions.__anext__()

    assert (await _stored_rating(session_maker, drifted_professional))[0] == 3.3


@pytest.mark.asyncio
async def test_get_db_rolls_back_on_error(session_maker, drifted_professional):
    sessions = get_db()
    session = await sessions.__anext__()
    await session.execute(
        update(Professional)
        .where(Professional.professional_id == drifted_professional)
        .values(rating_average=3.3)
    )

    with pytest.raises(RuntimeError):
        await sessions.athrow(RuntimeError("request failed"))

    assert (await _stored_rating(session_maker, drifted_professional))[0] == 2.0


@pytest.mark.asyncio
async def test_dashboard_write_back_is_committed(session_maker, drifted_professional, client):
    response = await client.get(f"/rating/professional/{drifted_professional}/dashboard")

    assert response.status_code == 200
    assert response.json()["total"] == "4.5"
    assert await _stored_rating(session_maker, drifted_professional) == (4.5, 2)


@pytest.mark.asyncio
async def test_failed_dashboard_leaves_stored_rating(session_maker, drifted_professional, client):
    write_back = RatingService.update_professional_rating

    async def write_then_fail(*args):
        await write_back(*args)
        raise OperationalError("UPDATE", {}, Exception("disk I/O error"))

    with patch.object(RatingService, "update_professional_rating", new=write_then_fail):
        response = await client.get(f"/rating/professional/{drifted_professional}/dashboard")

    assert response.status_code == 200
    assert response.json()["total"] == "0.0"
    assert await _stored_rating(session_maker, drifted_professional) == (2.0, 1)
