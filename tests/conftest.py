import os
from datetime import time

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool
from sqlmodel import SQLModel

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ENV", "test")

import app.models  # noqa: E402,F401 - register tables
from app.models.session_type import SessionType  # noqa: E402
from app.models.therapist import Therapist  # noqa: E402
from tests.factories import make_rule, make_therapist  # noqa: E402


@pytest.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    # Let SQLAlchemy emit BEGIN itself so SAVEPOINTs behave under aiosqlite
    @event.listens_for(engine.sync_engine, "connect")
    def do_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def do_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_maker(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


@pytest.fixture
async def session(session_maker):
    async with session_maker() as s:
        yield s


@pytest.fixture
async def seeded_therapist(session) -> Therapist:
    """Therapist working Monday 09:00-12:00 with a 60-minute video session type."""
    therapist = make_therapist(id=None)
    session.add(therapist)
    await session.flush()
    session.add(make_rule(1, time(9, 0), time(12, 0), therapist_id=therapist.id))
    session.add(
        SessionType(therapist_id=therapist.id, name="Individual Therapy", duration=60, meeting_type="video")
    )
    await session.commit()
    await session.refresh(therapist)
    return therapist
