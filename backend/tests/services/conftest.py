"""Service test fixtures — async DB + FastAPI test client + fake Airtable.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use test DB session
    - db_manager initialized for code paths that bypass get_db (health/ready)
    - get_record_store and get_airtable_client overridden with in-memory fakes:
      no test ever reaches api.airtable.com

Design Decisions:
    - SQLite in-memory: fast, no external dependency, sufficient for route tests
      (ADR: PostgreSQL-specific features not exercised here)
    - The ASGI transport does not run the lifespan, so the Airtable singleton is never
      initialized; every route that needs it goes through an override
"""

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

from app.api.dependencies import get_record_store
from app.db.base import Base
from app.infrastructure.airtable_client import get_airtable_client
from app.infrastructure.database import get_db, DatabaseSessionManager
from app.models.form import Form
from app.models.user import User
import app.infrastructure.database as db_module
from app.main import app

from tests.services.fake_record_store import FakeAirtableClient, FakeRecordStore
from tests.services.sample_forms import COLOR_FORM_QUESTIONS


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def fake_store():
    return FakeRecordStore()


@pytest.fixture
def fake_airtable():
    return FakeAirtableClient()


@pytest.fixture
async def client(test_engine, test_session_factory, fake_store, fake_airtable):
    """FastAPI test client with DB and Airtable dependencies overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_record_store] = lambda: fake_store
    app.dependency_overrides[get_airtable_client] = lambda: fake_airtable

    # Patch db_manager for code that uses it directly
    original_manager = db_module.db_manager
    fake_manager = DatabaseSessionManager.__new__(DatabaseSessionManager)
    fake_manager.engine = test_engine
    fake_manager._session_factory = test_session_factory
    db_module.db_manager = fake_manager

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    db_module.db_manager = original_manager


@pytest.fixture
async def seed_user(test_db):
    user = User(
        airtable_user_id="usrOwner",
        profile={"airtable_user_id": "usrOwner"},
        access_token="owner-token",
        refresh_token="owner-refresh",
    )
    test_db.add(user)
    await test_db.commit()
    await test_db.refresh(user)
    return user


@pytest.fixture
async def other_user(test_db):
    user = User(
        airtable_user_id="usrOther",
        profile={},
        access_token="other-token",
        refresh_token="",
    )
    test_db.add(user)
    await test_db.commit()
    await test_db.refresh(user)
    return user


@pytest.fixture
async def seed_form(test_db, seed_user):
    """name (required) → color (required select) → shade (required if blue) → resume."""
    form = Form(
        owner_id=seed_user.id,
        name="Colour survey",
        airtable_base_id="appBase",
        airtable_table_id="tblTable",
        questions=COLOR_FORM_QUESTIONS,
    )
    test_db.add(form)
    await test_db.commit()
    await test_db.refresh(form)
    return form
