"""
Shared fixtures: a fresh seeded SQLite database per test, a session on it,
and an HTTP client wired to the FastAPI app through the get_db override.
"""

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import func, select

import lunadine.models  # noqa: F401
from lunadine.database import Base, build_engine, build_session_maker, get_db
from lunadine.main import app
from lunadine.seed import seed_sample_data


@pytest.fixture
async def engine(tmp_path):
    test_engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'lunadine-test.db'}")
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_maker(engine):
    return build_session_maker(engine)


@pytest.fixture
async def seeded(session_maker):
    async with session_maker() as session:
        await seed_sample_data(session)


@pytest.fixture
async def db(session_maker, seeded):
    async with session_maker() as session:
        yield session


@pytest.fixture
async def client(session_maker, seeded):
    async def override_get_db():
        async with session_maker() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


async def count_rows(session, model) -> int:
    return (await session.execute(select(func.count()).select_from(model))).scalar_one()


@pytest.fixture
def rows():
    """Row counter usable from any test: ``await rows(db, Order)``."""
    return count_rows
