import asyncio

import pytest
from sqlalchemy.pool import NullPool

from app.db.database import build_engine, build_session_factory, create_tables, get_db
from app.main import app


@pytest.fixture
def database_url(tmp_path):
    return f"sqlite+aiosqlite:///{tmp_path / 'registration.db'}"


@pytest.fixture
def run_db(database_url):
    """
    Runs an async test body against a fresh database.

    Usage:
        async def scenario(db):
            ...
        run_db(scenario)

    Every call opens its own engine and session on the same database file,
    so state written by one call is visible to the next.
    """
    def runner(scenario):
        async def main():
            engine = build_engine(database_url, poolclass=NullPool)
            await create_tables(engine)
            try:
                async with build_session_factory(engine)() as session:
                    return await scenario(session)
            finally:
                await engine.dispose()

        return asyncio.run(main())

    return runner


@pytest.fixture
def db_override(database_url):
    """Points the API's get_db dependency at the test database."""
    engine = build_engine(database_url, poolclass=NullPool)
    asyncio.run(create_tables(engine))
    factory = build_session_factory(engine)

    async def override_get_db():
        async with factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    yield factory
    app.dependency_overrides.pop(get_db, None)
    asyncio.run(engine.dispose())
