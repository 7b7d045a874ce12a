import asyncio

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import NullPool
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from supersets.db import session_dependency
from supersets.main import app
from supersets.services.catalog import seed_catalog_if_needed


def make_session_factory(tmp_path):
    # NullPool: the API client runs requests on its own event loop
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}", poolclass=NullPool)
    factory = sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False, autoflush=False, autocommit=False
    )
    return engine, factory


async def create_tables(engine) -> None:
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


@pytest.fixture
async def session(tmp_path):
    engine, factory = make_session_factory(tmp_path)
    await create_tables(engine)
    async with factory() as s:
        yield s
    await engine.dispose()


@pytest.fixture
def api_client(tmp_path):
    engine, factory = make_session_factory(tmp_path)

    async def setup() -> None:
        await create_tables(engine)
        async with factory() as s:
            await seed_catalog_if_needed(s)

    asyncio.run(setup())

    async def override():
        async with factory() as s:
            yield s

    app.dependency_overrides[session_dependency] = override
    yield TestClient(app)
    app.dependency_overrides.clear()
