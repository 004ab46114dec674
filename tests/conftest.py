"""Shared pytest fixtures for all test suites."""

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.pool import NullPool

from backend.app.db.inmemory import InMemoryContentStore, InMemoryDocumentCatalog
from backend.app.db.models import Base
from backend.app.search.formatter import ResultFormatter
from backend.app.search.index_maintainer import IndexMaintainer
from backend.app.search.query_engine import QueryEngine
from backend.app.search.service import SearchService


@pytest.fixture
def store() -> InMemoryContentStore:
    """Empty in-memory content store."""
    return InMemoryContentStore()


@pytest.fixture
def catalog() -> InMemoryDocumentCatalog:
    """Empty in-memory document catalog."""
    return InMemoryDocumentCatalog()


@pytest.fixture
def maintainer(store: InMemoryContentStore, catalog: InMemoryDocumentCatalog) -> IndexMaintainer:
    """Index maintainer without an extractor (placeholder mode)."""
    return IndexMaintainer(store, catalog)


@pytest.fixture
def service(
    store: InMemoryContentStore,
    catalog: InMemoryDocumentCatalog,
    maintainer: IndexMaintainer,
) -> SearchService:
    """Search service over the in-memory stores with default settings."""
    engine = QueryEngine(store, maintainer, page_size=20, min_query_length=2)
    formatter = ResultFormatter(catalog)
    return SearchService(store, engine, formatter, maintainer)


@pytest_asyncio.fixture
async def sqlite_engine(tmp_path: Path) -> AsyncGenerator[AsyncEngine, None]:
    """File-backed SQLite engine with all tables created.

    A file database is used so every connection sees the same schema. Foreign
    keys are enforced as they are on PostgreSQL.
    """
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'search.db'}",
        poolclass=NullPool,
        echo=False,
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record) -> None:
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def sqlite_session(sqlite_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Session on the SQLite test database."""
    async with AsyncSession(sqlite_engine, expire_on_commit=False) as session:
        yield session


@pytest_asyncio.fixture
async def postgres_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create async engine for PostgreSQL integration tests.

    Requires DATABASE_URL to be set to a real PostgreSQL connection string.
    Tests using this fixture should be marked with @pytest.mark.postgres.
    """
    database_url = os.getenv("DATABASE_URL")
    if not database_url:
        pytest.skip("DATABASE_URL not set - skipping postgres test")

    if not database_url.startswith(("postgresql://", "postgresql+asyncpg://")):
        pytest.skip(f"DATABASE_URL is not PostgreSQL: {database_url}")

    if database_url.startswith("postgresql://"):
        database_url = database_url.replace("postgresql://", "postgresql+asyncpg://", 1)

    engine = create_async_engine(database_url, poolclass=NullPool, echo=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()
