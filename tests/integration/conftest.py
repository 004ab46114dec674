"""Fixtures for HTTP-level integration tests."""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from backend.app.config import Settings, get_settings
from backend.app.db.engine import get_session
from backend.app.db.seed_dev import seed_dev_user
from backend.app.main import app


@pytest.fixture
def app_settings(tmp_path: Path) -> Settings:
    """Settings pointing uploads at a temporary directory."""
    return Settings(
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'search.db'}",
        upload_dir=str(tmp_path / "uploads"),
        text_extraction_enabled=True,
    )


@pytest_asyncio.fixture
async def client(
    sqlite_engine: AsyncEngine, app_settings: Settings
) -> AsyncGenerator[AsyncClient, None]:
    """HTTP client against the app with the SQLite session and test settings."""

    async def override_session() -> AsyncGenerator[AsyncSession, None]:
        async with AsyncSession(sqlite_engine, expire_on_commit=False) as session:
            yield session

    async with AsyncSession(sqlite_engine) as session:
        await seed_dev_user(session)

    app.dependency_overrides[get_session] = override_session
    app.dependency_overrides[get_settings] = lambda: app_settings

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
        yield http

    app.dependency_overrides.clear()
