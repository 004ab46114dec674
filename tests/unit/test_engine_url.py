"""Unit tests for database URL resolution."""

import pytest

from backend.app.config import Settings
from backend.app.db.engine import resolve_database_url


def test_postgres_url_uses_asyncpg() -> None:
    """Test plain postgresql URLs are switched to the async driver."""
    settings = Settings(database_url="postgresql://app:secret@db:5432/annotations")

    assert resolve_database_url(settings) == "postgresql+asyncpg://app:secret@db:5432/annotations"


def test_sqlite_url_unchanged() -> None:
    """Test async SQLite URLs pass through."""
    settings = Settings(database_url="sqlite+aiosqlite:///./local.db")

    assert resolve_database_url(settings) == "sqlite+aiosqlite:///./local.db"


def test_placeholder_url_rejected() -> None:
    """Test the shipped placeholder is never used to connect."""
    settings = Settings(database_url=None)

    with pytest.raises(ValueError, match="DATABASE_URL must be set"):
        resolve_database_url(settings)
