"""Integration tests for owner-scoped document helpers on SQLite."""

import uuid
from pathlib import Path

import pytest
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db import documents
from backend.app.db.models import User


@pytest.mark.asyncio
async def test_ensure_owner_is_idempotent(sqlite_session: AsyncSession) -> None:
    """Test the owner row is provisioned once however often it is requested."""
    owner_id = uuid.uuid4()

    await documents.ensure_owner(sqlite_session, owner_id)
    await documents.ensure_owner(sqlite_session, owner_id)
    await sqlite_session.commit()

    result = await sqlite_session.execute(
        select(func.count()).select_from(User).where(User.user_id == owner_id)
    )
    assert result.scalar_one() == 1


@pytest.mark.asyncio
async def test_create_document_for_unseeded_owner(sqlite_session: AsyncSession, tmp_path: Path) -> None:
    """Test the first document of a new owner satisfies the user foreign key."""
    owner_id = uuid.uuid4()

    document = await documents.create_document(
        sqlite_session,
        owner_id,
        original_name="paper.pdf",
        content=b"%PDF-1.4 test",
        upload_dir=str(tmp_path / "uploads"),
    )

    assert Path(document.file_path).read_bytes() == b"%PDF-1.4 test"
    assert await documents.get_document(sqlite_session, owner_id, document.document_id) is not None
    assert await sqlite_session.get(User, owner_id) is not None
