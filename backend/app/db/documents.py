"""Owner-scoped helpers for PDF document and highlight rows."""

import asyncio
import uuid
from pathlib import Path
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.models import Highlight, PdfDocument, User, utcnow
from backend.app.db.queries import select_documents, select_highlights
from backend.app.db.repositories import AnnotationRecord


def to_annotation_record(highlight: Highlight) -> AnnotationRecord:
    """View a highlight row as the search subsystem's annotation."""
    return AnnotationRecord(
        annotation_id=highlight.highlight_id,
        document_id=highlight.document_id,
        owner_id=highlight.owner_id,
        page_number=highlight.page_number,
        text=highlight.text,
        position=highlight.position,
        created_at=highlight.created_at,
    )


async def ensure_owner(session: AsyncSession, owner_id: uuid.UUID) -> None:
    """Provision the owner's user row if it does not exist yet.

    Authentication is handled upstream, so any authenticated owner id may
    reach a write before it has a row here. Does not commit.
    """
    values = {
        "user_id": owner_id,
        "email": f"{owner_id}@users.invalid",
        "name": "User",
        "created_at": utcnow(),
    }
    dialect_name = session.get_bind().dialect.name

    if dialect_name == "postgresql":
        stmt = postgresql_insert(User.__table__).values(**values)
    elif dialect_name == "sqlite":
        stmt = sqlite_insert(User.__table__).values(**values)
    else:
        if await session.get(User, owner_id) is None:
            session.add(User(**values))
            await session.flush()
        return

    await session.execute(stmt.on_conflict_do_nothing(index_elements=["user_id"]))


async def create_document(
    session: AsyncSession,
    owner_id: uuid.UUID,
    *,
    original_name: str,
    content: bytes,
    upload_dir: str,
) -> PdfDocument:
    """Write the PDF bytes to disk and persist its row.

    The owner row is provisioned in the same transaction. The file is removed
    again if the row cannot be committed.
    """
    await ensure_owner(session, owner_id)

    document_id = uuid.uuid4()
    target = Path(upload_dir) / str(owner_id) / f"{document_id}.pdf"
    target.parent.mkdir(parents=True, exist_ok=True)
    await asyncio.to_thread(target.write_bytes, content)

    document = PdfDocument(
        document_id=document_id,
        owner_id=owner_id,
        original_name=original_name,
        file_path=str(target),
        file_size=len(content),
        created_at=utcnow(),
    )
    session.add(document)
    try:
        await session.commit()
    except Exception:
        await session.rollback()
        target.unlink(missing_ok=True)
        raise

    return document


async def list_documents(
    session: AsyncSession,
    owner_id: uuid.UUID,
    *,
    name_contains: str | None = None,
    page: int = 1,
    limit: int = 10,
) -> tuple[list[PdfDocument], int]:
    """List the owner's documents newest first, with the total count."""
    query = select_documents(owner_id)
    if name_contains:
        query = query.where(PdfDocument.original_name.icontains(name_contains, autoescape=True))

    total_result = await session.execute(select(func.count()).select_from(query.subquery()))
    total = int(total_result.scalar_one())

    result = await session.execute(
        query.order_by(PdfDocument.created_at.desc())
        .limit(limit)
        .offset((page - 1) * limit)
    )
    return list(result.scalars().all()), total


async def get_document(
    session: AsyncSession, owner_id: uuid.UUID, document_id: uuid.UUID
) -> PdfDocument | None:
    """Fetch one document if the owner has it."""
    result = await session.execute(
        select_documents(owner_id).where(PdfDocument.document_id == document_id)
    )
    return result.scalar_one_or_none()


async def rename_document(
    session: AsyncSession, owner_id: uuid.UUID, document_id: uuid.UUID, name: str
) -> PdfDocument | None:
    """Change the display name; None when the document does not exist."""
    document = await get_document(session, owner_id, document_id)
    if document is None:
        return None

    document.original_name = name.strip()
    await session.commit()
    return document


async def delete_document(
    session: AsyncSession, owner_id: uuid.UUID, document_id: uuid.UUID
) -> bool:
    """Delete the document row, its highlights and its stored file.

    Content units are not touched here; the caller clears them through the
    content store.
    """
    document = await get_document(session, owner_id, document_id)
    if document is None:
        return False

    file_path = Path(document.file_path)
    # Highlights go with the document through the relationship cascade
    await session.delete(document)
    await session.commit()

    # Row deletion wins even if the file is already gone
    file_path.unlink(missing_ok=True)
    return True


async def create_highlight(
    session: AsyncSession,
    owner_id: uuid.UUID,
    *,
    document_id: uuid.UUID,
    page_number: int,
    text: str,
    position: dict[str, Any],
    color: str,
) -> Highlight:
    """Persist a highlight on one of the owner's documents."""
    highlight = Highlight(
        highlight_id=uuid.uuid4(),
        document_id=document_id,
        owner_id=owner_id,
        page_number=page_number,
        text=text,
        position=position,
        color=color,
        created_at=utcnow(),
    )
    session.add(highlight)
    await session.commit()
    return highlight


async def list_highlights_for_document(
    session: AsyncSession,
    owner_id: uuid.UUID,
    document_id: uuid.UUID,
    *,
    page_number: int | None = None,
) -> list[Highlight]:
    """List a document's highlights by page, then creation time."""
    query = select_highlights(owner_id).where(Highlight.document_id == document_id)
    if page_number is not None:
        query = query.where(Highlight.page_number == page_number)

    result = await session.execute(
        query.order_by(Highlight.page_number, Highlight.created_at, Highlight.highlight_id)
    )
    return list(result.scalars().all())


async def get_highlight(
    session: AsyncSession, owner_id: uuid.UUID, highlight_id: uuid.UUID
) -> Highlight | None:
    """Fetch one highlight if the owner has it."""
    result = await session.execute(
        select_highlights(owner_id).where(Highlight.highlight_id == highlight_id)
    )
    return result.scalar_one_or_none()


async def update_highlight(
    session: AsyncSession,
    owner_id: uuid.UUID,
    highlight_id: uuid.UUID,
    *,
    text: str | None = None,
    position: dict[str, Any] | None = None,
    color: str | None = None,
) -> Highlight | None:
    """Apply the supplied changes; None when the highlight does not exist."""
    highlight = await get_highlight(session, owner_id, highlight_id)
    if highlight is None:
        return None

    if text is not None:
        highlight.text = text.strip()
    if position is not None:
        highlight.position = position
    if color is not None:
        highlight.color = color

    await session.commit()
    return highlight


async def delete_highlight(
    session: AsyncSession, owner_id: uuid.UUID, highlight_id: uuid.UUID
) -> Highlight | None:
    """Delete a highlight and return the removed row, or None if it was absent."""
    highlight = await get_highlight(session, owner_id, highlight_id)
    if highlight is None:
        return None

    await session.delete(highlight)
    await session.commit()
    return highlight
