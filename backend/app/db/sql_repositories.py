"""SQL implementations of repository interfaces."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any
from uuid import UUID

from sqlalchemy import delete, func, select
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.db.models import ContentUnit, Highlight, PdfDocument
from backend.app.db.queries import content_unit_conditions, select_content_units, select_highlights
from backend.app.db.repositories import AnnotationRecord, ContentUnitRecord
from backend.app.errors import ConflictError, StorageFailure
from backend.app.models.common import ContentKind
from backend.app.models.search import SearchFilter, SortOrder

logger = logging.getLogger(__name__)

_ANNOTATION_KEY = ["owner_id", "source_annotation_id"]


def _as_utc(value: datetime) -> datetime:
    # SQLite hands back naive datetimes; everything is stored in UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


@asynccontextmanager
async def storage_errors(session: AsyncSession, operation: str) -> AsyncIterator[None]:
    """Roll back and re-raise driver errors as StorageFailure."""
    try:
        yield
    except SQLAlchemyError as e:
        await session.rollback()
        logger.error("Storage %s failed: %s", operation, type(e).__name__)
        raise StorageFailure(f"{operation} failed") from e


def _unit_key(unit: ContentUnitRecord) -> str:
    if unit.source_annotation_id is not None:
        return f"annotation {unit.source_annotation_id}"
    return f"document {unit.document_id} page {unit.page_number}"


def _to_record(row: ContentUnit) -> ContentUnitRecord:
    return ContentUnitRecord(
        unit_id=row.unit_id,
        owner_id=row.owner_id,
        document_id=row.document_id,
        page_number=row.page_number,
        content=row.content,
        content_kind=ContentKind(row.content_kind),
        position=row.position,
        source_annotation_id=row.source_annotation_id,
        created_at=_as_utc(row.created_at),
    )


def _to_row_values(unit: ContentUnitRecord) -> dict[str, Any]:
    return {
        "unit_id": unit.unit_id,
        "owner_id": unit.owner_id,
        "document_id": unit.document_id,
        "page_number": unit.page_number,
        "content": unit.content,
        "content_kind": unit.content_kind.value,
        "position": unit.position,
        "source_annotation_id": unit.source_annotation_id,
        "created_at": unit.created_at,
    }


class SqlContentStore:
    """SQL implementation of ContentStore."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def put(self, unit: ContentUnitRecord) -> None:
        """Insert a new unit."""
        async with storage_errors(self._session, "put"):
            self._session.add(ContentUnit(**_to_row_values(unit)))
            try:
                await self._session.commit()
            except IntegrityError as e:
                await self._session.rollback()
                raise ConflictError(f"content unit already exists: {_unit_key(unit)}") from e

    async def insert_if_absent(self, unit: ContentUnitRecord) -> bool:
        """Insert unless the (owner, annotation) pair is already indexed.

        Uses INSERT ... ON CONFLICT DO NOTHING where the dialect supports it so
        two concurrent triggers converge on one row.
        """
        dialect_name = self._session.get_bind().dialect.name
        values = _to_row_values(unit)

        if dialect_name == "postgresql":
            stmt = (
                postgresql_insert(ContentUnit.__table__)
                .values(**values)
                .on_conflict_do_nothing(index_elements=_ANNOTATION_KEY)
            )
        elif dialect_name == "sqlite":
            stmt = (
                sqlite_insert(ContentUnit.__table__)
                .values(**values)
                .on_conflict_do_nothing(index_elements=_ANNOTATION_KEY)
            )
        else:
            try:
                await self.put(unit)
            except ConflictError:
                return False
            return True

        async with storage_errors(self._session, "insert_if_absent"):
            result = await self._session.execute(stmt)
            await self._session.commit()
            return bool(result.rowcount == 1)

    async def put_many(self, units: list[ContentUnitRecord]) -> None:
        """Insert several units in one transaction."""
        if not units:
            return
        async with storage_errors(self._session, "put_many"):
            self._session.add_all([ContentUnit(**_to_row_values(unit)) for unit in units])
            await self._session.commit()

    async def insert_pages_if_absent(self, units: list[ContentUnitRecord]) -> int:
        """Insert pdf_text units, skipping pages the document already has.

        Relies on the partial unique index over (owner, document, page) so two
        concurrent indexing runs store each page once.

        Returns:
            Number of units actually inserted
        """
        if not units:
            return 0

        dialect_name = self._session.get_bind().dialect.name
        rows = [_to_row_values(unit) for unit in units]

        if dialect_name == "postgresql":
            stmt = postgresql_insert(ContentUnit.__table__).values(rows).on_conflict_do_nothing()
        elif dialect_name == "sqlite":
            stmt = sqlite_insert(ContentUnit.__table__).values(rows).on_conflict_do_nothing()
        else:
            inserted = 0
            for unit in units:
                try:
                    await self.put(unit)
                except ConflictError:
                    continue
                inserted += 1
            return inserted

        async with storage_errors(self._session, "insert_pages_if_absent"):
            result = await self._session.execute(stmt)
            await self._session.commit()
            return int(result.rowcount or 0)

    async def find(
        self,
        search_filter: SearchFilter,
        *,
        sort: SortOrder = SortOrder.newest_first,
        limit: int = 20,
        offset: int = 0,
    ) -> list[ContentUnitRecord]:
        """Return one stable-ordered page of matching units."""
        if sort is SortOrder.newest_first:
            ordering = (ContentUnit.created_at.desc(), ContentUnit.unit_id.desc())
        else:
            ordering = (ContentUnit.created_at.asc(), ContentUnit.unit_id.asc())

        stmt = select_content_units(search_filter).order_by(*ordering).limit(limit).offset(offset)

        async with storage_errors(self._session, "find"):
            result = await self._session.execute(stmt)
            rows = list(result.scalars().all())

        return [_to_record(row) for row in rows]

    async def count(self, search_filter: SearchFilter) -> int:
        """Count units matching the filter."""
        stmt = (
            select(func.count())
            .select_from(ContentUnit)
            .where(*content_unit_conditions(search_filter))
        )
        async with storage_errors(self._session, "count"):
            result = await self._session.execute(stmt)
            return int(result.scalar_one())

    async def count_by_owner(self, owner_id: UUID) -> int:
        """Count all units of an owner."""
        return await self.count(SearchFilter(owner_id=owner_id))

    async def get_by_source_annotation(
        self, owner_id: UUID, annotation_id: UUID
    ) -> ContentUnitRecord | None:
        """Look up the unit indexed for an annotation."""
        stmt = select(ContentUnit).where(
            ContentUnit.owner_id == owner_id,
            ContentUnit.source_annotation_id == annotation_id,
        )
        async with storage_errors(self._session, "get_by_source_annotation"):
            result = await self._session.execute(stmt)
            row = result.scalar_one_or_none()

        return _to_record(row) if row is not None else None

    async def delete_by_source_annotation(self, owner_id: UUID, annotation_id: UUID) -> bool:
        """Remove the unit indexed for an annotation, if any."""
        stmt = delete(ContentUnit.__table__).where(
            ContentUnit.__table__.c.owner_id == owner_id,
            ContentUnit.__table__.c.source_annotation_id == annotation_id,
        )
        async with storage_errors(self._session, "delete_by_source_annotation"):
            result = await self._session.execute(stmt)
            await self._session.commit()
            return bool(result.rowcount)

    async def delete_by_document(self, owner_id: UUID, document_id: UUID) -> int:
        """Remove every unit of a document."""
        stmt = delete(ContentUnit.__table__).where(
            ContentUnit.__table__.c.owner_id == owner_id,
            ContentUnit.__table__.c.document_id == document_id,
        )
        async with storage_errors(self._session, "delete_by_document"):
            result = await self._session.execute(stmt)
            await self._session.commit()
            return int(result.rowcount or 0)

    async def distinct_document_ids(
        self, owner_id: UUID, content_kind: ContentKind | None = None
    ) -> list[UUID]:
        """List the documents with at least one unit for this owner."""
        stmt = select(ContentUnit.document_id).where(ContentUnit.owner_id == owner_id)
        if content_kind is not None:
            stmt = stmt.where(ContentUnit.content_kind == content_kind.value)
        stmt = stmt.distinct().order_by(ContentUnit.document_id)

        async with storage_errors(self._session, "distinct_document_ids"):
            result = await self._session.execute(stmt)
            return list(result.scalars().all())


class SqlDocumentCatalog:
    """SQL implementation of DocumentCatalog."""

    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def lookup_names(self, owner_id: UUID, document_ids: list[UUID]) -> dict[UUID, str]:
        """Map document ids to original file names in one query."""
        if not document_ids:
            return {}

        stmt = select(PdfDocument.document_id, PdfDocument.original_name).where(
            PdfDocument.owner_id == owner_id,
            PdfDocument.document_id.in_(document_ids),
        )
        async with storage_errors(self._session, "lookup_names"):
            result = await self._session.execute(stmt)
            return {document_id: name for document_id, name in result.all()}

    async def list_annotations_for_owner(self, owner_id: UUID) -> list[AnnotationRecord]:
        """List every highlight of the owner, oldest first."""
        stmt = select_highlights(owner_id).order_by(Highlight.created_at, Highlight.highlight_id)
        async with storage_errors(self._session, "list_annotations_for_owner"):
            result = await self._session.execute(stmt)
            rows = list(result.scalars().all())

        return [
            AnnotationRecord(
                annotation_id=row.highlight_id,
                document_id=row.document_id,
                owner_id=row.owner_id,
                page_number=row.page_number,
                text=row.text,
                position=row.position,
                created_at=_as_utc(row.created_at),
            )
            for row in rows
        ]

    async def document_exists(self, owner_id: UUID, document_id: UUID) -> bool:
        """Check the document exists and belongs to the owner."""
        stmt = select(PdfDocument.document_id).where(
            PdfDocument.owner_id == owner_id,
            PdfDocument.document_id == document_id,
        )
        async with storage_errors(self._session, "document_exists"):
            result = await self._session.execute(stmt)
            return result.scalar_one_or_none() is not None

    async def read_document_bytes(self, owner_id: UUID, document_id: UUID) -> bytes | None:
        """Read the stored PDF without blocking the event loop."""
        stmt = select(PdfDocument.file_path).where(
            PdfDocument.owner_id == owner_id,
            PdfDocument.document_id == document_id,
        )
        async with storage_errors(self._session, "read_document_bytes"):
            result = await self._session.execute(stmt)
            file_path = result.scalar_one_or_none()

        if file_path is None:
            return None

        path = Path(file_path)
        if not path.is_file():
            logger.warning("Stored PDF missing on disk: %s", path)
            return None

        return await asyncio.to_thread(path.read_bytes)
