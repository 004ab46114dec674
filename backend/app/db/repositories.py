"""Repository protocol interfaces for data access."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol
from uuid import UUID, uuid4

from backend.app.db.models import utcnow
from backend.app.models.common import ContentKind
from backend.app.models.search import SearchFilter, SortOrder


@dataclass
class ContentUnitRecord:
    """One indexed, searchable fragment owned by a single user."""

    owner_id: UUID
    document_id: UUID
    page_number: int
    content: str
    content_kind: ContentKind
    position: dict[str, Any] | None = None
    source_annotation_id: UUID | None = None
    unit_id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=utcnow)


@dataclass
class AnnotationRecord:
    """Highlight as seen by the search subsystem."""

    annotation_id: UUID
    document_id: UUID
    owner_id: UUID
    page_number: int
    text: str
    position: dict[str, Any] | None
    created_at: datetime | None = None


@dataclass
class ExtractedPage:
    """Body text of one PDF page."""

    page_number: int
    text: str


class ContentStore(Protocol):
    """Owner-scoped persistence of content units."""

    async def put(self, unit: ContentUnitRecord) -> None:
        """Insert a new unit.

        Raises:
            ConflictError: If a unit already exists for the same
                (owner_id, source_annotation_id) pair, or a pdf_text unit
                for the same (owner_id, document_id, page_number).
            StorageFailure: If the store rejects the write.
        """
        ...

    async def insert_if_absent(self, unit: ContentUnitRecord) -> bool:
        """Atomically insert unless a unit exists for the same annotation.

        Returns:
            True if the unit was inserted, False if one already existed
        """
        ...

    async def put_many(self, units: list[ContentUnitRecord]) -> None:
        """Insert several units in one write."""
        ...

    async def insert_pages_if_absent(self, units: list[ContentUnitRecord]) -> int:
        """Atomically insert pdf_text units whose document page is not stored yet.

        Returns:
            Number of units inserted
        """
        ...

    async def find(
        self,
        search_filter: SearchFilter,
        *,
        sort: SortOrder = SortOrder.newest_first,
        limit: int = 20,
        offset: int = 0,
    ) -> list[ContentUnitRecord]:
        """Return one stable-ordered page of matching units."""
        ...

    async def count(self, search_filter: SearchFilter) -> int:
        """Count units matching the filter."""
        ...

    async def count_by_owner(self, owner_id: UUID) -> int:
        """Count all units of an owner (zero means "no index yet")."""
        ...

    async def get_by_source_annotation(
        self, owner_id: UUID, annotation_id: UUID
    ) -> ContentUnitRecord | None:
        """Look up the unit indexed for an annotation."""
        ...

    async def delete_by_source_annotation(self, owner_id: UUID, annotation_id: UUID) -> bool:
        """Remove at most one unit. Returns True if a unit was removed."""
        ...

    async def delete_by_document(self, owner_id: UUID, document_id: UUID) -> int:
        """Remove every unit of a document. Returns the number removed."""
        ...

    async def distinct_document_ids(
        self, owner_id: UUID, content_kind: ContentKind | None = None
    ) -> list[UUID]:
        """List the documents that have at least one unit for this owner."""
        ...


class DocumentCatalog(Protocol):
    """Document collaborator consumed by the search subsystem."""

    async def lookup_names(self, owner_id: UUID, document_ids: list[UUID]) -> dict[UUID, str]:
        """Map document ids to display names; unknown ids are omitted."""
        ...

    async def list_annotations_for_owner(self, owner_id: UUID) -> list[AnnotationRecord]:
        """List every highlight the owner has created."""
        ...

    async def document_exists(self, owner_id: UUID, document_id: UUID) -> bool:
        """Check the document exists and belongs to the owner."""
        ...

    async def read_document_bytes(self, owner_id: UUID, document_id: UUID) -> bytes | None:
        """Return the raw PDF bytes, or None when the file is unavailable."""
        ...


class TextExtractor(Protocol):
    """Optional text extraction collaborator."""

    def extract_pages(self, pdf_bytes: bytes) -> list[ExtractedPage]:
        """Extract body text, one entry per page with text."""
        ...
