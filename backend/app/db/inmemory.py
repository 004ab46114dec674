"""In-memory implementations of repository interfaces."""

import uuid
from dataclasses import replace

from backend.app.db.repositories import AnnotationRecord, ContentUnitRecord
from backend.app.errors import ConflictError
from backend.app.models.common import ContentKind
from backend.app.models.search import SearchFilter, SortOrder


def matches_filter(unit: ContentUnitRecord, search_filter: SearchFilter) -> bool:
    """Evaluate a SearchFilter against one unit, mirroring the SQL conditions."""
    if unit.owner_id != search_filter.owner_id:
        return False
    if search_filter.text is not None and search_filter.text.lower() not in unit.content.lower():
        return False
    if search_filter.document_id is not None and unit.document_id != search_filter.document_id:
        return False
    if search_filter.document_ids and unit.document_id not in search_filter.document_ids:
        return False
    if search_filter.content_kinds and unit.content_kind not in search_filter.content_kinds:
        return False
    if search_filter.page_number is not None and unit.page_number != search_filter.page_number:
        return False
    if search_filter.created_from is not None and unit.created_at < search_filter.created_from:
        return False
    if search_filter.created_to is not None and unit.created_at > search_filter.created_to:
        return False
    return True


class InMemoryContentStore:
    """In-memory implementation of ContentStore.

    No method awaits between its read and its write, so each operation is
    atomic with respect to other coroutines on the same event loop.
    """

    def __init__(self) -> None:
        self._units: dict[uuid.UUID, ContentUnitRecord] = {}
        self._by_annotation: dict[tuple[uuid.UUID, uuid.UUID], uuid.UUID] = {}
        self._pages: set[tuple[uuid.UUID, uuid.UUID, int]] = set()

    def _insert(self, unit: ContentUnitRecord) -> None:
        if unit.source_annotation_id is not None:
            self._by_annotation[(unit.owner_id, unit.source_annotation_id)] = unit.unit_id
        page_key = self._page_key(unit)
        if page_key is not None:
            self._pages.add(page_key)
        self._units[unit.unit_id] = replace(unit)

    def _annotation_key(self, unit: ContentUnitRecord) -> tuple[uuid.UUID, uuid.UUID] | None:
        if unit.source_annotation_id is None:
            return None
        return (unit.owner_id, unit.source_annotation_id)

    def _page_key(self, unit: ContentUnitRecord) -> tuple[uuid.UUID, uuid.UUID, int] | None:
        if unit.content_kind is not ContentKind.pdf_text:
            return None
        return (unit.owner_id, unit.document_id, unit.page_number)

    async def put(self, unit: ContentUnitRecord) -> None:
        """Insert a new unit."""
        key = self._annotation_key(unit)
        if key is not None and key in self._by_annotation:
            raise ConflictError(
                f"content unit already exists for annotation {unit.source_annotation_id}"
            )
        if self._page_key(unit) in self._pages:
            raise ConflictError(
                f"content unit already exists for document {unit.document_id} page {unit.page_number}"
            )
        self._insert(unit)

    async def insert_if_absent(self, unit: ContentUnitRecord) -> bool:
        """Insert unless the (owner, annotation) pair is already indexed."""
        key = self._annotation_key(unit)
        if key is not None and key in self._by_annotation:
            return False
        self._insert(unit)
        return True

    async def put_many(self, units: list[ContentUnitRecord]) -> None:
        """Insert several units."""
        for unit in units:
            await self.put(unit)

    async def insert_pages_if_absent(self, units: list[ContentUnitRecord]) -> int:
        """Insert pdf_text units whose document page is not stored yet."""
        inserted = 0
        for unit in units:
            if self._page_key(unit) in self._pages:
                continue
            self._insert(unit)
            inserted += 1
        return inserted

    async def find(
        self,
        search_filter: SearchFilter,
        *,
        sort: SortOrder = SortOrder.newest_first,
        limit: int = 20,
        offset: int = 0,
    ) -> list[ContentUnitRecord]:
        """Return one stable-ordered page of matching units."""
        matches = [unit for unit in self._units.values() if matches_filter(unit, search_filter)]
        matches.sort(
            key=lambda unit: (unit.created_at, unit.unit_id),
            reverse=sort is SortOrder.newest_first,
        )
        return [replace(unit) for unit in matches[offset : offset + limit]]

    async def count(self, search_filter: SearchFilter) -> int:
        """Count units matching the filter."""
        return sum(1 for unit in self._units.values() if matches_filter(unit, search_filter))

    async def count_by_owner(self, owner_id: uuid.UUID) -> int:
        """Count all units of an owner."""
        return sum(1 for unit in self._units.values() if unit.owner_id == owner_id)

    async def get_by_source_annotation(
        self, owner_id: uuid.UUID, annotation_id: uuid.UUID
    ) -> ContentUnitRecord | None:
        """Look up the unit indexed for an annotation."""
        unit_id = self._by_annotation.get((owner_id, annotation_id))
        if unit_id is None:
            return None
        return replace(self._units[unit_id])

    async def delete_by_source_annotation(
        self, owner_id: uuid.UUID, annotation_id: uuid.UUID
    ) -> bool:
        """Remove the unit indexed for an annotation, if any."""
        unit_id = self._by_annotation.pop((owner_id, annotation_id), None)
        if unit_id is None:
            return False
        del self._units[unit_id]
        return True

    async def delete_by_document(self, owner_id: uuid.UUID, document_id: uuid.UUID) -> int:
        """Remove every unit of a document."""
        doomed = [
            unit
            for unit in self._units.values()
            if unit.owner_id == owner_id and unit.document_id == document_id
        ]
        for unit in doomed:
            del self._units[unit.unit_id]
            key = self._annotation_key(unit)
            if key is not None:
                self._by_annotation.pop(key, None)
            self._pages.discard(self._page_key(unit))
        return len(doomed)

    async def distinct_document_ids(
        self, owner_id: uuid.UUID, content_kind: ContentKind | None = None
    ) -> list[uuid.UUID]:
        """List the documents with at least one unit for this owner."""
        document_ids = {
            unit.document_id
            for unit in self._units.values()
            if unit.owner_id == owner_id
            and (content_kind is None or unit.content_kind == content_kind)
        }
        return sorted(document_ids)


class InMemoryDocumentCatalog:
    """In-memory implementation of DocumentCatalog."""

    def __init__(self) -> None:
        self._documents: dict[uuid.UUID, tuple[uuid.UUID, str, bytes | None]] = {}
        self._annotations: dict[uuid.UUID, AnnotationRecord] = {}

    def add_document(
        self,
        owner_id: uuid.UUID,
        name: str,
        *,
        document_id: uuid.UUID | None = None,
        content: bytes | None = None,
    ) -> uuid.UUID:
        """Register a document and return its id."""
        document_id = document_id or uuid.uuid4()
        self._documents[document_id] = (owner_id, name, content)
        return document_id

    def add_annotation(self, annotation: AnnotationRecord) -> None:
        """Register an existing highlight."""
        self._annotations[annotation.annotation_id] = annotation

    async def lookup_names(
        self, owner_id: uuid.UUID, document_ids: list[uuid.UUID]
    ) -> dict[uuid.UUID, str]:
        """Map document ids to names; other owners' documents are invisible."""
        names: dict[uuid.UUID, str] = {}
        for document_id in document_ids:
            stored = self._documents.get(document_id)
            if stored is not None and stored[0] == owner_id:
                names[document_id] = stored[1]
        return names

    async def list_annotations_for_owner(self, owner_id: uuid.UUID) -> list[AnnotationRecord]:
        """List every highlight of the owner."""
        return [
            annotation
            for annotation in self._annotations.values()
            if annotation.owner_id == owner_id
        ]

    async def document_exists(self, owner_id: uuid.UUID, document_id: uuid.UUID) -> bool:
        """Check the document exists and belongs to the owner."""
        stored = self._documents.get(document_id)
        return stored is not None and stored[0] == owner_id

    async def read_document_bytes(
        self, owner_id: uuid.UUID, document_id: uuid.UUID
    ) -> bytes | None:
        """Return the registered bytes for the owner's document."""
        stored = self._documents.get(document_id)
        if stored is None or stored[0] != owner_id:
            return None
        return stored[2]
