"""Index maintainer - keeps content units in step with highlights and PDFs."""

import asyncio
import logging
from dataclasses import dataclass
from uuid import UUID

from backend.app.db.repositories import (
    AnnotationRecord,
    ContentStore,
    ContentUnitRecord,
    DocumentCatalog,
    ExtractedPage,
    TextExtractor,
)
from backend.app.errors import IndexingFailure, NotFoundError, SearchServiceError
from backend.app.models.common import ContentKind
from backend.app.models.search import SearchFilter
from backend.app.search.extraction import placeholder_pages
from backend.app.utils.logging import StructuredSearchLogger
from backend.app.utils.metrics import PrometheusSearchMetrics

logger = logging.getLogger(__name__)


@dataclass
class DocumentIndexOutcome:
    """Result of a manual per-document text indexing request."""

    already_indexed: bool
    pages_indexed: int
    is_placeholder: bool


class IndexMaintainer:
    """Creates and removes content units as their sources come and go.

    Per annotation the lifecycle is unindexed -> indexed -> removed. Idempotency
    is delegated to the store's atomic insert-if-absent so concurrent triggers
    for the same highlight converge on one unit.
    """

    def __init__(
        self,
        store: ContentStore,
        catalog: DocumentCatalog,
        extractor: TextExtractor | None = None,
        *,
        search_logger: StructuredSearchLogger | None = None,
        metrics: PrometheusSearchMetrics | None = None,
    ) -> None:
        self._store = store
        self._catalog = catalog
        self._extractor = extractor
        self._log = search_logger or StructuredSearchLogger()
        self._metrics = metrics or PrometheusSearchMetrics()

    async def index_annotation(self, annotation: AnnotationRecord, owner_id: UUID) -> bool:
        """Index a highlight's text.

        Args:
            annotation: Highlight to index
            owner_id: Owner the unit is scoped to

        Returns:
            True if a new unit was stored, False if it was already indexed

        Raises:
            IndexingFailure: If the highlight belongs to a different owner
            StorageFailure: If the store rejects the write
        """
        if annotation.owner_id != owner_id:
            raise IndexingFailure(
                f"annotation {annotation.annotation_id} is not owned by {owner_id}"
            )

        unit = ContentUnitRecord(
            owner_id=owner_id,
            document_id=annotation.document_id,
            page_number=annotation.page_number,
            content=annotation.text,
            content_kind=ContentKind.annotation,
            position=annotation.position,
            source_annotation_id=annotation.annotation_id,
        )
        inserted = await self._store.insert_if_absent(unit)

        outcome = "indexed" if inserted else "already_indexed"
        self._metrics.inc_index("annotation", outcome)
        self._log.log_index(
            owner_id, "annotation", outcome, annotation_id=annotation.annotation_id
        )
        return inserted

    async def remove_annotation_index(self, annotation_id: UUID, owner_id: UUID) -> bool:
        """Delete the unit for a highlight; a missing unit is not an error."""
        removed = await self._store.delete_by_source_annotation(owner_id, annotation_id)

        outcome = "removed" if removed else "absent"
        self._metrics.inc_index("remove_annotation", outcome)
        self._log.log_index(owner_id, "remove_annotation", outcome, annotation_id=annotation_id)
        return removed

    async def backfill_from_annotations(self, owner_id: UUID) -> int:
        """Index every existing highlight of an owner that is not indexed yet.

        Best effort: individual failures are logged and skipped, and a failure
        to enumerate highlights ends the run quietly.

        Returns:
            Number of units created
        """
        try:
            annotations = await self._catalog.list_annotations_for_owner(owner_id)
        except SearchServiceError as e:
            self._metrics.inc_index("backfill", "error")
            self._log.log_index(owner_id, "backfill", "error", error_reason=str(e))
            return 0

        created = 0
        for annotation in annotations:
            try:
                if await self.index_annotation(annotation, owner_id):
                    created += 1
            except SearchServiceError as e:
                self._metrics.inc_index("backfill_item", "error")
                self._log.log_index(
                    owner_id,
                    "backfill_item",
                    "error",
                    annotation_id=annotation.annotation_id,
                    error_reason=str(e),
                )

        self._metrics.inc_index("backfill", "completed")
        self._log.log_index(owner_id, "backfill", "completed", count=created)
        return created

    async def index_document_text(self, document_id: UUID, owner_id: UUID) -> DocumentIndexOutcome:
        """Index the body text of a PDF, one unit per page.

        Idempotent: a document that already has pdf_text units is left alone,
        and pages are stored with an atomic insert-if-absent so concurrent runs
        store each page once.

        Without an extractor the labelled placeholder pages are stored and the
        outcome says so.

        Raises:
            NotFoundError: If the owner has no such document
            IndexingFailure: If the file is unavailable or extraction fails
            StorageFailure: If the store rejects the write
        """
        if not await self._catalog.document_exists(owner_id, document_id):
            raise NotFoundError("PDF", document_id)

        existing = await self._store.count(
            SearchFilter(
                owner_id=owner_id,
                document_id=document_id,
                content_kinds=frozenset({ContentKind.pdf_text}),
            )
        )
        if existing:
            self._log.log_index(
                owner_id, "document_text", "already_indexed", document_id=document_id
            )
            return DocumentIndexOutcome(
                already_indexed=True, pages_indexed=existing, is_placeholder=False
            )

        pages, is_placeholder = await self._extract(document_id, owner_id)

        inserted = await self._store.insert_pages_if_absent(
            [
                ContentUnitRecord(
                    owner_id=owner_id,
                    document_id=document_id,
                    page_number=page.page_number,
                    content=page.text,
                    content_kind=ContentKind.pdf_text,
                )
                for page in pages
            ]
        )
        if pages and not inserted:
            # A concurrent run stored these pages first
            self._log.log_index(
                owner_id, "document_text", "already_indexed", document_id=document_id
            )
            return DocumentIndexOutcome(
                already_indexed=True, pages_indexed=len(pages), is_placeholder=is_placeholder
            )

        outcome = "placeholder" if is_placeholder else "indexed"
        self._metrics.inc_index("document_text", outcome)
        self._log.log_index(
            owner_id, "document_text", outcome, document_id=document_id, count=inserted
        )
        return DocumentIndexOutcome(
            already_indexed=False, pages_indexed=inserted, is_placeholder=is_placeholder
        )

    async def _extract(self, document_id: UUID, owner_id: UUID) -> tuple[list[ExtractedPage], bool]:
        if self._extractor is None:
            logger.warning("No text extractor configured; indexing placeholder text for %s", document_id)
            return placeholder_pages(), True

        pdf_bytes = await self._catalog.read_document_bytes(owner_id, document_id)
        if pdf_bytes is None:
            self._metrics.inc_index("document_text", "error")
            raise IndexingFailure(f"PDF file for {document_id} is unavailable")

        # PyMuPDF is CPU bound; keep it off the event loop
        pages = await asyncio.to_thread(self._extractor.extract_pages, pdf_bytes)
        return pages, False
