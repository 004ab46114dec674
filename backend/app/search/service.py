"""Search service - the one interface shared by the HTTP layer and highlight CRUD."""

import logging
import time
from uuid import UUID

from backend.app.db.repositories import AnnotationRecord, ContentStore
from backend.app.errors import InvalidQueryError, SearchServiceError
from backend.app.models.common import ContentKind, Pagination
from backend.app.models.search import (
    AdvancedSearchRequest,
    IndexDocumentResponse,
    IndexStatsResponse,
    SearchFilter,
    SearchResponse,
    SuggestionResponse,
    kinds_from_options,
)
from backend.app.search.formatter import ResultFormatter
from backend.app.search.index_maintainer import IndexMaintainer
from backend.app.search.query_engine import QueryEngine, QueryPage
from backend.app.utils.logging import StructuredSearchLogger
from backend.app.utils.metrics import PrometheusSearchMetrics

logger = logging.getLogger(__name__)

NEEDS_INDEXING_MESSAGE = (
    "No content indexed yet. Please create some highlights or upload PDFs to search."
)


class SearchService:
    """Facade over the query engine, result formatter and index maintainer.

    Search operations raise InvalidQueryError or StorageFailure for the caller
    to translate. Annotation lifecycle hooks never raise.
    """

    def __init__(
        self,
        store: ContentStore,
        engine: QueryEngine,
        formatter: ResultFormatter,
        maintainer: IndexMaintainer,
        *,
        suggestion_scan_limit: int = 5,
        search_logger: StructuredSearchLogger | None = None,
        metrics: PrometheusSearchMetrics | None = None,
    ) -> None:
        self._store = store
        self._engine = engine
        self._formatter = formatter
        self._maintainer = maintainer
        self._suggestion_scan_limit = suggestion_scan_limit
        self._log = search_logger or StructuredSearchLogger()
        self._metrics = metrics or PrometheusSearchMetrics()

    async def _respond(self, owner_id: UUID, page: QueryPage) -> SearchResponse:
        if page.needs_indexing:
            return SearchResponse(
                results=[],
                pagination=Pagination.empty(),
                query=page.query,
                message=NEEDS_INDEXING_MESSAGE,
                needs_indexing=True,
            )

        results = await self._formatter.format_results(owner_id, page.units, page.query)
        return SearchResponse(
            results=results,
            pagination=Pagination.for_total(page.total, page.page, page.limit),
            query=page.query,
        )

    def _record(self, owner_id: UUID, kind: str, outcome: str, started: float, count: int = 0) -> None:
        latency_ms = (time.perf_counter() - started) * 1000
        self._metrics.record_search(kind, outcome, latency_ms)
        self._log.log_search(owner_id, kind, outcome, latency_ms, result_count=count)

    async def search(
        self,
        owner_id: UUID,
        query: str | None,
        *,
        document_id: UUID | None = None,
        content_kind: ContentKind | None = None,
    ) -> SearchResponse:
        """Simple search: one page of newest matches.

        Raises:
            InvalidQueryError: Query shorter than the minimum length
            StorageFailure: Content store unavailable
        """
        started = time.perf_counter()
        try:
            page = await self._engine.simple_search(
                owner_id, query, document_id=document_id, content_kind=content_kind
            )
            response = await self._respond(owner_id, page)
        except SearchServiceError as e:
            self._record(owner_id, "simple", type(e).__name__, started)
            raise

        outcome = "needs_indexing" if page.needs_indexing else "success"
        self._record(owner_id, "simple", outcome, started, len(response.results))
        return response

    async def advanced_search(self, owner_id: UUID, request: AdvancedSearchRequest) -> SearchResponse:
        """Advanced search with paging; always reports fuzzy as not applied.

        Raises:
            InvalidQueryError: Query shorter than the minimum length
            StorageFailure: Content store unavailable
        """
        started = time.perf_counter()
        try:
            page = await self._engine.advanced_search(
                owner_id,
                request.query,
                document_ids=request.document_ids,
                content_kinds=kinds_from_options(request.content_kinds),
                date_from=request.date_from,
                date_to=request.date_to,
                page_number=request.page_number,
                fuzzy=request.fuzzy,
                page=request.page,
                limit=request.limit,
            )
            response = await self._respond(owner_id, page)
        except SearchServiceError as e:
            self._record(owner_id, "advanced", type(e).__name__, started)
            raise

        response.fuzzy = page.fuzzy_applied
        outcome = "needs_indexing" if page.needs_indexing else "success"
        self._record(owner_id, "advanced", outcome, started, len(response.results))
        return response

    async def suggestions(self, owner_id: UUID, query: str | None) -> SuggestionResponse:
        """Prefix completions from recent matching content; never raises."""
        try:
            trimmed = self._engine.validate_query(query)
        except InvalidQueryError:
            return SuggestionResponse(suggestions=[])

        try:
            units = await self._engine.recent_matches(
                owner_id, trimmed, self._suggestion_scan_limit
            )
        except SearchServiceError:
            logger.exception("Suggestions failed for owner %s", owner_id)
            self._metrics.record_search("suggestions", "error", 0.0)
            return SuggestionResponse(suggestions=[])

        return SuggestionResponse(suggestions=self._formatter.suggestions(units, trimmed))

    async def index_document_text(self, owner_id: UUID, document_id: UUID) -> IndexDocumentResponse:
        """Manually index a PDF's body text.

        Raises:
            NotFoundError: No such document for the owner
            IndexingFailure: File unavailable or extraction failed
            StorageFailure: Content store unavailable
        """
        outcome = await self._maintainer.index_document_text(document_id, owner_id)

        if outcome.already_indexed:
            return IndexDocumentResponse(
                message="PDF already indexed",
                indexed=True,
                already_indexed=True,
                pages_indexed=outcome.pages_indexed,
            )
        if outcome.pages_indexed == 0:
            return IndexDocumentResponse(
                message="No extractable text found in PDF",
                indexed=False,
            )

        message = (
            "PDF indexed with placeholder content; text extraction is not configured"
            if outcome.is_placeholder
            else "PDF indexed successfully"
        )
        return IndexDocumentResponse(
            message=message,
            indexed=True,
            pages_indexed=outcome.pages_indexed,
            is_placeholder=outcome.is_placeholder,
        )

    async def index_stats(self, owner_id: UUID) -> IndexStatsResponse:
        """Per-kind unit counts and the documents that have units."""
        pdf_text_units = await self._store.count(
            SearchFilter(owner_id=owner_id, content_kinds=frozenset({ContentKind.pdf_text}))
        )
        annotation_units = await self._store.count(
            SearchFilter(owner_id=owner_id, content_kinds=frozenset({ContentKind.annotation}))
        )
        return IndexStatsResponse(
            total_units=pdf_text_units + annotation_units,
            pdf_text_units=pdf_text_units,
            annotation_units=annotation_units,
            document_ids=await self._store.distinct_document_ids(owner_id),
        )

    async def on_annotation_created(self, annotation: AnnotationRecord, owner_id: UUID) -> None:
        """Index a newly created highlight. Failures are logged, never raised."""
        try:
            await self._maintainer.index_annotation(annotation, owner_id)
        except Exception:
            self._metrics.inc_index("annotation", "error")
            logger.exception("Indexing highlight %s failed", annotation.annotation_id)

    async def on_annotation_deleted(self, annotation_id: UUID, owner_id: UUID) -> None:
        """Drop a deleted highlight from the index. Failures are logged, never raised."""
        try:
            await self._maintainer.remove_annotation_index(annotation_id, owner_id)
        except Exception:
            self._metrics.inc_index("remove_annotation", "error")
            logger.exception("Removing index for highlight %s failed", annotation_id)

    async def on_document_deleted(self, document_id: UUID, owner_id: UUID) -> int:
        """Drop every unit of a deleted document. Failures are logged, never raised."""
        try:
            removed = await self._store.delete_by_document(owner_id, document_id)
        except Exception:
            self._metrics.inc_index("remove_document", "error")
            logger.exception("Removing index for PDF %s failed", document_id)
            return 0

        self._metrics.inc_index("remove_document", "removed")
        self._log.log_index(
            owner_id, "remove_document", "removed", document_id=document_id, count=removed
        )
        return removed

    async def on_annotation_updated(self, annotation: AnnotationRecord, owner_id: UUID) -> None:
        """Re-index an edited highlight so the stored text follows the edit."""
        await self.on_annotation_deleted(annotation.annotation_id, owner_id)
        await self.on_annotation_created(annotation, owner_id)
