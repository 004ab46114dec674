"""Unit tests for the index maintainer."""

import asyncio
import uuid
from unittest.mock import AsyncMock, MagicMock

import pytest

from backend.app.db.inmemory import InMemoryContentStore, InMemoryDocumentCatalog
from backend.app.db.repositories import AnnotationRecord, ExtractedPage
from backend.app.errors import IndexingFailure, NotFoundError, StorageFailure
from backend.app.models.common import ContentKind
from backend.app.models.search import SearchFilter
from backend.app.search.extraction import PLACEHOLDER_PAGE_TEXT
from backend.app.search.index_maintainer import IndexMaintainer

OWNER = uuid.uuid4()


def _annotation(document_id: uuid.UUID, text: str = "machine learning basics") -> AnnotationRecord:
    return AnnotationRecord(
        annotation_id=uuid.uuid4(),
        document_id=document_id,
        owner_id=OWNER,
        page_number=3,
        text=text,
        position={"x": 1.0, "y": 2.0, "width": 3.0, "height": 4.0},
    )


class TestAnnotationIndexing:
    """Test index_annotation and remove_annotation_index."""

    @pytest.mark.asyncio
    async def test_index_copies_annotation_fields(
        self, maintainer: IndexMaintainer, store: InMemoryContentStore
    ) -> None:
        """Test the stored unit mirrors the highlight."""
        annotation = _annotation(uuid.uuid4())

        assert await maintainer.index_annotation(annotation, OWNER) is True

        unit = await store.get_by_source_annotation(OWNER, annotation.annotation_id)
        assert unit is not None
        assert unit.content == "machine learning basics"
        assert unit.content_kind is ContentKind.annotation
        assert unit.page_number == 3
        assert unit.document_id == annotation.document_id
        assert unit.position == annotation.position

    @pytest.mark.asyncio
    async def test_index_is_idempotent(
        self, maintainer: IndexMaintainer, store: InMemoryContentStore
    ) -> None:
        """Test indexing twice stores one unit and does not raise."""
        annotation = _annotation(uuid.uuid4())

        assert await maintainer.index_annotation(annotation, OWNER) is True
        assert await maintainer.index_annotation(annotation, OWNER) is False
        assert await store.count_by_owner(OWNER) == 1

    @pytest.mark.asyncio
    async def test_concurrent_indexing_converges(
        self, maintainer: IndexMaintainer, store: InMemoryContentStore
    ) -> None:
        """Test racing triggers for one highlight leave exactly one unit."""
        annotation = _annotation(uuid.uuid4())

        results = await asyncio.gather(
            *(maintainer.index_annotation(annotation, OWNER) for _ in range(10))
        )

        assert results.count(True) == 1
        assert await store.count_by_owner(OWNER) == 1

    @pytest.mark.asyncio
    async def test_owner_mismatch_rejected(self, maintainer: IndexMaintainer) -> None:
        """Test a highlight cannot be indexed under another owner."""
        with pytest.raises(IndexingFailure):
            await maintainer.index_annotation(_annotation(uuid.uuid4()), uuid.uuid4())

    @pytest.mark.asyncio
    async def test_remove_round_trip(
        self, maintainer: IndexMaintainer, store: InMemoryContentStore
    ) -> None:
        """Test index then remove leaves no unit, and removing again is a no-op."""
        annotation = _annotation(uuid.uuid4())
        await maintainer.index_annotation(annotation, OWNER)

        assert await maintainer.remove_annotation_index(annotation.annotation_id, OWNER) is True
        assert await store.get_by_source_annotation(OWNER, annotation.annotation_id) is None
        assert await maintainer.remove_annotation_index(annotation.annotation_id, OWNER) is False

    @pytest.mark.asyncio
    async def test_remove_keeps_pdf_text(
        self, maintainer: IndexMaintainer, store: InMemoryContentStore, catalog: InMemoryDocumentCatalog
    ) -> None:
        """Test removing a highlight's unit never touches body-text units."""
        document_id = catalog.add_document(OWNER, "paper.pdf")
        annotation = _annotation(document_id)
        await maintainer.index_document_text(document_id, OWNER)
        await maintainer.index_annotation(annotation, OWNER)

        await maintainer.remove_annotation_index(annotation.annotation_id, OWNER)

        remaining = await store.count(
            SearchFilter(owner_id=OWNER, content_kinds=frozenset({ContentKind.pdf_text}))
        )
        assert remaining == len(PLACEHOLDER_PAGE_TEXT)


class TestBackfill:
    """Test backfill_from_annotations."""

    @pytest.mark.asyncio
    async def test_backfill_indexes_missing_only(
        self, maintainer: IndexMaintainer, store: InMemoryContentStore, catalog: InMemoryDocumentCatalog
    ) -> None:
        """Test already indexed highlights are skipped."""
        document_id = catalog.add_document(OWNER, "paper.pdf")
        first, second = _annotation(document_id), _annotation(document_id, "second")
        catalog.add_annotation(first)
        catalog.add_annotation(second)
        await maintainer.index_annotation(first, OWNER)

        created = await maintainer.backfill_from_annotations(OWNER)

        assert created == 1
        assert await store.count_by_owner(OWNER) == 2

    @pytest.mark.asyncio
    async def test_backfill_skips_failing_items(self, catalog: InMemoryDocumentCatalog) -> None:
        """Test one failing highlight does not stop the others."""
        document_id = catalog.add_document(OWNER, "paper.pdf")
        catalog.add_annotation(_annotation(document_id, "bad"))
        catalog.add_annotation(_annotation(document_id, "good"))

        store = InMemoryContentStore()
        real_insert = store.insert_if_absent

        async def flaky_insert(unit):  # type: ignore[no-untyped-def]
            if unit.content == "bad":
                raise StorageFailure("insert_if_absent failed")
            return await real_insert(unit)

        store.insert_if_absent = flaky_insert  # type: ignore[method-assign]
        maintainer = IndexMaintainer(store, catalog)

        assert await maintainer.backfill_from_annotations(OWNER) == 1

    @pytest.mark.asyncio
    async def test_backfill_enumeration_failure_is_quiet(self, store: InMemoryContentStore) -> None:
        """Test a failing highlight listing ends the run without raising."""
        catalog = AsyncMock()
        catalog.list_annotations_for_owner.side_effect = StorageFailure("list failed")
        maintainer = IndexMaintainer(store, catalog)

        assert await maintainer.backfill_from_annotations(OWNER) == 0


class TestDocumentText:
    """Test index_document_text."""

    @pytest.mark.asyncio
    async def test_unknown_document_not_found(self, maintainer: IndexMaintainer) -> None:
        """Test a missing or foreign document raises NotFoundError."""
        with pytest.raises(NotFoundError):
            await maintainer.index_document_text(uuid.uuid4(), OWNER)

    @pytest.mark.asyncio
    async def test_placeholder_mode_is_labelled_and_idempotent(
        self, maintainer: IndexMaintainer, store: InMemoryContentStore, catalog: InMemoryDocumentCatalog
    ) -> None:
        """Test placeholder pages are flagged and a second call is a no-op."""
        document_id = catalog.add_document(OWNER, "paper.pdf")

        first = await maintainer.index_document_text(document_id, OWNER)
        second = await maintainer.index_document_text(document_id, OWNER)

        assert first.is_placeholder
        assert first.pages_indexed == len(PLACEHOLDER_PAGE_TEXT)
        assert not first.already_indexed
        assert second.already_indexed
        assert await store.count_by_owner(OWNER) == len(PLACEHOLDER_PAGE_TEXT)

    @pytest.mark.asyncio
    async def test_extractor_pages_are_stored(
        self, store: InMemoryContentStore, catalog: InMemoryDocumentCatalog
    ) -> None:
        """Test each extracted page becomes one pdf_text unit."""
        document_id = catalog.add_document(OWNER, "paper.pdf", content=b"%PDF-1.4")
        extractor = MagicMock()
        extractor.extract_pages.return_value = [
            ExtractedPage(page_number=1, text="Intro page"),
            ExtractedPage(page_number=4, text="Results page"),
        ]
        maintainer = IndexMaintainer(store, catalog, extractor)

        outcome = await maintainer.index_document_text(document_id, OWNER)

        assert outcome.pages_indexed == 2
        assert not outcome.is_placeholder
        extractor.extract_pages.assert_called_once_with(b"%PDF-1.4")
        units = await store.find(SearchFilter(owner_id=OWNER))
        assert sorted(u.page_number for u in units) == [1, 4]
        assert all(u.content_kind is ContentKind.pdf_text for u in units)

    @pytest.mark.asyncio
    async def test_missing_file_is_indexing_failure(
        self, store: InMemoryContentStore, catalog: InMemoryDocumentCatalog
    ) -> None:
        """Test a document without readable bytes fails instead of using placeholders."""
        document_id = catalog.add_document(OWNER, "paper.pdf")
        maintainer = IndexMaintainer(store, catalog, MagicMock())

        with pytest.raises(IndexingFailure):
            await maintainer.index_document_text(document_id, OWNER)
        assert await store.count_by_owner(OWNER) == 0

    @pytest.mark.asyncio
    async def test_extraction_failure_propagates(
        self, store: InMemoryContentStore, catalog: InMemoryDocumentCatalog
    ) -> None:
        """Test extractor errors surface and nothing is stored."""
        document_id = catalog.add_document(OWNER, "paper.pdf", content=b"garbage")
        extractor = MagicMock()
        extractor.extract_pages.side_effect = IndexingFailure("PDF text extraction failed")
        maintainer = IndexMaintainer(store, catalog, extractor)

        with pytest.raises(IndexingFailure):
            await maintainer.index_document_text(document_id, OWNER)
        assert await store.count_by_owner(OWNER) == 0

    @pytest.mark.asyncio
    async def test_lost_race_stores_no_duplicate_pages(
        self, maintainer: IndexMaintainer, store: InMemoryContentStore, catalog: InMemoryDocumentCatalog
    ) -> None:
        """Test a run that passed the existence check after another run stored the pages adds nothing."""
        document_id = catalog.add_document(OWNER, "paper.pdf")
        await maintainer.index_document_text(document_id, OWNER)

        # Both runs saw zero pages before either wrote
        store.count = AsyncMock(return_value=0)
        late = await maintainer.index_document_text(document_id, OWNER)

        assert late.already_indexed
        units = await store.find(SearchFilter(owner_id=OWNER), limit=100)
        assert len(units) == len(PLACEHOLDER_PAGE_TEXT)
