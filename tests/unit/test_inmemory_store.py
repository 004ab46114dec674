"""Unit tests for the in-memory content store."""

import uuid

import pytest

from backend.app.db.inmemory import InMemoryContentStore
from backend.app.db.repositories import ContentUnitRecord
from backend.app.errors import ConflictError
from backend.app.models.common import ContentKind
from backend.app.models.search import SearchFilter

OWNER = uuid.uuid4()
OTHER_OWNER = uuid.uuid4()


def _annotation_unit(owner_id: uuid.UUID, annotation_id: uuid.UUID, document_id: uuid.UUID) -> ContentUnitRecord:
    return ContentUnitRecord(
        owner_id=owner_id,
        document_id=document_id,
        page_number=1,
        content="shared text",
        content_kind=ContentKind.annotation,
        source_annotation_id=annotation_id,
    )


@pytest.mark.asyncio
async def test_put_rejects_duplicate_annotation(store: InMemoryContentStore) -> None:
    """Test a second unit for the same (owner, annotation) conflicts."""
    annotation_id = uuid.uuid4()
    await store.put(_annotation_unit(OWNER, annotation_id, uuid.uuid4()))

    with pytest.raises(ConflictError):
        await store.put(_annotation_unit(OWNER, annotation_id, uuid.uuid4()))


@pytest.mark.asyncio
async def test_same_annotation_id_under_two_owners(store: InMemoryContentStore) -> None:
    """Test uniqueness is per owner."""
    annotation_id = uuid.uuid4()

    assert await store.insert_if_absent(_annotation_unit(OWNER, annotation_id, uuid.uuid4()))
    assert await store.insert_if_absent(_annotation_unit(OTHER_OWNER, annotation_id, uuid.uuid4()))


@pytest.mark.asyncio
async def test_owner_scoped_operations(store: InMemoryContentStore) -> None:
    """Test lookups and deletes never cross owners."""
    annotation_id, document_id = uuid.uuid4(), uuid.uuid4()
    await store.put(_annotation_unit(OTHER_OWNER, annotation_id, document_id))

    assert await store.find(SearchFilter(owner_id=OWNER, text="shared")) == []
    assert await store.get_by_source_annotation(OWNER, annotation_id) is None
    assert await store.delete_by_source_annotation(OWNER, annotation_id) is False
    assert await store.delete_by_document(OWNER, document_id) == 0
    assert await store.count_by_owner(OTHER_OWNER) == 1


@pytest.mark.asyncio
async def test_returned_units_are_copies(store: InMemoryContentStore) -> None:
    """Test mutating a result does not change the stored unit."""
    annotation_id = uuid.uuid4()
    await store.put(_annotation_unit(OWNER, annotation_id, uuid.uuid4()))

    found = (await store.find(SearchFilter(owner_id=OWNER)))[0]
    found.content = "changed"

    stored = await store.get_by_source_annotation(OWNER, annotation_id)
    assert stored is not None
    assert stored.content == "shared text"


@pytest.mark.asyncio
async def test_distinct_document_ids(store: InMemoryContentStore) -> None:
    """Test distinct ids, optionally narrowed to one kind."""
    doc_a, doc_b = uuid.uuid4(), uuid.uuid4()
    await store.put(_annotation_unit(OWNER, uuid.uuid4(), doc_a))
    await store.put(_annotation_unit(OWNER, uuid.uuid4(), doc_a))
    await store.put(
        ContentUnitRecord(
            owner_id=OWNER,
            document_id=doc_b,
            page_number=1,
            content="body",
            content_kind=ContentKind.pdf_text,
        )
    )

    assert await store.distinct_document_ids(OWNER) == sorted([doc_a, doc_b])
    assert await store.distinct_document_ids(OWNER, ContentKind.pdf_text) == [doc_b]


def _page_unit(document_id: uuid.UUID, page_number: int, content: str = "page text") -> ContentUnitRecord:
    return ContentUnitRecord(
        owner_id=OWNER,
        document_id=document_id,
        page_number=page_number,
        content=content,
        content_kind=ContentKind.pdf_text,
    )


@pytest.mark.asyncio
async def test_insert_pages_skips_stored_pages(store: InMemoryContentStore) -> None:
    """Test each document page is stored once and deletes free the page again."""
    document_id = uuid.uuid4()

    assert await store.insert_pages_if_absent([_page_unit(document_id, 1), _page_unit(document_id, 2)]) == 2
    assert await store.insert_pages_if_absent([_page_unit(document_id, 2), _page_unit(document_id, 3)]) == 1
    with pytest.raises(ConflictError):
        await store.put(_page_unit(document_id, 1))

    assert await store.delete_by_document(OWNER, document_id) == 3
    assert await store.insert_pages_if_absent([_page_unit(document_id, 1)]) == 1
