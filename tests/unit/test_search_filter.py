"""Unit tests for the typed search filter and request models."""

import uuid
from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from backend.app.models.common import ContentKind, Pagination
from backend.app.models.search import AdvancedSearchRequest, SearchFilter, kinds_from_options

OWNER = uuid.uuid4()


def test_filter_requires_owner() -> None:
    """Test the owner dimension is mandatory."""
    with pytest.raises(ValidationError):
        SearchFilter()  # type: ignore[call-arg]


def test_filter_rejects_unknown_keys() -> None:
    """Test unknown filter keys fail at construction time."""
    with pytest.raises(ValidationError):
        SearchFilter(owner_id=OWNER, colour="red")  # type: ignore[call-arg]


def test_filter_rejects_blank_text() -> None:
    """Test a whitespace-only text filter is refused."""
    with pytest.raises(ValidationError):
        SearchFilter(owner_id=OWNER, text="   ")


def test_filter_empty_sets_mean_no_filter() -> None:
    """Test empty document and kind sets normalize to None."""
    search_filter = SearchFilter(owner_id=OWNER, document_ids=frozenset(), content_kinds=frozenset())

    assert search_filter.document_ids is None
    assert search_filter.content_kinds is None


def test_filter_naive_dates_are_utc() -> None:
    """Test naive datetimes are interpreted as UTC."""
    search_filter = SearchFilter(owner_id=OWNER, created_from=datetime(2024, 1, 1, 12, 0))

    assert search_filter.created_from == datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)


def test_filter_rejects_inverted_date_range() -> None:
    """Test created_from after created_to is invalid."""
    now = datetime.now(timezone.utc)
    with pytest.raises(ValidationError):
        SearchFilter(owner_id=OWNER, created_from=now, created_to=now - timedelta(days=1))


def test_filter_is_immutable() -> None:
    """Test filters cannot be mutated after construction."""
    search_filter = SearchFilter(owner_id=OWNER)
    with pytest.raises(ValidationError):
        search_filter.owner_id = uuid.uuid4()  # type: ignore[misc]


def test_kinds_from_options() -> None:
    """Test "all" and empty option lists disable the kind filter."""
    assert kinds_from_options(["all"]) is None
    assert kinds_from_options(["all", "annotation"]) is None
    assert kinds_from_options([]) is None
    assert kinds_from_options(["annotation"]) == frozenset({ContentKind.annotation})


def test_advanced_request_accepts_camel_case() -> None:
    """Test the request body parses camelCase keys."""
    document_id = uuid.uuid4()
    request = AdvancedSearchRequest.model_validate(
        {
            "query": "machine",
            "documentIds": [str(document_id)],
            "contentKinds": ["pdf_text"],
            "pageNumber": 3,
        }
    )

    assert request.document_ids == [document_id]
    assert request.content_kinds == ["pdf_text"]
    assert request.page_number == 3
    assert request.page == 1
    assert request.limit == 20


def test_advanced_request_bounds() -> None:
    """Test page and limit bounds are enforced."""
    with pytest.raises(ValidationError):
        AdvancedSearchRequest(query="ab", page=0)
    with pytest.raises(ValidationError):
        AdvancedSearchRequest(query="ab", limit=101)
    with pytest.raises(ValidationError):
        AdvancedSearchRequest.model_validate({"query": "ab", "contentKinds": ["drawing"]})


def test_pagination_for_total() -> None:
    """Test page count rounds up."""
    assert Pagination.for_total(45, 2, 20) == Pagination(current=2, pages=3, total=45)
    assert Pagination.for_total(0, 1, 20) == Pagination(current=1, pages=0, total=0)
