"""Search domain models: typed filter, requests and responses."""

from datetime import datetime, timezone
from enum import Enum
from typing import Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from backend.app.models.common import (
    MAX_PAGE,
    MAX_PAGE_NUMBER,
    MAX_PAGE_SIZE,
    CamelModel,
    ContentKind,
    Pagination,
    Position,
)

ContentKindOption = Literal["all", "pdf_text", "annotation"]


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class SortOrder(str, Enum):
    """Supported orderings over content units."""

    newest_first = "newest_first"
    oldest_first = "oldest_first"


class SearchFilter(BaseModel):
    """Conjunctive filter over the content store.

    Every dimension is optional except the owner. Unknown keys are rejected
    at construction time, empty sets are normalized to "no filter".
    """

    model_config = ConfigDict(extra="forbid", frozen=True)

    owner_id: UUID
    text: str | None = None
    document_id: UUID | None = None
    document_ids: frozenset[UUID] | None = None
    content_kinds: frozenset[ContentKind] | None = None
    page_number: int | None = Field(None, ge=1, le=MAX_PAGE_NUMBER)
    created_from: datetime | None = None
    created_to: datetime | None = None

    @field_validator("text")
    @classmethod
    def _text_not_blank(cls, value: str | None) -> str | None:
        if value is not None and not value.strip():
            raise ValueError("text filter must not be blank")
        return value

    @field_validator("document_ids", "content_kinds")
    @classmethod
    def _empty_set_means_any(cls, value: frozenset | None) -> frozenset | None:
        return value or None

    @field_validator("created_from", "created_to")
    @classmethod
    def _normalize_tz(cls, value: datetime | None) -> datetime | None:
        return _as_utc(value)

    @model_validator(mode="after")
    def _check_date_range(self) -> "SearchFilter":
        if self.created_from and self.created_to and self.created_from > self.created_to:
            raise ValueError("created_from must not be after created_to")
        return self


def kinds_from_options(options: list[ContentKindOption] | None) -> frozenset[ContentKind] | None:
    """Translate wire content-kind options (which may include "all") to a filter set."""
    if not options or "all" in options:
        return None
    return frozenset(ContentKind(option) for option in options)


class AdvancedSearchRequest(CamelModel):
    """Request body for POST /search/advanced."""

    model_config = ConfigDict(extra="forbid")

    query: str = ""
    document_ids: list[UUID] = Field(default_factory=list)
    content_kinds: list[ContentKindOption] = Field(default_factory=lambda: ["all"])
    date_from: datetime | None = None
    date_to: datetime | None = None
    page_number: int | None = Field(None, ge=1, le=MAX_PAGE_NUMBER)
    fuzzy: bool = False
    page: int = Field(1, ge=1, le=MAX_PAGE)
    limit: int = Field(20, ge=1, le=MAX_PAGE_SIZE)

    @model_validator(mode="after")
    def _check_date_range(self) -> "AdvancedSearchRequest":
        date_from, date_to = _as_utc(self.date_from), _as_utc(self.date_to)
        if date_from and date_to and date_from > date_to:
            raise ValueError("dateFrom must not be after dateTo")
        return self


class SearchResultItem(CamelModel):
    """Presentation-ready search hit."""

    id: UUID
    document_id: UUID
    document_name: str = Field(..., alias="pdfName")
    page_number: int
    content: str
    highlighted_content: str
    content_kind: ContentKind
    score: float = Field(..., ge=0, le=1)
    source_annotation_id: UUID | None = None
    position: Position | None = None
    created_at: datetime


class SearchResponse(CamelModel):
    """Response shape shared by success and failure paths of both search forms."""

    results: list[SearchResultItem] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination.empty)
    query: str | None = None
    message: str | None = None
    needs_indexing: bool | None = None
    fuzzy: bool | None = None
    error: str | None = None


class Suggestion(CamelModel):
    """Prefix completion for a partial query."""

    text: str
    count: int = 1


class SuggestionResponse(CamelModel):
    """Response for GET /search/suggestions."""

    suggestions: list[Suggestion] = Field(default_factory=list)


class IndexDocumentResponse(CamelModel):
    """Response for POST /search/index-pdf/{document_id}."""

    message: str
    indexed: bool
    already_indexed: bool = False
    pages_indexed: int = 0
    is_placeholder: bool = False


class IndexStatsResponse(CamelModel):
    """Response for GET /search/stats."""

    total_units: int
    pdf_text_units: int
    annotation_units: int
    document_ids: list[UUID]
