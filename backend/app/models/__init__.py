"""Models package - re-exports for convenience."""

from backend.app.models.common import CamelModel, ContentKind, Pagination, Position
from backend.app.models.documents import (
    PdfDocumentOut,
    PdfListResponse,
    PdfUploadResponse,
    RenamePdfRequest,
)
from backend.app.models.highlights import (
    CreateHighlightRequest,
    HighlightListResponse,
    HighlightOut,
    HighlightResponse,
    UpdateHighlightRequest,
)
from backend.app.models.search import (
    AdvancedSearchRequest,
    IndexDocumentResponse,
    IndexStatsResponse,
    SearchFilter,
    SearchResponse,
    SearchResultItem,
    SortOrder,
    Suggestion,
    SuggestionResponse,
)

__all__ = [
    "AdvancedSearchRequest",
    "CamelModel",
    "ContentKind",
    "CreateHighlightRequest",
    "HighlightListResponse",
    "HighlightOut",
    "HighlightResponse",
    "IndexDocumentResponse",
    "IndexStatsResponse",
    "Pagination",
    "PdfDocumentOut",
    "PdfListResponse",
    "PdfUploadResponse",
    "Position",
    "RenamePdfRequest",
    "SearchFilter",
    "SearchResponse",
    "SearchResultItem",
    "SortOrder",
    "Suggestion",
    "SuggestionResponse",
    "UpdateHighlightRequest",
]
