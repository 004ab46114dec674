"""Highlight (annotation) domain models."""

from datetime import datetime
from uuid import UUID

from pydantic import Field, field_validator

from backend.app.models.common import MAX_PAGE_NUMBER, CamelModel, Position

_COLOR_PATTERN = "^#[0-9a-fA-F]{6}$"


class CreateHighlightRequest(CamelModel):
    """Request body for POST /highlights."""

    document_id: UUID
    page_number: int = Field(..., ge=1, le=MAX_PAGE_NUMBER)
    text: str = Field(..., min_length=1, max_length=5000)
    position: Position
    color: str = Field("#ffff00", pattern=_COLOR_PATTERN)

    @field_validator("text")
    @classmethod
    def _strip_text(cls, value: str) -> str:
        stripped = value.strip()
        if not stripped:
            raise ValueError("text must not be blank")
        return stripped


class UpdateHighlightRequest(CamelModel):
    """Request body for PATCH /highlights/{highlight_id}."""

    text: str | None = Field(None, min_length=1, max_length=5000)
    position: Position | None = None
    color: str | None = Field(None, pattern=_COLOR_PATTERN)


class HighlightOut(CamelModel):
    """Highlight as returned to clients."""

    highlight_id: UUID
    document_id: UUID
    page_number: int
    text: str
    position: Position
    color: str
    created_at: datetime


class HighlightResponse(CamelModel):
    """Single-highlight response envelope."""

    message: str | None = None
    highlight: HighlightOut


class HighlightListResponse(CamelModel):
    """Response for GET /highlights/pdf/{document_id}."""

    highlights: list[HighlightOut]
