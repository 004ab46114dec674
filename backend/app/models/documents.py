"""PDF document domain models."""

from datetime import datetime
from uuid import UUID

from pydantic import Field

from backend.app.models.common import CamelModel, Pagination


class PdfDocumentOut(CamelModel):
    """PDF document metadata."""

    document_id: UUID
    name: str
    file_size: int
    created_at: datetime


class PdfUploadResponse(CamelModel):
    """Response for POST /pdfs."""

    message: str
    pdf: PdfDocumentOut


class PdfListResponse(CamelModel):
    """Response for GET /pdfs."""

    pdfs: list[PdfDocumentOut]
    pagination: Pagination


class RenamePdfRequest(CamelModel):
    """Request body for PATCH /pdfs/{document_id}."""

    name: str = Field(..., min_length=1, max_length=255)
