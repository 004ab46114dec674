"""PDF document endpoints - upload, list, metadata, rename, delete."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, File, HTTPException, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.auth import get_current_context
from backend.app.api.deps import get_search_service
from backend.app.config import Settings, get_settings
from backend.app.db import documents
from backend.app.db.context import RequestContext
from backend.app.db.engine import get_session
from backend.app.db.models import PdfDocument
from backend.app.models.common import MAX_PAGE, MAX_PAGE_SIZE, Pagination
from backend.app.models.documents import (
    PdfDocumentOut,
    PdfListResponse,
    PdfUploadResponse,
    RenamePdfRequest,
)
from backend.app.search.service import SearchService

router = APIRouter(prefix="/pdfs", tags=["pdfs"])

_PDF_CONTENT_TYPE = "application/pdf"


def _to_out(document: PdfDocument) -> PdfDocumentOut:
    return PdfDocumentOut(
        document_id=document.document_id,
        name=document.original_name,
        file_size=document.file_size,
        created_at=document.created_at,
    )


def _not_found(document_id: UUID) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"PDF {document_id} not found",
    )


@router.post("", response_model=PdfUploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_pdf(
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
    settings: Annotated[Settings, Depends(get_settings)],
    pdf: Annotated[UploadFile, File(description="PDF file")],
) -> PdfUploadResponse:
    """Store an uploaded PDF for the current owner.

    Raises:
        HTTPException: 400 if the file is not a PDF, 413 if it is too large
    """
    if pdf.content_type != _PDF_CONTENT_TYPE:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only PDF files are allowed",
        )

    too_large = HTTPException(
        status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
        detail="File too large",
    )
    if pdf.size is not None and pdf.size > settings.max_upload_bytes:
        raise too_large

    # Read at most one byte past the limit so an unsized stream stays bounded
    content = await pdf.read(settings.max_upload_bytes + 1)
    if len(content) > settings.max_upload_bytes:
        raise too_large
    if not content:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Uploaded file is empty",
        )

    document = await documents.create_document(
        session,
        ctx.owner_id,
        original_name=pdf.filename or "document.pdf",
        content=content,
        upload_dir=settings.upload_dir,
    )
    return PdfUploadResponse(message="PDF uploaded successfully", pdf=_to_out(document))


@router.get("", response_model=PdfListResponse)
async def list_pdfs(
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
    page: Annotated[int, Query(ge=1, le=MAX_PAGE)] = 1,
    limit: Annotated[int, Query(ge=1, le=MAX_PAGE_SIZE)] = 10,
    search: Annotated[str | None, Query(max_length=200)] = None,
) -> PdfListResponse:
    """List the owner's PDFs, newest first.

    Args:
        ctx: Request context (owner_id)
        session: Database session
        page: 1-based page number
        limit: Page size
        search: Optional case-insensitive filter on the file name
    """
    rows, total = await documents.list_documents(
        session, ctx.owner_id, name_contains=search, page=page, limit=limit
    )
    return PdfListResponse(
        pdfs=[_to_out(row) for row in rows],
        pagination=Pagination.for_total(total, page, limit),
    )


@router.get("/{document_id}", response_model=PdfDocumentOut)
async def get_pdf(
    document_id: UUID,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> PdfDocumentOut:
    """Fetch metadata for one PDF."""
    document = await documents.get_document(session, ctx.owner_id, document_id)
    if document is None:
        raise _not_found(document_id)
    return _to_out(document)


@router.patch("/{document_id}", response_model=PdfDocumentOut)
async def rename_pdf(
    document_id: UUID,
    request: RenamePdfRequest,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> PdfDocumentOut:
    """Rename a PDF. Search results pick the new name up on the next query."""
    document = await documents.rename_document(session, ctx.owner_id, document_id, request.name)
    if document is None:
        raise _not_found(document_id)
    return _to_out(document)


@router.delete("/{document_id}")
async def delete_pdf(
    document_id: UUID,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[SearchService, Depends(get_search_service)],
) -> dict[str, str]:
    """Delete a PDF with its highlights, stored file and indexed content."""
    deleted = await documents.delete_document(session, ctx.owner_id, document_id)
    if not deleted:
        raise _not_found(document_id)

    await service.on_document_deleted(document_id, ctx.owner_id)
    return {"message": "PDF deleted successfully"}
