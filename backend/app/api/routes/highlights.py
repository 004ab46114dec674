"""Highlight endpoints - CRUD that keeps the search index in step."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.api.auth import get_current_context
from backend.app.api.deps import get_search_service
from backend.app.db import documents
from backend.app.db.context import RequestContext
from backend.app.db.engine import get_session
from backend.app.db.models import Highlight
from backend.app.models.common import MAX_PAGE_NUMBER, Position
from backend.app.models.highlights import (
    CreateHighlightRequest,
    HighlightListResponse,
    HighlightOut,
    HighlightResponse,
    UpdateHighlightRequest,
)
from backend.app.search.service import SearchService

router = APIRouter(prefix="/highlights", tags=["highlights"])


def _to_out(highlight: Highlight) -> HighlightOut:
    return HighlightOut(
        highlight_id=highlight.highlight_id,
        document_id=highlight.document_id,
        page_number=highlight.page_number,
        text=highlight.text,
        position=Position.model_validate(highlight.position),
        color=highlight.color,
        created_at=highlight.created_at,
    )


def _not_found(resource: str, resource_id: UUID) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"{resource} {resource_id} not found",
    )


@router.post("", response_model=HighlightResponse, status_code=status.HTTP_201_CREATED)
async def create_highlight(
    request: CreateHighlightRequest,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[SearchService, Depends(get_search_service)],
) -> HighlightResponse:
    """Create a highlight and index its text.

    Indexing is a side effect: a failure there is logged and the highlight
    is still returned.

    Raises:
        HTTPException: 404 if the PDF does not belong to the owner
    """
    document = await documents.get_document(session, ctx.owner_id, request.document_id)
    if document is None:
        raise _not_found("PDF", request.document_id)

    highlight = await documents.create_highlight(
        session,
        ctx.owner_id,
        document_id=request.document_id,
        page_number=request.page_number,
        text=request.text,
        position=request.position.model_dump(),
        color=request.color,
    )
    # Snapshot before indexing; a failed index write rolls the session back
    out = _to_out(highlight)
    record = documents.to_annotation_record(highlight)

    await service.on_annotation_created(record, ctx.owner_id)
    return HighlightResponse(message="Highlight created successfully", highlight=out)


@router.get("/pdf/{document_id}", response_model=HighlightListResponse)
async def list_highlights(
    document_id: UUID,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
    page_number: Annotated[int | None, Query(alias="pageNumber", ge=1, le=MAX_PAGE_NUMBER)] = None,
) -> HighlightListResponse:
    """List a PDF's highlights ordered by page, then creation time.

    Raises:
        HTTPException: 404 if the PDF does not belong to the owner
    """
    document = await documents.get_document(session, ctx.owner_id, document_id)
    if document is None:
        raise _not_found("PDF", document_id)

    rows = await documents.list_highlights_for_document(
        session, ctx.owner_id, document_id, page_number=page_number
    )
    return HighlightListResponse(highlights=[_to_out(row) for row in rows])


@router.get("/{highlight_id}", response_model=HighlightResponse)
async def get_highlight(
    highlight_id: UUID,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
) -> HighlightResponse:
    """Fetch one highlight."""
    highlight = await documents.get_highlight(session, ctx.owner_id, highlight_id)
    if highlight is None:
        raise _not_found("Highlight", highlight_id)
    return HighlightResponse(highlight=_to_out(highlight))


@router.patch("/{highlight_id}", response_model=HighlightResponse)
async def update_highlight(
    highlight_id: UUID,
    request: UpdateHighlightRequest,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[SearchService, Depends(get_search_service)],
) -> HighlightResponse:
    """Edit a highlight; text or position changes are re-indexed."""
    highlight = await documents.update_highlight(
        session,
        ctx.owner_id,
        highlight_id,
        text=request.text,
        position=request.position.model_dump() if request.position else None,
        color=request.color,
    )
    if highlight is None:
        raise _not_found("Highlight", highlight_id)

    out = _to_out(highlight)
    if request.text is not None or request.position is not None:
        await service.on_annotation_updated(
            documents.to_annotation_record(highlight), ctx.owner_id
        )
    return HighlightResponse(message="Highlight updated successfully", highlight=out)


@router.delete("/{highlight_id}")
async def delete_highlight(
    highlight_id: UUID,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    session: Annotated[AsyncSession, Depends(get_session)],
    service: Annotated[SearchService, Depends(get_search_service)],
) -> dict[str, str]:
    """Delete a highlight and drop its indexed unit.

    The index is only touched once the highlight is confirmed to exist.

    Raises:
        HTTPException: 404 if the highlight does not belong to the owner
    """
    removed = await documents.delete_highlight(session, ctx.owner_id, highlight_id)
    if removed is None:
        raise _not_found("Highlight", highlight_id)

    await service.on_annotation_deleted(highlight_id, ctx.owner_id)
    return {"message": "Highlight deleted successfully"}
