"""Search endpoints - simple, advanced, suggestions, manual indexing, stats."""

import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse

from backend.app.api.auth import get_current_context
from backend.app.api.deps import get_search_service
from backend.app.db.context import RequestContext
from backend.app.errors import IndexingFailure, InvalidQueryError, NotFoundError, StorageFailure
from backend.app.models.common import ContentKind
from backend.app.models.search import (
    AdvancedSearchRequest,
    ContentKindOption,
    IndexDocumentResponse,
    IndexStatsResponse,
    SearchResponse,
    SuggestionResponse,
)
from backend.app.search.service import SearchService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/search", tags=["search"])


def _error_response(status_code: int, error: str, message: str | None = None) -> JSONResponse:
    """Failure body with the same shape as a successful search."""
    body = SearchResponse(error=error, message=message)
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", by_alias=True, exclude_none=True),
    )


@router.get(
    "",
    response_model=SearchResponse,
    response_model_exclude_none=True,
    responses={400: {"model": SearchResponse}, 500: {"model": SearchResponse}},
)
async def simple_search(
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    service: Annotated[SearchService, Depends(get_search_service)],
    query: Annotated[str | None, Query(max_length=500)] = None,
    document_id: Annotated[UUID | None, Query(alias="documentId")] = None,
    content_kind: Annotated[ContentKindOption, Query(alias="contentKind")] = "all",
) -> SearchResponse | JSONResponse:
    """Search the owner's indexed content.

    Args:
        ctx: Request context (owner_id)
        service: Search service
        query: Search text, at least two characters
        document_id: Restrict to one document
        content_kind: "all", "pdf_text" or "annotation"

    Returns:
        One page of newest matches, or a needs-indexing response
    """
    kind = None if content_kind == "all" else ContentKind(content_kind)

    try:
        return await service.search(
            ctx.owner_id, query, document_id=document_id, content_kind=kind
        )
    except InvalidQueryError as e:
        return _error_response(status.HTTP_400_BAD_REQUEST, str(e))
    except StorageFailure as e:
        logger.error("Search failed for owner %s: %s", ctx.owner_id, e)
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "Search failed", "Please try again later"
        )


@router.post(
    "/advanced",
    response_model=SearchResponse,
    response_model_exclude_none=True,
    responses={400: {"model": SearchResponse}, 500: {"model": SearchResponse}},
)
async def advanced_search(
    request: AdvancedSearchRequest,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    service: Annotated[SearchService, Depends(get_search_service)],
) -> SearchResponse | JSONResponse:
    """Search with the full filter set and paging.

    Args:
        request: Advanced search filters
        ctx: Request context (owner_id)
        service: Search service

    Returns:
        Requested page of matches with pagination
    """
    try:
        return await service.advanced_search(ctx.owner_id, request)
    except InvalidQueryError as e:
        return _error_response(status.HTTP_400_BAD_REQUEST, str(e))
    except StorageFailure as e:
        logger.error("Advanced search failed for owner %s: %s", ctx.owner_id, e)
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Advanced search failed",
            "Please try again later",
        )


@router.get("/suggestions", response_model=SuggestionResponse)
async def suggestions(
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    service: Annotated[SearchService, Depends(get_search_service)],
    query: Annotated[str | None, Query(max_length=500)] = None,
) -> SuggestionResponse:
    """Prefix completions; an empty list on short queries or failures."""
    return await service.suggestions(ctx.owner_id, query)


@router.post(
    "/index-pdf/{document_id}",
    response_model=IndexDocumentResponse,
    responses={404: {"description": "PDF not found"}, 500: {"description": "Failed to index PDF"}},
)
async def index_pdf(
    document_id: UUID,
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    service: Annotated[SearchService, Depends(get_search_service)],
) -> IndexDocumentResponse | JSONResponse:
    """Index a PDF's body text, one unit per page.

    Raises nothing to the transport layer; failures become 404 or 500 bodies.
    """
    try:
        return await service.index_document_text(ctx.owner_id, document_id)
    except NotFoundError as e:
        return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"error": str(e)})
    except (IndexingFailure, StorageFailure) as e:
        logger.error("Indexing PDF %s failed: %s", document_id, e)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Failed to index PDF"},
        )


@router.get("/stats", response_model=IndexStatsResponse)
async def index_stats(
    ctx: Annotated[RequestContext, Depends(get_current_context)],
    service: Annotated[SearchService, Depends(get_search_service)],
) -> IndexStatsResponse:
    """Per-kind unit counts and indexed document ids for the owner."""
    return await service.index_stats(ctx.owner_id)
