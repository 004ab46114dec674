"""FastAPI dependencies wiring the search service onto a request session."""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backend.app.config import Settings, get_settings
from backend.app.db.engine import get_session
from backend.app.db.sql_repositories import SqlContentStore, SqlDocumentCatalog
from backend.app.search.extraction import PyMuPdfTextExtractor
from backend.app.search.formatter import ResultFormatter
from backend.app.search.index_maintainer import IndexMaintainer
from backend.app.search.query_engine import QueryEngine
from backend.app.search.service import SearchService


def build_search_service(session: AsyncSession, settings: Settings) -> SearchService:
    """Assemble the search service over SQL-backed collaborators."""
    store = SqlContentStore(session)
    catalog = SqlDocumentCatalog(session)
    extractor = PyMuPdfTextExtractor() if settings.text_extraction_enabled else None

    maintainer = IndexMaintainer(store, catalog, extractor)
    engine = QueryEngine(
        store,
        maintainer,
        page_size=settings.search_page_size,
        min_query_length=settings.min_query_length,
    )
    formatter = ResultFormatter(
        catalog,
        open_tag=settings.highlight_open_tag,
        close_tag=settings.highlight_close_tag,
        unknown_document_label=settings.unknown_document_label,
        suggestion_max_results=settings.suggestion_max_results,
    )
    return SearchService(
        store,
        engine,
        formatter,
        maintainer,
        suggestion_scan_limit=settings.suggestion_scan_limit,
    )


async def get_search_service(
    session: Annotated[AsyncSession, Depends(get_session)],
    settings: Annotated[Settings, Depends(get_settings)],
) -> SearchService:
    """FastAPI dependency for the request-scoped search service."""
    return build_search_service(session, settings)
