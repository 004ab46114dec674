"""Query engine - turns search requests into owner-scoped content-store reads."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from backend.app.db.repositories import ContentStore, ContentUnitRecord
from backend.app.errors import InvalidQueryError
from backend.app.models.common import ContentKind
from backend.app.models.search import SearchFilter, SortOrder
from backend.app.search.index_maintainer import IndexMaintainer

logger = logging.getLogger(__name__)

# Relevance is not computed from term frequency; every match scores the same.
UNIFORM_SCORE = 1.0


@dataclass
class QueryPage:
    """Raw matches for one page of a search, before formatting."""

    query: str
    units: list[ContentUnitRecord] = field(default_factory=list)
    total: int = 0
    page: int = 1
    limit: int = 20
    needs_indexing: bool = False
    fuzzy_applied: bool = False


class QueryEngine:
    """Executes simple and advanced searches against the content store."""

    def __init__(
        self,
        store: ContentStore,
        maintainer: IndexMaintainer,
        *,
        page_size: int = 20,
        min_query_length: int = 2,
    ) -> None:
        self._store = store
        self._maintainer = maintainer
        self._page_size = page_size
        self._min_query_length = min_query_length

    def validate_query(self, query: str | None) -> str:
        """Return the trimmed query.

        Raises:
            InvalidQueryError: If the trimmed query is shorter than the minimum
        """
        trimmed = (query or "").strip()
        if len(trimmed) < self._min_query_length:
            raise InvalidQueryError(self._min_query_length)
        return trimmed

    async def _backfill_if_empty(self, owner_id: UUID) -> bool:
        """Run the catch-up indexing when the owner has no units at all.

        Returns:
            True if the index was empty and a backfill ran
        """
        if await self._store.count_by_owner(owner_id) > 0:
            return False

        logger.info("No indexed content for owner %s; backfilling from highlights", owner_id)
        await self._maintainer.backfill_from_annotations(owner_id)
        return True

    async def simple_search(
        self,
        owner_id: UUID,
        query: str | None,
        *,
        document_id: UUID | None = None,
        content_kind: ContentKind | None = None,
    ) -> QueryPage:
        """Substring search with optional document and kind filters.

        Returns at most one fixed-size page, newest first.
        """
        trimmed = self.validate_query(query)

        if await self._backfill_if_empty(owner_id):
            return QueryPage(query=trimmed, limit=self._page_size, needs_indexing=True)

        search_filter = SearchFilter(
            owner_id=owner_id,
            text=trimmed,
            document_id=document_id,
            content_kinds=frozenset({content_kind}) if content_kind else None,
        )
        units = await self._store.find(
            search_filter, sort=SortOrder.newest_first, limit=self._page_size
        )

        return QueryPage(query=trimmed, units=units, total=len(units), limit=self._page_size)

    async def advanced_search(
        self,
        owner_id: UUID,
        query: str | None,
        *,
        document_ids: list[UUID] | None = None,
        content_kinds: frozenset[ContentKind] | None = None,
        date_from: datetime | None = None,
        date_to: datetime | None = None,
        page_number: int | None = None,
        fuzzy: bool = False,
        page: int = 1,
        limit: int = 20,
    ) -> QueryPage:
        """Multi-dimension search; every supplied filter is ANDed.

        Fuzzy matching is not implemented: the flag is accepted and reported
        back as not applied.
        """
        trimmed = self.validate_query(query)

        if fuzzy:
            logger.info("Fuzzy matching requested but not supported; using substring match")

        if await self._backfill_if_empty(owner_id):
            return QueryPage(query=trimmed, page=page, limit=limit, needs_indexing=True)

        search_filter = SearchFilter(
            owner_id=owner_id,
            text=trimmed,
            document_ids=frozenset(document_ids) if document_ids else None,
            content_kinds=content_kinds,
            page_number=page_number,
            created_from=date_from,
            created_to=date_to,
        )

        units = await self._store.find(
            search_filter,
            sort=SortOrder.newest_first,
            limit=limit,
            offset=(page - 1) * limit,
        )
        total = await self._store.count(search_filter)

        return QueryPage(query=trimmed, units=units, total=total, page=page, limit=limit)

    async def recent_matches(self, owner_id: UUID, query: str, limit: int) -> list[ContentUnitRecord]:
        """Most recent units whose content contains the query."""
        search_filter = SearchFilter(owner_id=owner_id, text=query)
        return await self._store.find(search_filter, sort=SortOrder.newest_first, limit=limit)
