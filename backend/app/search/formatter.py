"""Result formatter - document names, term highlighting and suggestions."""

import logging
import re
from uuid import UUID

from backend.app.db.repositories import ContentUnitRecord, DocumentCatalog
from backend.app.errors import SearchServiceError
from backend.app.models.common import Position
from backend.app.models.search import SearchResultItem, Suggestion
from backend.app.search.query_engine import UNIFORM_SCORE

logger = logging.getLogger(__name__)

_NON_WORD = re.compile(r"[^\w]")


def highlight_terms(content: str, query: str, open_tag: str = "<mark>", close_tag: str = "</mark>") -> str:
    """Wrap every case-insensitive occurrence of each query term.

    Terms are whitespace-separated and single characters are ignored. Terms
    are applied one after another, so a term that occurs inside an earlier
    term's match (or inside the tags) gets wrapped again. Known cosmetic
    quirk, kept as-is.
    """
    highlighted = content
    for term in query.split():
        if len(term) <= 1:
            continue
        pattern = re.compile(re.escape(term), re.IGNORECASE)
        highlighted = pattern.sub(lambda m: f"{open_tag}{m.group(0)}{close_tag}", highlighted)
    return highlighted


def extract_suggestions(
    units: list[ContentUnitRecord], query: str, max_results: int = 5
) -> list[Suggestion]:
    """Collect distinct words from recent content that extend the query prefix.

    Scope is the units handed in (recent content), not the whole corpus.
    """
    prefix = query.lower()
    seen: dict[str, None] = {}

    for unit in units:
        for word in unit.content.split():
            token = _NON_WORD.sub("", word).lower()
            if token.startswith(prefix) and len(token) > len(prefix):
                seen.setdefault(token, None)

    return [Suggestion(text=token, count=1) for token in list(seen)[:max_results]]


class ResultFormatter:
    """Turns raw content units into presentation-ready results."""

    def __init__(
        self,
        catalog: DocumentCatalog,
        *,
        open_tag: str = "<mark>",
        close_tag: str = "</mark>",
        unknown_document_label: str = "Unknown document",
        suggestion_max_results: int = 5,
    ) -> None:
        self._catalog = catalog
        self._open_tag = open_tag
        self._close_tag = close_tag
        self._unknown_label = unknown_document_label
        self._suggestion_max_results = suggestion_max_results

    async def resolve_document_names(
        self, owner_id: UUID, units: list[ContentUnitRecord]
    ) -> dict[UUID, str]:
        """Look up names for all distinct documents in one batch.

        A failed lookup degrades to an empty mapping; callers label the
        documents as unknown.
        """
        document_ids = list(dict.fromkeys(unit.document_id for unit in units))
        if not document_ids:
            return {}

        try:
            return await self._catalog.lookup_names(owner_id, document_ids)
        except SearchServiceError:
            logger.exception("Document name lookup failed for owner %s", owner_id)
            return {}

    def highlight(self, content: str, query: str) -> str:
        """Highlight query terms using the configured tags."""
        return highlight_terms(content, query, self._open_tag, self._close_tag)

    async def format_results(
        self, owner_id: UUID, units: list[ContentUnitRecord], query: str
    ) -> list[SearchResultItem]:
        """Build result items in the order the units were returned."""
        names = await self.resolve_document_names(owner_id, units)

        return [
            SearchResultItem(
                id=unit.unit_id,
                document_id=unit.document_id,
                document_name=names.get(unit.document_id, self._unknown_label),
                page_number=unit.page_number,
                content=unit.content,
                highlighted_content=self.highlight(unit.content, query),
                content_kind=unit.content_kind,
                score=UNIFORM_SCORE,
                source_annotation_id=unit.source_annotation_id,
                position=Position.model_validate(unit.position) if unit.position else None,
                created_at=unit.created_at,
            )
            for unit in units
        ]

    def suggestions(self, units: list[ContentUnitRecord], query: str) -> list[Suggestion]:
        """Prefix completions drawn from the given units."""
        return extract_suggestions(units, query, self._suggestion_max_results)
