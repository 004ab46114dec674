"""Tenancy-safe query helpers."""

from typing import Any
from uuid import UUID

from sqlalchemy import Select, select
from sqlalchemy.sql.elements import ColumnElement

from backend.app.db.models import ContentUnit, Highlight, PdfDocument
from backend.app.models.search import SearchFilter


def content_unit_conditions(search_filter: SearchFilter) -> list[ColumnElement[bool]]:
    """Translate a SearchFilter into WHERE clauses.

    The owner clause is always first; every other dimension is ANDed on
    only when set.
    """
    conditions: list[ColumnElement[bool]] = [ContentUnit.owner_id == search_filter.owner_id]

    if search_filter.text is not None:
        conditions.append(ContentUnit.content.icontains(search_filter.text, autoescape=True))
    if search_filter.document_id is not None:
        conditions.append(ContentUnit.document_id == search_filter.document_id)
    if search_filter.document_ids:
        conditions.append(ContentUnit.document_id.in_(search_filter.document_ids))
    if search_filter.content_kinds:
        conditions.append(
            ContentUnit.content_kind.in_([kind.value for kind in search_filter.content_kinds])
        )
    if search_filter.page_number is not None:
        conditions.append(ContentUnit.page_number == search_filter.page_number)
    if search_filter.created_from is not None:
        conditions.append(ContentUnit.created_at >= search_filter.created_from)
    if search_filter.created_to is not None:
        conditions.append(ContentUnit.created_at <= search_filter.created_to)

    return conditions


def select_content_units(search_filter: SearchFilter) -> Select[Any]:
    """Select content units with owner scoping enforced.

    Args:
        search_filter: Typed filter, always carrying owner_id

    Returns:
        Select statement over ContentUnit
    """
    return select(ContentUnit).where(*content_unit_conditions(search_filter))


def select_documents(owner_id: UUID) -> Select[Any]:
    """Select PDF documents owned by the user."""
    return select(PdfDocument).where(PdfDocument.owner_id == owner_id)


def select_highlights(owner_id: UUID) -> Select[Any]:
    """Select highlights owned by the user."""
    return select(Highlight).where(Highlight.owner_id == owner_id)
