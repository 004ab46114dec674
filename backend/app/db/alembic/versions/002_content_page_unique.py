"""One pdf_text unit per document page

Revision ID: 002
Revises: 001
Create Date: 2026-10-18

Adds a partial unique index so concurrent manual indexing of the same PDF
cannot store a page twice.
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = "002"
down_revision: str | None = "001"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Drop duplicate pdf_text pages, then add the partial unique index."""
    op.execute(
        """
        DELETE FROM content_unit a
        USING content_unit b
        WHERE a.content_kind = 'pdf_text'
          AND b.content_kind = 'pdf_text'
          AND a.owner_id = b.owner_id
          AND a.document_id = b.document_id
          AND a.page_number = b.page_number
          AND a.unit_id > b.unit_id
        """
    )
    op.create_index(
        "uq_content_document_page",
        "content_unit",
        ["owner_id", "document_id", "page_number"],
        unique=True,
        postgresql_where=sa.text("content_kind = 'pdf_text'"),
    )


def downgrade() -> None:
    """Drop the partial unique index."""
    op.drop_index("uq_content_document_page", table_name="content_unit")
