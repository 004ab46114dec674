"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-18

Creates:
- app_user
- pdf_document, highlight
- content_unit (search index)
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create all tables."""
    # app_user table
    op.create_table(
        "app_user",
        sa.Column("user_id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("email", sa.Text(), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.UniqueConstraint("email", name="uq_app_user_email"),
    )

    # pdf_document table
    op.create_table(
        "pdf_document",
        sa.Column("document_id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("owner_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("original_name", sa.Text(), nullable=False),
        sa.Column("file_path", sa.Text(), nullable=False),
        sa.Column("file_size", sa.BigInteger(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["owner_id"], ["app_user.user_id"]),
    )
    op.create_index("idx_pdf_owner_created", "pdf_document", ["owner_id", "created_at"])

    # highlight table
    op.create_table(
        "highlight",
        sa.Column("highlight_id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("document_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("owner_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("page_number", sa.Integer(), nullable=False),
        sa.Column("text", sa.Text(), nullable=False),
        sa.Column("position", postgresql.JSONB(), nullable=False),
        sa.Column("color", sa.Text(), server_default=sa.text("'#ffff00'"), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.ForeignKeyConstraint(["document_id"], ["pdf_document.document_id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["owner_id"], ["app_user.user_id"]),
    )
    op.create_index("idx_highlight_owner_doc_page", "highlight", ["owner_id", "document_id", "page_number"])

    # content_unit table - no FKs, units may briefly outlive their document
    op.create_table(
        "content_unit",
        sa.Column("unit_id", postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text("gen_random_uuid()")),
        sa.Column("owner_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("document_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("page_number", sa.Integer(), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("content_kind", sa.Text(), nullable=False),
        sa.Column("position", postgresql.JSONB(), nullable=True),
        sa.Column("source_annotation_id", postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.CheckConstraint("content_kind IN ('pdf_text', 'annotation')", name="ck_content_kind"),
        sa.UniqueConstraint("owner_id", "source_annotation_id", name="uq_content_owner_annotation"),
    )
    op.create_index("idx_content_owner_created", "content_unit", ["owner_id", "created_at"])
    op.create_index("idx_content_owner_document", "content_unit", ["owner_id", "document_id"])
    op.create_index("idx_content_owner_kind", "content_unit", ["owner_id", "content_kind"])


def downgrade() -> None:
    """Drop all tables."""
    op.drop_table("content_unit")
    op.drop_table("highlight")
    op.drop_table("pdf_document")
    op.drop_table("app_user")
