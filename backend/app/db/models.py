"""SQLAlchemy ORM models for documents, highlights and the search index."""

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import (
    JSON,
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Text,
    UniqueConstraint,
    Uuid,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

JsonDocument = JSON().with_variant(JSONB(), "postgresql")


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


class User(Base):
    """User table - the owner of documents, highlights and content units."""

    __tablename__ = "app_user"

    user_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    # Relationships
    documents: Mapped[list["PdfDocument"]] = relationship("PdfDocument", back_populates="owner")


class PdfDocument(Base):
    """Uploaded PDF document."""

    __tablename__ = "pdf_document"
    __table_args__ = (Index("idx_pdf_owner_created", "owner_id", "created_at"),)

    document_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("app_user.user_id"), nullable=False
    )
    original_name: Mapped[str] = mapped_column(Text, nullable=False)
    file_path: Mapped[str] = mapped_column(Text, nullable=False)
    file_size: Mapped[int] = mapped_column(BigInteger, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    # Relationships
    owner: Mapped["User"] = relationship("User", back_populates="documents")
    highlights: Mapped[list["Highlight"]] = relationship(
        "Highlight", back_populates="document", cascade="all, delete-orphan"
    )


class Highlight(Base):
    """Positioned text highlight on a PDF page (the annotation source)."""

    __tablename__ = "highlight"
    __table_args__ = (
        Index("idx_highlight_owner_doc_page", "owner_id", "document_id", "page_number"),
    )

    highlight_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    document_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("pdf_document.document_id", ondelete="CASCADE"), nullable=False
    )
    owner_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("app_user.user_id"), nullable=False
    )
    page_number: Mapped[int] = mapped_column(Integer, nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    position: Mapped[dict[str, Any]] = mapped_column(JsonDocument, nullable=False)
    color: Mapped[str] = mapped_column(Text, nullable=False, default="#ffff00")
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )

    # Relationships
    document: Mapped["PdfDocument"] = relationship("PdfDocument", back_populates="highlights")


class ContentUnit(Base):
    """Indexed, searchable fragment of PDF text or highlight text."""

    __tablename__ = "content_unit"
    __table_args__ = (
        CheckConstraint("content_kind IN ('pdf_text', 'annotation')", name="ck_content_kind"),
        UniqueConstraint("owner_id", "source_annotation_id", name="uq_content_owner_annotation"),
        # One pdf_text unit per document page
        Index(
            "uq_content_document_page",
            "owner_id",
            "document_id",
            "page_number",
            unique=True,
            postgresql_where=text("content_kind = 'pdf_text'"),
            sqlite_where=text("content_kind = 'pdf_text'"),
        ),
        Index("idx_content_owner_created", "owner_id", "created_at"),
        Index("idx_content_owner_document", "owner_id", "document_id"),
        Index("idx_content_owner_kind", "owner_id", "content_kind"),
    )

    unit_id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    owner_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    document_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    page_number: Mapped[int] = mapped_column(Integer, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    content_kind: Mapped[str] = mapped_column(Text, nullable=False)
    position: Mapped[dict[str, Any] | None] = mapped_column(JsonDocument, nullable=True)
    # Only set for annotation units
    source_annotation_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
