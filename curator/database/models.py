"""SQLAlchemy models for the curator tables."""

import uuid
from datetime import datetime

from pgvector.sqlalchemy import Vector
from sqlalchemy import (
    TIMESTAMP,
    Boolean,
    CheckConstraint,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.dialects.postgresql import ARRAY, JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column, relationship

from curator.core.database import Base

GEMINI_EMBEDDING_DIM = 768
OPENAI_EMBEDDING_DIM = 1536


class Profile(Base):
    """Profile for a Supabase identity; ``id`` is the identity's ``sub``."""

    __tablename__ = "profiles"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True)
    email: Mapped[str] = mapped_column(String, nullable=False)
    full_name: Mapped[str | None] = mapped_column(String, nullable=True)
    role: Mapped[str] = mapped_column(String, nullable=False, default="user", server_default="user")
    is_active: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=True, server_default="true"
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default="NOW()"
    )
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default="NOW()"
    )

    __table_args__ = (
        CheckConstraint("role IN ('user', 'curator', 'admin')", name="valid_role"),
        Index("idx_profiles_role", "role"),
    )


class Document(Base):
    """Uploaded document and its processing status."""

    __tablename__ = "documents"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    filename: Mapped[str] = mapped_column(String, nullable=False)
    original_filename: Mapped[str] = mapped_column(String, nullable=False)
    doc_type: Mapped[str] = mapped_column(String, nullable=False)
    storage_path: Mapped[str] = mapped_column(String, nullable=False)
    file_size: Mapped[int | None] = mapped_column(Integer, nullable=True)
    mime_type: Mapped[str | None] = mapped_column(String, nullable=True)
    upload_date: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default="NOW()", nullable=False
    )
    uploaded_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True
    )
    processing_status: Mapped[str] = mapped_column(
        String, nullable=False, default="pending", server_default="pending"
    )  # pending | processing | review | completed | failed
    total_chunks: Mapped[int | None] = mapped_column(Integer, nullable=True)
    approved_chunks: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    rejected_chunks: Mapped[int] = mapped_column(Integer, default=0, server_default="0")
    metadata_: Mapped[dict | None] = mapped_column("metadata", JSONB, nullable=True)
    error_message: Mapped[str | None] = mapped_column(Text, nullable=True)

    chunks: Mapped[list["DocumentChunk"]] = relationship(
        "DocumentChunk", back_populates="document", cascade="all, delete-orphan",
        passive_deletes=True,
    )

    __table_args__ = (
        CheckConstraint("doc_type IN ('fhir', 'vbc', 'grants', 'billing')", name="valid_doc_type"),
        CheckConstraint(
            "processing_status IN ('pending', 'processing', 'review', 'completed', 'failed')",
            name="valid_processing_status",
        ),
        CheckConstraint(
            "approved_chunks IS NULL OR total_chunks IS NULL OR approved_chunks <= total_chunks",
            name="valid_chunks",
        ),
        Index("idx_documents_status", "processing_status"),
        Index("idx_documents_type", "doc_type"),
    )


class DocumentChunk(Base):
    """Chunk produced by the external pipeline, awaiting curator review."""

    __tablename__ = "document_chunks"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    document_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("documents.id", ondelete="CASCADE"), nullable=False
    )
    chunk_index: Mapped[int] = mapped_column(Integer, nullable=False)
    chunk_text: Mapped[str] = mapped_column(Text, nullable=False)
    chunk_size: Mapped[int | None] = mapped_column(Integer, nullable=True)

    ai_metadata: Mapped[dict | None] = mapped_column(
        JSONB, nullable=True,
        comment="topic, subtopic, relevance_score, use_cases, key_concepts, acronyms",
    )
    confidence_score: Mapped[float | None] = mapped_column(Float, nullable=True)

    review_status: Mapped[str] = mapped_column(
        String, nullable=False, default="pending", server_default="pending"
    )  # pending | approved | rejected | filtered | enriching
    curator_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    reviewed_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True
    )
    reviewed_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    is_filtered: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="false"
    )
    filtered_reason: Mapped[str | None] = mapped_column(
        String, nullable=True, comment="toc, cover, boilerplate, appendix, ..."
    )

    metadata_edited: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="false"
    )
    metadata_edited_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True
    )
    metadata_edited_at: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default="NOW()", nullable=False
    )

    document: Mapped["Document"] = relationship("Document", back_populates="chunks")

    __table_args__ = (
        UniqueConstraint("document_id", "chunk_index", name="unique_chunk_index"),
        CheckConstraint(
            "confidence_score IS NULL OR (confidence_score >= 0 AND confidence_score <= 1)",
            name="valid_confidence",
        ),
        CheckConstraint(
            "review_status IN ('pending', 'approved', 'rejected', 'filtered', 'enriching')",
            name="valid_review_status",
        ),
        Index("idx_chunks_document_status", "document_id", "review_status"),
    )


class KbVector(Base):
    """Approved chunk content with its embedding and denormalized metadata."""

    __tablename__ = "kb_vectors"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    chunk_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("document_chunks.id", ondelete="CASCADE"), nullable=False
    )
    document_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True), ForeignKey("documents.id", ondelete="CASCADE"), nullable=False
    )

    content: Mapped[str] = mapped_column(Text, nullable=False)
    embedding_openai: Mapped[list[float] | None] = mapped_column(
        Vector(OPENAI_EMBEDDING_DIM), nullable=True
    )
    embedding_gemini: Mapped[list[float] | None] = mapped_column(
        Vector(GEMINI_EMBEDDING_DIM), nullable=True
    )

    doc_type: Mapped[str] = mapped_column(String, nullable=False)
    topic: Mapped[str | None] = mapped_column(String, nullable=True)
    subtopic: Mapped[str | None] = mapped_column(String, nullable=True)
    use_cases: Mapped[list[str] | None] = mapped_column(ARRAY(Text), nullable=True)
    key_concepts: Mapped[list[str] | None] = mapped_column(ARRAY(Text), nullable=True)
    relevance_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    curator_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    source_document: Mapped[str | None] = mapped_column(String, nullable=True)
    source_url: Mapped[str | None] = mapped_column(String, nullable=True)
    source_page: Mapped[int | None] = mapped_column(Integer, nullable=True)
    domain: Mapped[str | None] = mapped_column(String, nullable=True)
    tags: Mapped[list[str] | None] = mapped_column(ARRAY(Text), nullable=True)
    curator_name: Mapped[str | None] = mapped_column(String, nullable=True)
    chunk_index: Mapped[int | None] = mapped_column(Integer, nullable=True)
    word_count: Mapped[int | None] = mapped_column(Integer, nullable=True)

    approved_date: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default="NOW()", nullable=False
    )
    approved_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True
    )
    last_updated: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True), server_default="NOW()", nullable=True
    )

    __table_args__ = (
        UniqueConstraint("chunk_id", name="unique_vector_chunk"),
        CheckConstraint(
            "relevance_score IS NULL OR (relevance_score >= 0 AND relevance_score <= 1)",
            name="valid_relevance",
        ),
        Index("idx_kb_doc_type", "doc_type"),
        Index("idx_kb_use_cases", "use_cases", postgresql_using="gin"),
        {"comment": "Approved chunks with embeddings for RAG queries"},
    )


class Setting(Base):
    """Process-wide runtime setting (active provider, active processor)."""

    __tablename__ = "settings"

    key: Mapped[str] = mapped_column(String, primary_key=True)
    value: Mapped[dict] = mapped_column(JSONB, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default="NOW()"
    )
    updated_by: Mapped[uuid.UUID | None] = mapped_column(
        UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True
    )
