"""Curator review of chunks: approve, reject, filter and metadata edits."""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from curator.core.exceptions import (
    AuthorizationError,
    ChunkNotFoundError,
    DocumentNotFoundError,
    InvalidTransitionError,
    ValidationError,
)
from curator.core.lifecycle import (
    REVIEWABLE_STATUSES,
    DocumentStatus,
    ReviewStatus,
    check_score,
    ensure_reviewable,
    should_complete,
)
from curator.core.roles import satisfies
from curator.database.models import Document, DocumentChunk, Profile
from curator.repositories.chunk_repository import ChunkRepository
from curator.repositories.document_repository import DocumentRepository
from curator.repositories.vector_repository import VectorRepository
from curator.services.embedding_service import EmbeddingService
from curator.services.review_session import ReviewSession
from curator.services.settings_service import RuntimeConfig
from curator.utils.logging import get_logger

LOGGER = get_logger(__name__)

REVIEW_ACTIONS = ("approve", "reject", "filter")


def _as_list(value: Any) -> Optional[List[str]]:
    if value is None:
        return None
    if isinstance(value, str):
        return [value]
    if isinstance(value, (list, tuple)):
        return [str(item) for item in value]
    return None


def _as_text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _as_page(value: Any) -> Optional[int]:
    """Page number as an int; ranges and other free text are dropped."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value)
    return None


def _as_score(value: Any) -> Optional[float]:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return float(value)
    return None


class ReviewService:
    """Service applying curator decisions to chunks.

    Each decision is one transaction: the conditional chunk update, the
    vector insert, the counter increment and the completion check commit or
    roll back together.
    """

    def __init__(self, session: AsyncSession, embeddings: EmbeddingService = None):
        self.session = session
        self.chunk_repo = ChunkRepository(session)
        self.doc_repo = DocumentRepository(session)
        self.vector_repo = VectorRepository(session)
        self.embeddings = embeddings or EmbeddingService()

    async def review(
        self,
        chunk_id: UUID,
        action: str,
        reviewer: Profile,
        runtime: RuntimeConfig,
        notes: Optional[str] = None,
        reason: Optional[str] = None,
    ) -> DocumentChunk:
        """Dispatch a review action to approve, reject or filter."""
        if action == "approve":
            return await self.approve(chunk_id, reviewer, runtime, notes)
        if action == "reject":
            return await self.reject(chunk_id, reviewer, notes)
        if action == "filter":
            return await self.filter(chunk_id, reviewer, reason)
        raise ValidationError("Invalid action. Must be approve, reject or filter")

    async def approve(
        self,
        chunk_id: UUID,
        reviewer: Profile,
        runtime: RuntimeConfig,
        notes: Optional[str] = None,
    ) -> DocumentChunk:
        """Approve a chunk and publish it to the vector store.

        Args:
            chunk_id: Chunk to approve
            reviewer: Acting curator or admin
            runtime: Configuration selecting the embedding provider
            notes: Curator notes copied onto the chunk and the vector record

        Returns:
            The approved chunk

        Raises:
            AuthorizationError: If the reviewer is not an active curator or admin
            ChunkNotFoundError: If the chunk does not exist
            InvalidTransitionError: If the chunk was already reviewed
            ValidationError: If the chunk's scores are out of range
            ExternalServiceError: If the embedding provider fails
        """
        self._require_curator(reviewer)
        chunk = await self._load_chunk(chunk_id)
        ensure_reviewable(chunk.review_status)

        metadata = chunk.ai_metadata or {}
        try:
            check_score("confidence_score", chunk.confidence_score)
            check_score("relevance_score", metadata.get("relevance_score"))
        except ValueError as e:
            raise ValidationError(str(e), original_error=e)

        document = await self._load_document(chunk.document_id)
        embedding = await self.embeddings.embed(chunk.chunk_text, runtime.ai_provider)

        try:
            updated = await self._transition(
                chunk_id,
                ReviewStatus.APPROVED,
                curator_notes=notes,
                reviewed_by=reviewer.id,
                reviewed_at=datetime.now(timezone.utc),
            )
            await self.vector_repo.create_vector(
                runtime.ai_provider,
                embedding,
                **self._vector_fields(updated, document, reviewer, notes),
            )
            await self.doc_repo.increment_counter(document.id, "approved_chunks")
            await self._complete_if_done(document.id)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        LOGGER.info(f"Chunk {chunk_id} approved by {reviewer.id} ({runtime.ai_provider})")
        return updated

    async def reject(
        self, chunk_id: UUID, reviewer: Profile, notes: Optional[str] = None
    ) -> DocumentChunk:
        """Reject a chunk; no vector record is written."""
        self._require_curator(reviewer)
        chunk = await self._load_chunk(chunk_id)
        ensure_reviewable(chunk.review_status)

        try:
            updated = await self._transition(
                chunk_id,
                ReviewStatus.REJECTED,
                curator_notes=notes,
                reviewed_by=reviewer.id,
                reviewed_at=datetime.now(timezone.utc),
            )
            await self.doc_repo.increment_counter(chunk.document_id, "rejected_chunks")
            await self._complete_if_done(chunk.document_id)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        LOGGER.info(f"Chunk {chunk_id} rejected by {reviewer.id}")
        return updated

    async def filter(
        self, chunk_id: UUID, reviewer: Profile, reason: Optional[str] = None
    ) -> DocumentChunk:
        """Mark a chunk as noise (table of contents, cover page, boilerplate, ...)."""
        self._require_curator(reviewer)
        chunk = await self._load_chunk(chunk_id)
        ensure_reviewable(chunk.review_status)

        try:
            updated = await self._transition(
                chunk_id,
                ReviewStatus.FILTERED,
                is_filtered=True,
                filtered_reason=reason or "manual",
                reviewed_by=reviewer.id,
                reviewed_at=datetime.now(timezone.utc),
            )
            await self._complete_if_done(chunk.document_id)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        LOGGER.info(f"Chunk {chunk_id} filtered by {reviewer.id}: {reason or 'manual'}")
        return updated

    async def edit_metadata(
        self, chunk_id: UUID, patch: Optional[Dict[str, Any]], editor: Profile
    ) -> Dict[str, Any]:
        """Shallow-merge ``patch`` into the chunk's ``ai_metadata``.

        Returns:
            The merged metadata, including its ``last_updated`` stamp
        """
        self._require_curator(editor)
        if not patch:
            raise ValidationError("Metadata is required")
        try:
            check_score("relevance_score", patch.get("relevance_score"))
        except ValueError as e:
            raise ValidationError(str(e), original_error=e)

        chunk = await self._load_chunk(chunk_id)
        now = datetime.now(timezone.utc)
        merged = {**(chunk.ai_metadata or {}), **patch, "last_updated": now.isoformat()}

        try:
            await self.chunk_repo.update(
                chunk_id,
                ai_metadata=merged,
                metadata_edited=True,
                metadata_edited_by=editor.id,
                metadata_edited_at=now,
            )
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        LOGGER.info(f"Chunk {chunk_id} metadata edited by {editor.id}: {sorted(patch)}")
        return merged

    async def get_review_session(
        self, document_id: UUID, viewer: Profile, index: int = 0
    ) -> ReviewSession:
        """Open a review cursor over a document's chunks at ``index``."""
        self._require_curator(viewer)
        await self._load_document(document_id)
        chunks = await self.chunk_repo.list_for_document(document_id)
        return ReviewSession(chunks, index)

    async def _transition(self, chunk_id: UUID, to_status: ReviewStatus, **fields) -> DocumentChunk:
        updated = await self.chunk_repo.transition_review_status(
            chunk_id, to_status.value, REVIEWABLE_STATUSES, **fields
        )
        if updated is None:
            # Another reviewer got there first
            raise InvalidTransitionError("Chunk already reviewed")
        return updated

    async def _complete_if_done(self, document_id: UUID) -> None:
        document = await self.doc_repo.get_by_id(document_id)
        if document is None:
            return
        counts = await self.chunk_repo.count_by_status(document_id)
        if should_complete(document.total_chunks, counts, document.processing_status):
            await self.doc_repo.transition_status(
                document_id,
                [DocumentStatus.PROCESSING.value, DocumentStatus.REVIEW.value],
                DocumentStatus.COMPLETED.value,
            )
            LOGGER.info(f"Document {document_id} completed")

    def _vector_fields(
        self,
        chunk: DocumentChunk,
        document: Document,
        reviewer: Profile,
        notes: Optional[str],
    ) -> Dict[str, Any]:
        metadata = chunk.ai_metadata or {}
        document_metadata = document.metadata_ or {}
        return {
            "chunk_id": chunk.id,
            "document_id": document.id,
            "content": chunk.chunk_text,
            "doc_type": document.doc_type,
            "topic": _as_text(metadata.get("topic")),
            "subtopic": _as_text(metadata.get("subtopic")),
            "use_cases": _as_list(metadata.get("use_cases")),
            "key_concepts": _as_list(metadata.get("key_concepts")),
            "tags": _as_list(metadata.get("tags")),
            "relevance_score": _as_score(metadata.get("relevance_score")),
            "curator_notes": notes,
            "source_document": document_metadata.get("title") or document.original_filename,
            "source_url": document_metadata.get("source_url"),
            "source_page": _as_page(metadata.get("source_page")) or _as_page(metadata.get("page")),
            "domain": document_metadata.get("domain") or document.doc_type,
            "curator_name": reviewer.full_name or reviewer.email,
            "chunk_index": chunk.chunk_index,
            "word_count": len(chunk.chunk_text.split()),
            "approved_by": reviewer.id,
        }

    async def _load_chunk(self, chunk_id: UUID) -> DocumentChunk:
        chunk = await self.chunk_repo.get_by_id(chunk_id)
        if chunk is None:
            raise ChunkNotFoundError(f"Chunk {chunk_id} not found")
        return chunk

    async def _load_document(self, document_id: UUID) -> Document:
        document = await self.doc_repo.get_by_id(document_id)
        if document is None:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        return document

    def _require_curator(self, profile: Profile) -> None:
        if not satisfies(profile.role, "curator", profile.is_active):
            LOGGER.warning(f"Profile {profile.id} refused review access")
            raise AuthorizationError("Insufficient permissions")
