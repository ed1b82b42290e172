"""Document upload and the processing state machine."""

from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from curator.core.config import settings
from curator.core.exceptions import (
    AppError,
    AuthorizationError,
    DocumentNotFoundError,
    ExternalServiceError,
    InvalidTransitionError,
    ValidationError,
)
from curator.core.lifecycle import (
    DOCUMENT_TRANSITIONS,
    DocType,
    DocumentStatus,
    ReviewStatus,
    ensure_transition,
)
from curator.core.roles import satisfies
from curator.database.models import Document, Profile
from curator.repositories.chunk_repository import ChunkRepository
from curator.repositories.document_repository import DocumentRepository
from curator.schemas.documents import ChunkIngest
from curator.services.processor_service import ProcessorService
from curator.services.settings_service import RuntimeConfig
from curator.services.storage_service import StorageService
from curator.utils.logging import get_logger

LOGGER = get_logger(__name__)

ALLOWED_MIME_TYPES = {
    "application/pdf": ".pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": ".docx",
    "text/plain": ".txt",
}

# Statuses a document may be (re)submitted to the processor from
PROCESSABLE_STATUSES = [
    status for status, targets in DOCUMENT_TRANSITIONS.items()
    if DocumentStatus.PROCESSING.value in targets
]
FAILABLE_STATUSES = [
    status for status, targets in DOCUMENT_TRANSITIONS.items()
    if DocumentStatus.FAILED.value in targets
]


class DocumentService:
    """Service for uploading documents and driving them through processing."""

    def __init__(
        self,
        session: AsyncSession,
        storage: StorageService = None,
        processor: ProcessorService = None,
    ):
        self.session = session
        self.doc_repo = DocumentRepository(session)
        self.chunk_repo = ChunkRepository(session)
        self.storage = storage or StorageService()
        self.processor = processor or ProcessorService()

    async def upload_document(
        self,
        actor: Profile,
        content: bytes,
        filename: str,
        content_type: Optional[str],
        title: str,
        document_type: str,
        description: Optional[str] = None,
    ) -> Document:
        """Validate, store and register an uploaded file.

        Args:
            actor: Uploading curator
            content: Raw file bytes
            filename: Client-side file name
            content_type: MIME type reported by the client
            title: Human title, kept in ``metadata``
            document_type: One of fhir, vbc, grants, billing
            description: Optional description, kept in ``metadata``

        Returns:
            The new document in ``pending``

        Raises:
            AuthorizationError: If the actor is not an active curator or admin
            ValidationError: On a bad type, MIME type, empty file or oversize file
            ExternalServiceError: If storage rejects the file
        """
        self._require(actor, "curator")

        if not title or not title.strip():
            raise ValidationError("Missing required fields")
        if document_type not in DocType._value2member_map_:
            raise ValidationError(f"Invalid document type: {document_type}")
        if content_type not in ALLOWED_MIME_TYPES:
            raise ValidationError(f"Unsupported file type: {content_type}")
        if not content:
            raise ValidationError("File is empty")
        if len(content) > settings.max_upload_bytes:
            raise ValidationError(
                f"File exceeds the {settings.max_upload_bytes // (1024 * 1024)}MB limit"
            )

        stored_name = f"{uuid4()}{ALLOWED_MIME_TYPES[content_type]}"
        storage_path = f"{document_type}/{stored_name}"

        await self.storage.upload_file(content, storage_path, content_type)

        metadata: Dict[str, Any] = {"title": title.strip()}
        if description:
            metadata["description"] = description

        try:
            document = await self.doc_repo.create_document(
                filename=stored_name,
                original_filename=filename or stored_name,
                doc_type=document_type,
                storage_path=storage_path,
                uploaded_by=actor.id,
                file_size=len(content),
                mime_type=content_type,
                metadata=metadata,
            )
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            LOGGER.error(f"Could not register upload {storage_path}; removing blob", exc_info=True)
            try:
                await self.storage.delete_file(storage_path)
            except ExternalServiceError:
                LOGGER.error(f"Orphaned blob left at {storage_path}")
            raise

        LOGGER.info(f"Document {document.id} uploaded by {actor.id} ({len(content)} bytes)")
        return document

    async def get_document(self, actor: Profile, document_id: UUID) -> Document:
        self._require(actor, "curator")
        return await self._load(document_id)

    async def list_documents(
        self,
        actor: Profile,
        status: Optional[str] = None,
        doc_type: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[Document], int]:
        self._require(actor, "curator")
        return await self.doc_repo.list_documents(status, doc_type, limit, offset)

    async def process_document(
        self, actor: Profile, document_id: UUID, runtime: RuntimeConfig
    ) -> Document:
        """Move a document to ``processing`` and hand it to the active processor.

        A processor failure moves the document to ``failed`` with the error
        message before the error is raised.

        Raises:
            InvalidTransitionError: If the document is not pending or failed
            ExternalServiceError: If the processor cannot accept the document
        """
        self._require(actor, "curator")
        document = await self._load(document_id)
        ensure_transition(document.processing_status, DocumentStatus.PROCESSING)

        try:
            document = await self.doc_repo.transition_status(
                document_id,
                PROCESSABLE_STATUSES,
                DocumentStatus.PROCESSING.value,
                error_message=None,
            )
            if document is None:
                raise InvalidTransitionError("Document is already being processed")
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        LOGGER.info(f"Document {document_id} processing with {runtime.document_processor}")

        try:
            file_url = await self.storage.get_signed_url(document.storage_path)
            await self.processor.submit(document, runtime.document_processor, file_url)
        except AppError as e:
            await self._fail(document_id, e.message)
            raise ExternalServiceError(
                f"Document processing failed: {e.message}", original_error=e
            )

        return document

    async def ingest_chunks(
        self, actor: Profile, document_id: UUID, chunks: List[ChunkIngest]
    ) -> Document:
        """Store the chunks the pipeline produced and open the document for review.

        Chunks flagged ``is_filtered`` are stored as ``filtered``. A document
        with no reviewable chunk goes straight to ``completed``.
        """
        self._require(actor, "curator")
        document = await self._load(document_id)
        ensure_transition(document.processing_status, DocumentStatus.REVIEW)

        rows = [
            {
                "chunk_index": chunk.chunk_index,
                "chunk_text": chunk.chunk_text,
                "chunk_size": chunk.chunk_size if chunk.chunk_size is not None else len(chunk.chunk_text),
                "ai_metadata": chunk.ai_metadata.supplied() if chunk.ai_metadata else {},
                "confidence_score": chunk.confidence_score,
                "is_filtered": chunk.is_filtered,
                "filtered_reason": chunk.filtered_reason,
                "review_status": (
                    ReviewStatus.FILTERED.value if chunk.is_filtered else ReviewStatus.PENDING.value
                ),
            }
            for chunk in chunks
        ]

        try:
            inserted = await self.chunk_repo.create_many(document_id, rows)
            counts = await self.chunk_repo.count_by_status(document_id)
            total = sum(counts.values())
            reviewable = counts.get(ReviewStatus.PENDING.value, 0) + counts.get(
                ReviewStatus.ENRICHING.value, 0
            )
            target = DocumentStatus.REVIEW if reviewable else DocumentStatus.COMPLETED

            document = await self.doc_repo.transition_status(
                document_id,
                [DocumentStatus.PROCESSING.value],
                target.value,
                total_chunks=total,
            )
            if document is None:
                raise InvalidTransitionError("Document is no longer processing")
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        LOGGER.info(
            f"Document {document_id}: ingested {inserted} chunks ({total} total), now {target.value}"
        )
        return document

    async def mark_failed(self, actor: Profile, document_id: UUID, error_message: str) -> Document:
        """Move a non-terminal document to ``failed``."""
        self._require(actor, "curator")
        document = await self._load(document_id)
        ensure_transition(document.processing_status, DocumentStatus.FAILED)

        document = await self._fail(document_id, error_message)
        if document is None:
            raise InvalidTransitionError("Document already finished")
        return document

    async def delete_document(self, actor: Profile, document_id: UUID) -> None:
        """Remove a document, its blob, chunks and vectors (admin only)."""
        self._require(actor, "admin")
        document = await self._load(document_id)

        await self.storage.delete_file(document.storage_path)
        try:
            await self.doc_repo.delete(document_id)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        LOGGER.info(f"Document {document_id} deleted by {actor.id}")

    async def _fail(self, document_id: UUID, error_message: str) -> Optional[Document]:
        try:
            document = await self.doc_repo.transition_status(
                document_id,
                FAILABLE_STATUSES,
                DocumentStatus.FAILED.value,
                error_message=error_message,
            )
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        LOGGER.info(f"Document {document_id} failed: {error_message}")
        return document

    async def _load(self, document_id: UUID) -> Document:
        document = await self.doc_repo.get_by_id(document_id)
        if document is None:
            raise DocumentNotFoundError(f"Document {document_id} not found")
        return document

    def _require(self, actor: Profile, role: str) -> None:
        if not satisfies(actor.role, role, actor.is_active):
            LOGGER.warning(f"Profile {actor.id} lacks {role} access")
            raise AuthorizationError(f"{role.capitalize()} access required")
