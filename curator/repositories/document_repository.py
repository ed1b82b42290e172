from typing import Iterable, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from curator.database.models import Document
from curator.repositories.base_repository import BaseRepository
from curator.utils.logging import get_logger

LOGGER = get_logger(__name__)

COUNTER_COLUMNS = ("approved_chunks", "rejected_chunks")


class DocumentRepository(BaseRepository[Document]):
    """Repository for managing Document records.

    Inherits from BaseRepository for standard CRUD operations.
    """

    def __init__(self, session: AsyncSession):
        super().__init__(session, Document)

    async def create_document(
        self,
        filename: str,
        original_filename: str,
        doc_type: str,
        storage_path: str,
        uploaded_by: Optional[UUID],
        file_size: Optional[int] = None,
        mime_type: Optional[str] = None,
        metadata: Optional[dict] = None,
    ) -> Document:
        """Create a new document record in ``pending``."""
        return await self.create(
            filename=filename,
            original_filename=original_filename,
            doc_type=doc_type,
            storage_path=storage_path,
            uploaded_by=uploaded_by,
            file_size=file_size,
            mime_type=mime_type,
            metadata_=metadata or {},
            processing_status="pending",
        )

    async def list_documents(
        self,
        status: Optional[str] = None,
        doc_type: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> Tuple[List[Document], int]:
        """List documents newest first, with the unpaginated total.

        Returns:
            Tuple of (documents, total matching count)
        """
        query = select(Document)
        count_query = select(func.count()).select_from(Document)
        if status:
            query = query.where(Document.processing_status == status)
            count_query = count_query.where(Document.processing_status == status)
        if doc_type:
            query = query.where(Document.doc_type == doc_type)
            count_query = count_query.where(Document.doc_type == doc_type)

        query = query.order_by(Document.upload_date.desc()).offset(offset).limit(limit)
        result = await self.session.execute(query)
        total = (await self.session.execute(count_query)).scalar_one()
        return list(result.scalars().all()), total

    async def transition_status(
        self,
        document_id: UUID,
        from_statuses: Iterable[str],
        to_status: str,
        **fields,
    ) -> Optional[Document]:
        """Move a document to ``to_status`` only if it is still in ``from_statuses``.

        Returns:
            The updated document, or None if it was not in an allowed status
        """
        try:
            stmt = (
                update(Document)
                .where(Document.id == document_id)
                .where(Document.processing_status.in_(list(from_statuses)))
                .values(processing_status=to_status, **fields)
                .returning(Document)
                .execution_options(populate_existing=True, synchronize_session=False)
            )
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            LOGGER.error(
                f"Error moving document {document_id} to {to_status}: {str(e)}",
                exc_info=True
            )
            raise

    async def increment_counter(self, document_id: UUID, column: str) -> Optional[Document]:
        """Atomically add one to ``approved_chunks`` or ``rejected_chunks``."""
        if column not in COUNTER_COLUMNS:
            raise ValueError(f"Unknown counter column: {column}")

        target = getattr(Document, column)
        stmt = (
            update(Document)
            .where(Document.id == document_id)
            .values({column: func.coalesce(target, 0) + 1})
            .returning(Document)
            .execution_options(populate_existing=True, synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
