from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from curator.database.models import DocumentChunk
from curator.repositories.base_repository import BaseRepository
from curator.utils.logging import get_logger

LOGGER = get_logger(__name__)


class ChunkRepository(BaseRepository[DocumentChunk]):
    """Repository for document chunks and their review status."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, DocumentChunk)

    async def list_for_document(self, document_id: UUID) -> List[DocumentChunk]:
        """All chunks of a document in ``chunk_index`` order."""
        result = await self.session.execute(
            select(DocumentChunk)
            .where(DocumentChunk.document_id == document_id)
            .order_by(DocumentChunk.chunk_index)
        )
        return list(result.scalars().all())

    async def count_by_status(self, document_id: UUID) -> Dict[str, int]:
        """Map each review status to its chunk count for one document."""
        result = await self.session.execute(
            select(DocumentChunk.review_status, func.count())
            .where(DocumentChunk.document_id == document_id)
            .group_by(DocumentChunk.review_status)
        )
        return {status: count for status, count in result.all()}

    async def create_many(self, document_id: UUID, chunks: List[Dict[str, Any]]) -> int:
        """Insert chunk rows, skipping any ``chunk_index`` already stored.

        Returns:
            Number of rows inserted
        """
        if not chunks:
            return 0
        rows = [{**chunk, "document_id": document_id} for chunk in chunks]
        stmt = (
            insert(DocumentChunk)
            .values(rows)
            .on_conflict_do_nothing(constraint="unique_chunk_index")
            .returning(DocumentChunk.id)
        )
        try:
            result = await self.session.execute(stmt)
            inserted = len(result.all())
        except SQLAlchemyError as e:
            LOGGER.error(
                f"Error inserting chunks for document {document_id}: {str(e)}",
                exc_info=True
            )
            raise
        await self.session.flush()
        return inserted

    async def transition_review_status(
        self,
        chunk_id: UUID,
        to_status: str,
        expected_from: Iterable[str],
        **fields,
    ) -> Optional[DocumentChunk]:
        """Conditionally move a chunk to ``to_status``.

        The ``WHERE review_status IN (...)`` guard makes concurrent reviews of
        the same chunk race on the row: only one of them gets a row back.

        Returns:
            The updated chunk, or None if it was no longer reviewable
        """
        stmt = (
            update(DocumentChunk)
            .where(DocumentChunk.id == chunk_id)
            .where(DocumentChunk.review_status.in_(list(expected_from)))
            .values(review_status=to_status, **fields)
            .returning(DocumentChunk)
            .execution_options(populate_existing=True, synchronize_session=False)
        )
        try:
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            LOGGER.error(
                f"Error moving chunk {chunk_id} to {to_status}: {str(e)}",
                exc_info=True
            )
            raise
