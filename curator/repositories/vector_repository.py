from datetime import datetime, timezone
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from curator.database.models import KbVector
from curator.repositories.base_repository import BaseRepository
from curator.utils.logging import get_logger

LOGGER = get_logger(__name__)

EMBEDDING_COLUMNS = {
    "gemini": "embedding_gemini",
    "openai": "embedding_openai",
}


def embedding_column(provider: str):
    """Return the KbVector column holding ``provider``'s embeddings."""
    try:
        return getattr(KbVector, EMBEDDING_COLUMNS[provider])
    except KeyError:
        raise ValueError(f"Unknown embedding provider: {provider}")


class VectorRepository(BaseRepository[KbVector]):
    """Insert-only store of approved chunk vectors, plus similarity search."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, KbVector)

    async def create_vector(self, provider: str, embedding: List[float], **fields) -> KbVector:
        """Insert one vector record with ``embedding`` in the provider's column."""
        return await self.create(**{EMBEDDING_COLUMNS[provider]: embedding}, **fields)

    async def search(
        self,
        embedding: List[float],
        provider: str,
        threshold: float = 0.7,
        limit: int = 10,
        doc_type: Optional[str] = None,
        use_cases: Optional[List[str]] = None,
    ) -> List[Tuple[KbVector, float]]:
        """Cosine-similarity search over the provider's embedding column.

        Returns:
            (record, similarity) pairs with similarity >= threshold, best first
        """
        column = embedding_column(provider)
        similarity = (1 - column.cosine_distance(embedding)).label("similarity")

        query = (
            select(KbVector, similarity)
            .where(column.isnot(None))
            .where(similarity >= threshold)
        )
        if doc_type:
            query = query.where(KbVector.doc_type == doc_type)
        if use_cases:
            query = query.where(KbVector.use_cases.overlap(use_cases))

        query = query.order_by(similarity.desc()).limit(limit)
        result = await self.session.execute(query)
        return [(record, float(score)) for record, score in result.all()]

    async def backfill_curator_name(self, approved_by: UUID, curator_name: str) -> int:
        """Rewrite the denormalised curator name on records ``approved_by`` approved."""
        stmt = (
            update(KbVector)
            .where(KbVector.approved_by == approved_by)
            .values(curator_name=curator_name, last_updated=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        LOGGER.info(f"Backfilled curator_name on {result.rowcount} vectors for {approved_by}")
        return result.rowcount
