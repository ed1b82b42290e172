"""Similarity search over approved knowledge-base vectors."""

from typing import Any, Dict, Iterable, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from curator.core.exceptions import AuthorizationError
from curator.core.roles import satisfies
from curator.database.models import KbVector, Profile
from curator.repositories.vector_repository import VectorRepository
from curator.services.embedding_service import EmbeddingService
from curator.services.settings_service import RuntimeConfig
from curator.utils.logging import get_logger

LOGGER = get_logger(__name__)


def rank_matches(
    scored: Iterable[Tuple[Any, float]],
    threshold: float = 0.7,
    limit: int = 10,
) -> List[Tuple[Any, float]]:
    """Keep matches at or above ``threshold``, best first, at most ``limit``.

    Ties keep their input order.
    """
    kept = [(item, score) for item, score in scored if score >= threshold]
    kept.sort(key=lambda pair: pair[1], reverse=True)
    return kept[:limit]


def vector_metadata(record: KbVector) -> Dict[str, Any]:
    return {
        "chunk_id": str(record.chunk_id),
        "document_id": str(record.document_id),
        "doc_type": record.doc_type,
        "topic": record.topic,
        "subtopic": record.subtopic,
        "use_cases": record.use_cases or [],
        "key_concepts": record.key_concepts or [],
        "tags": record.tags or [],
        "relevance_score": record.relevance_score,
        "source_document": record.source_document,
        "source_url": record.source_url,
        "source_page": record.source_page,
        "domain": record.domain,
        "curator_name": record.curator_name,
        "chunk_index": record.chunk_index,
    }


class SearchService:
    def __init__(self, session: AsyncSession, embeddings: EmbeddingService = None):
        self.session = session
        self.vector_repo = VectorRepository(session)
        self.embeddings = embeddings or EmbeddingService()

    async def search(
        self,
        actor: Profile,
        query: str,
        runtime: RuntimeConfig,
        threshold: float = 0.7,
        limit: int = 10,
        doc_type: Optional[str] = None,
        use_cases: Optional[List[str]] = None,
    ) -> List[Tuple[KbVector, float]]:
        """Embed ``query`` with the active provider and return the closest records."""
        if not satisfies(actor.role, "user", actor.is_active):
            raise AuthorizationError("Profile is deactivated")

        embedding = await self.embeddings.embed(query, runtime.ai_provider)
        matches = await self.vector_repo.search(
            embedding,
            runtime.ai_provider,
            threshold=threshold,
            limit=limit,
            doc_type=doc_type,
            use_cases=use_cases,
        )
        LOGGER.info(f"Search by {actor.id} returned {len(matches)} matches ({runtime.ai_provider})")
        return rank_matches(matches, threshold, limit)
