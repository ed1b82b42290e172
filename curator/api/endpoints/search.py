from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from curator.api.dependencies import get_current_profile, get_runtime_config
from curator.core.database import get_async_session as get_session
from curator.database.models import Profile
from curator.schemas.search import SearchMatch, SearchRequest, SearchResponse
from curator.services.search_service import SearchService, vector_metadata
from curator.services.settings_service import RuntimeConfig

router = APIRouter()


async def get_search_service(
    db_session: Annotated[AsyncSession, Depends(get_session)]
) -> SearchService:
    return SearchService(db_session)


@router.post(
    "",
    response_model=SearchResponse,
    summary="Semantic search over the knowledge base",
    operation_id="search_knowledge_base",
)
async def search(
    body: SearchRequest,
    profile: Annotated[Profile, Depends(get_current_profile)],
    runtime: Annotated[RuntimeConfig, Depends(get_runtime_config)],
    search_service: Annotated[SearchService, Depends(get_search_service)],
) -> SearchResponse:
    matches = await search_service.search(
        profile,
        body.query,
        runtime,
        threshold=body.threshold,
        limit=body.limit,
        doc_type=body.doc_type,
        use_cases=body.use_cases,
    )
    return SearchResponse(
        provider=runtime.ai_provider,
        results=[
            SearchMatch(
                id=record.id,
                content=record.content,
                similarity=similarity,
                metadata=vector_metadata(record),
            )
            for record, similarity in matches
        ],
    )
