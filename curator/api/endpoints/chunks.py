from typing import Annotated, Any, Dict
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from curator.api.dependencies import get_current_profile, get_runtime_config
from curator.core.database import get_async_session as get_session
from curator.database.models import Profile
from curator.schemas.documents import MetadataUpdateRequest, ReviewRequest
from curator.services.review_service import ReviewService
from curator.services.settings_service import RuntimeConfig
from curator.utils.logging import get_logger

LOGGER = get_logger(__name__)

router = APIRouter()

PAST_TENSE = {"approve": "approved", "reject": "rejected", "filter": "filtered"}


async def get_review_service(
    db_session: Annotated[AsyncSession, Depends(get_session)]
) -> ReviewService:
    return ReviewService(db_session)


@router.post(
    "/{chunk_id}/review",
    summary="Approve, reject or filter a chunk",
    operation_id="review_chunk",
)
async def review_chunk(
    chunk_id: UUID,
    body: ReviewRequest,
    profile: Annotated[Profile, Depends(get_current_profile)],
    runtime: Annotated[RuntimeConfig, Depends(get_runtime_config)],
    review_service: Annotated[ReviewService, Depends(get_review_service)],
) -> Dict[str, Any]:
    await review_service.review(
        chunk_id,
        body.action,
        profile,
        runtime,
        notes=body.notes,
        reason=body.reason,
    )
    return {"success": True, "message": f"Chunk {PAST_TENSE[body.action]} successfully"}


@router.put(
    "/{chunk_id}/metadata",
    summary="Edit a chunk's AI metadata",
    operation_id="update_chunk_metadata",
)
async def update_chunk_metadata(
    chunk_id: UUID,
    body: MetadataUpdateRequest,
    profile: Annotated[Profile, Depends(get_current_profile)],
    review_service: Annotated[ReviewService, Depends(get_review_service)],
) -> Dict[str, Any]:
    patch = body.metadata.supplied() if body.metadata is not None else None
    metadata = await review_service.edit_metadata(chunk_id, patch, profile)
    return {
        "success": True,
        "message": "Metadata updated successfully",
        "metadata": metadata,
    }
