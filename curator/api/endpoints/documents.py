from typing import Annotated, Any, Dict, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from curator.api.dependencies import get_current_profile, get_runtime_config
from curator.core.config import settings
from curator.core.database import get_async_session as get_session
from curator.database.models import Profile
from curator.schemas.documents import (
    ChunkIngestRequest,
    ChunkResponse,
    DocumentResponse,
    FailDocumentRequest,
)
from curator.services.document_service import DocumentService
from curator.services.review_service import ReviewService
from curator.services.settings_service import RuntimeConfig
from curator.utils.logging import get_logger

LOGGER = get_logger(__name__)

router = APIRouter()


async def get_document_service(
    db_session: Annotated[AsyncSession, Depends(get_session)]
) -> DocumentService:
    return DocumentService(db_session)


async def get_review_service(
    db_session: Annotated[AsyncSession, Depends(get_session)]
) -> ReviewService:
    return ReviewService(db_session)


@router.post(
    "/upload",
    summary="Upload a document",
    operation_id="upload_document",
)
async def upload_document(
    profile: Annotated[Profile, Depends(get_current_profile)],
    document_service: Annotated[DocumentService, Depends(get_document_service)],
    file: UploadFile = File(..., description="PDF, DOCX or plain text, at most 50MB"),
    title: str = Form(...),
    documentType: str = Form(..., description="fhir, vbc, grants or billing"),
    description: Optional[str] = Form(None),
) -> Dict[str, Any]:
    """Store a file and register it as a pending document."""
    # Reads at most one byte past the upload limit
    content = await file.read(settings.max_upload_bytes + 1)
    document = await document_service.upload_document(
        profile,
        content=content,
        filename=file.filename,
        content_type=file.content_type,
        title=title,
        document_type=documentType,
        description=description,
    )
    return {"documentId": str(document.id)}


@router.get(
    "",
    summary="List documents",
    operation_id="list_documents",
)
async def list_documents(
    profile: Annotated[Profile, Depends(get_current_profile)],
    document_service: Annotated[DocumentService, Depends(get_document_service)],
    status: Optional[str] = Query(None),
    docType: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
) -> Dict[str, Any]:
    documents, total = await document_service.list_documents(
        profile, status=status, doc_type=docType, limit=limit, offset=offset
    )
    return {
        "total": total,
        "documents": [DocumentResponse.model_validate(doc) for doc in documents],
    }


@router.get(
    "/{document_id}",
    response_model=DocumentResponse,
    summary="Get a document",
    operation_id="get_document",
)
async def get_document(
    document_id: UUID,
    profile: Annotated[Profile, Depends(get_current_profile)],
    document_service: Annotated[DocumentService, Depends(get_document_service)],
) -> DocumentResponse:
    document = await document_service.get_document(profile, document_id)
    return DocumentResponse.model_validate(document)


@router.delete(
    "/{document_id}",
    summary="Delete a document with its chunks and vectors",
    operation_id="delete_document",
)
async def delete_document(
    document_id: UUID,
    profile: Annotated[Profile, Depends(get_current_profile)],
    document_service: Annotated[DocumentService, Depends(get_document_service)],
) -> Dict[str, Any]:
    await document_service.delete_document(profile, document_id)
    return {"success": True}


@router.post(
    "/{document_id}/process",
    summary="Send a document to the active processor",
    operation_id="process_document",
)
async def process_document(
    document_id: UUID,
    profile: Annotated[Profile, Depends(get_current_profile)],
    runtime: Annotated[RuntimeConfig, Depends(get_runtime_config)],
    document_service: Annotated[DocumentService, Depends(get_document_service)],
) -> Dict[str, Any]:
    document = await document_service.process_document(profile, document_id, runtime)
    return {
        "success": True,
        "documentId": str(document.id),
        "status": document.processing_status,
        "processor": runtime.document_processor,
    }


@router.post(
    "/{document_id}/chunks",
    summary="Ingest chunks produced by the processing pipeline",
    operation_id="ingest_document_chunks",
)
async def ingest_chunks(
    document_id: UUID,
    body: ChunkIngestRequest,
    profile: Annotated[Profile, Depends(get_current_profile)],
    document_service: Annotated[DocumentService, Depends(get_document_service)],
) -> Dict[str, Any]:
    document = await document_service.ingest_chunks(profile, document_id, body.chunks)
    return {
        "success": True,
        "documentId": str(document.id),
        "totalChunks": document.total_chunks,
        "status": document.processing_status,
    }


@router.post(
    "/{document_id}/fail",
    summary="Mark a document as failed",
    operation_id="fail_document",
)
async def fail_document(
    document_id: UUID,
    body: FailDocumentRequest,
    profile: Annotated[Profile, Depends(get_current_profile)],
    document_service: Annotated[DocumentService, Depends(get_document_service)],
) -> Dict[str, Any]:
    document = await document_service.mark_failed(profile, document_id, body.error_message)
    return {
        "success": True,
        "documentId": str(document.id),
        "status": document.processing_status,
    }


@router.get(
    "/{document_id}/review",
    summary="Review view of a document's chunks",
    operation_id="get_document_review",
)
async def get_document_review(
    document_id: UUID,
    profile: Annotated[Profile, Depends(get_current_profile)],
    review_service: Annotated[ReviewService, Depends(get_review_service)],
    index: int = Query(0),
) -> Dict[str, Any]:
    """Chunk at ``index`` (clamped) with review statistics and progress."""
    review_session = await review_service.get_review_session(document_id, profile, index)
    current = review_session.current
    return {
        "documentId": str(document_id),
        **review_session.to_dict(),
        "chunk": ChunkResponse.model_validate(current) if current is not None else None,
    }
