"""Document and chunk schemas."""

from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

class DocumentResponse(BaseModel):
    """Document as returned by the API."""

    id: UUID
    filename: str
    original_filename: str
    doc_type: str
    storage_path: str
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    upload_date: Optional[datetime] = None
    uploaded_by: Optional[UUID] = None
    processing_status: str
    total_chunks: Optional[int] = None
    approved_chunks: Optional[int] = 0
    rejected_chunks: Optional[int] = 0
    metadata: Optional[Dict[str, Any]] = Field(None, validation_alias="metadata_")
    error_message: Optional[str] = None

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class ChunkAIMetadata(BaseModel):
    """AI annotations on a chunk.

    Keys that feed typed vector columns are checked here; any other key is
    kept as supplied.
    """

    topic: Optional[str] = None
    subtopic: Optional[str] = None
    relevance_score: Optional[float] = Field(None, ge=0, le=1)
    use_cases: Optional[List[str]] = None
    key_concepts: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    acronyms: Optional[Dict[str, str]] = None
    source_page: Optional[int] = Field(None, ge=0)
    page: Optional[int] = Field(None, ge=0)

    model_config = ConfigDict(extra="allow")

    def supplied(self) -> Dict[str, Any]:
        """Only the keys the caller sent, explicit nulls included."""
        keys = self.model_fields_set | set(self.model_extra or {})
        return {key: value for key, value in self.model_dump().items() if key in keys}


class ChunkResponse(BaseModel):
    """Chunk as returned by the API."""

    id: UUID
    document_id: UUID
    chunk_index: int
    chunk_text: str
    chunk_size: Optional[int] = None
    ai_metadata: Optional[ChunkAIMetadata] = None
    confidence_score: Optional[float] = None
    review_status: str
    curator_notes: Optional[str] = None
    reviewed_by: Optional[UUID] = None
    reviewed_at: Optional[datetime] = None
    is_filtered: bool = False
    filtered_reason: Optional[str] = None
    metadata_edited: bool = False
    metadata_edited_by: Optional[UUID] = None
    metadata_edited_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class ChunkIngest(BaseModel):
    """One chunk delivered by the external processing pipeline."""

    chunk_index: int = Field(..., ge=0)
    chunk_text: str = Field(..., min_length=1)
    chunk_size: Optional[int] = Field(None, ge=0)
    ai_metadata: Optional[ChunkAIMetadata] = None
    confidence_score: Optional[float] = Field(None, ge=0, le=1)
    is_filtered: bool = False
    filtered_reason: Optional[str] = None


class ChunkIngestRequest(BaseModel):
    chunks: List[ChunkIngest] = Field(default_factory=list)

    @field_validator("chunks")
    @classmethod
    def unique_indexes(cls, value: List[ChunkIngest]) -> List[ChunkIngest]:
        indexes = [chunk.chunk_index for chunk in value]
        if len(indexes) != len(set(indexes)):
            raise ValueError("chunk_index must be unique within a document")
        return value


class FailDocumentRequest(BaseModel):
    error_message: str = Field(..., min_length=1, alias="errorMessage")

    model_config = ConfigDict(populate_by_name=True)


class ReviewRequest(BaseModel):
    """Curator decision on a chunk."""

    action: str = Field(..., description="approve, reject or filter")
    notes: Optional[str] = None
    reason: Optional[str] = Field(None, description="Filter reason (toc, cover, boilerplate, ...)")


class MetadataUpdateRequest(BaseModel):
    metadata: Optional[ChunkAIMetadata] = None
