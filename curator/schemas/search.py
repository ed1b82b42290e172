"""Knowledge base search schemas."""

from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class SearchRequest(BaseModel):
    query: str = Field(..., min_length=1)
    threshold: float = Field(0.7, ge=0, le=1)
    limit: int = Field(10, ge=1, le=100)
    doc_type: Optional[str] = Field(None, alias="docType")
    use_cases: Optional[List[str]] = Field(None, alias="useCases")

    model_config = ConfigDict(populate_by_name=True)


class SearchMatch(BaseModel):
    """One vector record with its similarity to the query."""

    id: UUID
    content: str
    similarity: float
    metadata: Dict[str, Any]


class SearchResponse(BaseModel):
    provider: str
    results: List[SearchMatch]
