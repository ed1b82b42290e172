"""Pytest configuration and shared fixtures."""

import os

os.environ.setdefault("SUPABASE_URL", "https://curator-test.supabase.co")
os.environ.setdefault("SUPABASE_JWT_SECRET", "test-jwt-secret-with-enough-length-for-hs256")
os.environ.setdefault("SUPABASE_ANON_KEY", "test-anon-key")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "test-service-role-key")
os.environ.setdefault("GEMINI_API_KEY", "test-gemini-key")
os.environ.setdefault("LOG_LEVEL", "WARNING")

from collections import Counter
from typing import Any, Dict, List, Optional
from unittest.mock import AsyncMock
from uuid import UUID, uuid4

import pytest
from fastapi.testclient import TestClient

from curator.database.models import Document, DocumentChunk, Profile
from curator.main import app
from curator.services.embedding_service import EmbeddingService
from curator.services.review_service import ReviewService
from curator.services.settings_service import RuntimeConfig


@pytest.fixture
def test_client() -> TestClient:
    """Create FastAPI test client.

    The client is not used as a context manager, so the lifespan (and its
    database connection) never runs.
    """
    return TestClient(app)


@pytest.fixture(autouse=True)
def clear_dependency_overrides():
    """Ensure FastAPI dependency overrides are reset between tests."""
    app.dependency_overrides = {}
    yield
    app.dependency_overrides = {}


def build_profile(role: str = "curator", is_active: bool = True, **fields) -> Profile:
    return Profile(
        id=fields.pop("id", uuid4()),
        email=fields.pop("email", f"{role}@kbcurator.io"),
        full_name=fields.pop("full_name", f"Test {role.title()}"),
        role=role,
        is_active=is_active,
        **fields,
    )


@pytest.fixture
def make_profile():
    """Factory for unsaved Profile rows."""
    return build_profile


@pytest.fixture
def make_document():
    def _make(status: str = "review", total_chunks: Optional[int] = None, **fields) -> Document:
        return Document(
            id=fields.pop("id", uuid4()),
            filename=fields.pop("filename", "stored.pdf"),
            original_filename=fields.pop("original_filename", "fhir-guide.pdf"),
            doc_type=fields.pop("doc_type", "fhir"),
            storage_path=fields.pop("storage_path", "fhir/stored.pdf"),
            mime_type=fields.pop("mime_type", "application/pdf"),
            processing_status=status,
            total_chunks=total_chunks,
            approved_chunks=fields.pop("approved_chunks", 0),
            rejected_chunks=fields.pop("rejected_chunks", 0),
            metadata_=fields.pop("metadata_", {"title": "FHIR Guide"}),
            **fields,
        )

    return _make


@pytest.fixture
def make_chunk():
    def _make(document_id: UUID, chunk_index: int = 0, review_status: str = "pending", **fields):
        return DocumentChunk(
            id=fields.pop("id", uuid4()),
            document_id=document_id,
            chunk_index=chunk_index,
            chunk_text=fields.pop("chunk_text", f"Patient resource section {chunk_index}"),
            ai_metadata=fields.pop(
                "ai_metadata",
                {"topic": "Patient", "relevance_score": 0.9, "use_cases": ["interop"]},
            ),
            confidence_score=fields.pop("confidence_score", 0.8),
            review_status=review_status,
            is_filtered=fields.pop("is_filtered", False),
            metadata_edited=fields.pop("metadata_edited", False),
            **fields,
        )

    return _make


class InMemoryStore:
    """Rows shared by the fake repositories."""

    def __init__(self):
        self.documents: Dict[UUID, Document] = {}
        self.chunks: Dict[UUID, DocumentChunk] = {}
        self.vectors: List[Dict[str, Any]] = []


class FakeDocumentRepository:
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def get_by_id(self, document_id):
        return self.store.documents.get(document_id)

    async def increment_counter(self, document_id, column):
        document = self.store.documents.get(document_id)
        setattr(document, column, (getattr(document, column) or 0) + 1)
        return document

    async def transition_status(self, document_id, from_statuses, to_status, **fields):
        document = self.store.documents.get(document_id)
        if document is None or document.processing_status not in list(from_statuses):
            return None
        document.processing_status = to_status
        for key, value in fields.items():
            setattr(document, key, value)
        return document


class FakeChunkRepository:
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def get_by_id(self, chunk_id):
        return self.store.chunks.get(chunk_id)

    async def list_for_document(self, document_id):
        chunks = [c for c in self.store.chunks.values() if c.document_id == document_id]
        return sorted(chunks, key=lambda c: c.chunk_index)

    async def count_by_status(self, document_id):
        return dict(Counter(
            c.review_status for c in self.store.chunks.values() if c.document_id == document_id
        ))

    async def transition_review_status(self, chunk_id, to_status, expected_from, **fields):
        chunk = self.store.chunks.get(chunk_id)
        if chunk is None or chunk.review_status not in set(expected_from):
            return None
        chunk.review_status = to_status
        for key, value in fields.items():
            setattr(chunk, key, value)
        return chunk

    async def update(self, chunk_id, **fields):
        chunk = self.store.chunks.get(chunk_id)
        for key, value in fields.items():
            setattr(chunk, key, value)
        return chunk


class FakeVectorRepository:
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def create_vector(self, provider, embedding, **fields):
        if any(v["chunk_id"] == fields["chunk_id"] for v in self.store.vectors):
            raise AssertionError("duplicate vector for chunk")
        record = {"provider": provider, "embedding": embedding, **fields}
        self.store.vectors.append(record)
        return record


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def embeddings() -> AsyncMock:
    service = AsyncMock(spec=EmbeddingService)
    service.embed.return_value = [0.01] * 768
    return service


@pytest.fixture
def review_service(store: InMemoryStore, embeddings: AsyncMock) -> ReviewService:
    """ReviewService wired to in-memory repositories and a mocked session."""
    service = ReviewService(AsyncMock(), embeddings=embeddings)
    service.doc_repo = FakeDocumentRepository(store)
    service.chunk_repo = FakeChunkRepository(store)
    service.vector_repo = FakeVectorRepository(store)
    return service


@pytest.fixture
def runtime() -> RuntimeConfig:
    return RuntimeConfig(ai_provider="gemini", document_processor="flowise")
