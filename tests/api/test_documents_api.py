"""Tests for document endpoints."""

from unittest.mock import AsyncMock, patch
from uuid import uuid4

from fastapi.testclient import TestClient

from curator.api.dependencies import get_current_profile, get_runtime_config
from curator.api.endpoints.documents import get_document_service, get_review_service
from curator.core.config import settings
from curator.core.exceptions import ExternalServiceError, InvalidTransitionError
from curator.main import app
from curator.services.document_service import DocumentService
from curator.services.review_service import ReviewService
from curator.services.review_session import ReviewSession
from curator.services.settings_service import RuntimeConfig
from curator.services.storage_service import StorageService
from curator.services.processor_service import ProcessorService


def mock_document_service() -> AsyncMock:
    service = AsyncMock(spec=DocumentService)
    app.dependency_overrides[get_document_service] = lambda: service
    return service


class TestUpload:

    def test_upload(self, test_client: TestClient, make_profile, make_document) -> None:
        curator = make_profile("curator")
        app.dependency_overrides[get_current_profile] = lambda: curator
        service = mock_document_service()
        document = make_document(status="pending")
        service.upload_document.return_value = document

        response = test_client.post(
            "/api/documents/upload",
            files={"file": ("guide.pdf", b"%PDF-1.7 body", "application/pdf")},
            data={"title": "FHIR Guide", "documentType": "fhir", "description": "R4"},
        )

        assert response.status_code == 200
        assert response.json() == {"documentId": str(document.id)}
        kwargs = service.upload_document.await_args.kwargs
        assert kwargs["content"] == b"%PDF-1.7 body"
        assert kwargs["filename"] == "guide.pdf"
        assert kwargs["content_type"] == "application/pdf"
        assert kwargs["document_type"] == "fhir"

    def test_missing_fields(self, test_client: TestClient, make_profile) -> None:
        app.dependency_overrides[get_current_profile] = lambda: make_profile("curator")
        mock_document_service()

        response = test_client.post(
            "/api/documents/upload",
            files={"file": ("guide.pdf", b"%PDF", "application/pdf")},
            data={"documentType": "fhir"},
        )

        assert response.status_code == 400

    def test_unsupported_type_rejected_by_service(self, test_client: TestClient, make_profile) -> None:
        app.dependency_overrides[get_current_profile] = lambda: make_profile("curator")
        storage = AsyncMock(spec=StorageService)
        service = DocumentService(
            AsyncMock(), storage=storage, processor=AsyncMock(spec=ProcessorService)
        )
        app.dependency_overrides[get_document_service] = lambda: service

        response = test_client.post(
            "/api/documents/upload",
            files={"file": ("scan.png", b"\x89PNG", "image/png")},
            data={"title": "Scan", "documentType": "billing"},
        )

        assert response.status_code == 400
        assert response.json() == {"error": "Unsupported file type: image/png"}
        storage.upload_file.assert_not_awaited()


    def test_oversize_upload_read_is_bounded(self, test_client: TestClient, make_profile) -> None:
        app.dependency_overrides[get_current_profile] = lambda: make_profile("curator")
        storage = AsyncMock(spec=StorageService)
        service = DocumentService(
            AsyncMock(), storage=storage, processor=AsyncMock(spec=ProcessorService)
        )
        service.upload_document = AsyncMock(wraps=service.upload_document)
        app.dependency_overrides[get_document_service] = lambda: service

        with patch.object(settings, "max_upload_bytes", 16):
            response = test_client.post(
                "/api/documents/upload",
                files={"file": ("big.txt", b"x" * 64, "text/plain")},
                data={"title": "Big", "documentType": "billing"},
            )

        assert response.status_code == 400
        assert len(service.upload_document.await_args.kwargs["content"]) == 17
        storage.upload_file.assert_not_awaited()


class TestProcessing:

    def test_process(self, test_client: TestClient, make_profile, make_document) -> None:
        app.dependency_overrides[get_current_profile] = lambda: make_profile("curator")
        app.dependency_overrides[get_runtime_config] = lambda: RuntimeConfig(
            document_processor="direct_gemini"
        )
        service = mock_document_service()
        document = make_document(status="processing")
        service.process_document.return_value = document

        response = test_client.post(f"/api/documents/{document.id}/process")

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "documentId": str(document.id),
            "status": "processing",
            "processor": "direct_gemini",
        }

    def test_processor_failure(self, test_client: TestClient, make_profile) -> None:
        app.dependency_overrides[get_current_profile] = lambda: make_profile("curator")
        app.dependency_overrides[get_runtime_config] = lambda: RuntimeConfig()
        service = mock_document_service()
        service.process_document.side_effect = ExternalServiceError(
            "Document processing failed: flowise returned status 502"
        )

        response = test_client.post(f"/api/documents/{uuid4()}/process")

        assert response.status_code == 500
        assert "flowise" in response.json()["error"]

    def test_ingest_chunks(self, test_client: TestClient, make_profile, make_document) -> None:
        app.dependency_overrides[get_current_profile] = lambda: make_profile("curator")
        service = mock_document_service()
        document = make_document(status="review", total_chunks=2)
        service.ingest_chunks.return_value = document

        response = test_client.post(
            f"/api/documents/{document.id}/chunks",
            json={
                "chunks": [
                    {"chunk_index": 0, "chunk_text": "Intro", "confidence_score": 0.7},
                    {"chunk_index": 1, "chunk_text": "Body", "ai_metadata": {"relevance_score": 0.5}},
                ]
            },
        )

        assert response.status_code == 200
        assert response.json()["totalChunks"] == 2
        assert response.json()["status"] == "review"
        chunks = service.ingest_chunks.await_args.args[2]
        assert [c.chunk_index for c in chunks] == [0, 1]

    def test_duplicate_chunk_index(self, test_client: TestClient, make_profile) -> None:
        app.dependency_overrides[get_current_profile] = lambda: make_profile("curator")
        mock_document_service()

        response = test_client.post(
            f"/api/documents/{uuid4()}/chunks",
            json={"chunks": [{"chunk_index": 0, "chunk_text": "a"}, {"chunk_index": 0, "chunk_text": "b"}]},
        )

        assert response.status_code == 400

    def test_fail_completed_document(self, test_client: TestClient, make_profile) -> None:
        app.dependency_overrides[get_current_profile] = lambda: make_profile("curator")
        service = mock_document_service()
        service.mark_failed.side_effect = InvalidTransitionError(
            "Document cannot move from 'completed' to 'failed'"
        )

        response = test_client.post(
            f"/api/documents/{uuid4()}/fail", json={"errorMessage": "late failure"}
        )

        assert response.status_code == 400


class TestReviewView:

    def test_review_view(self, test_client: TestClient, make_profile, make_chunk) -> None:
        app.dependency_overrides[get_current_profile] = lambda: make_profile("curator")
        document_id = uuid4()
        chunks = [
            make_chunk(document_id, 0, "approved"),
            make_chunk(document_id, 1, "pending"),
        ]
        service = AsyncMock(spec=ReviewService)
        service.get_review_session.return_value = ReviewSession(chunks, index=5)
        app.dependency_overrides[get_review_service] = lambda: service

        response = test_client.get(f"/api/documents/{document_id}/review", params={"index": 5})

        assert response.status_code == 200
        data = response.json()
        assert data["index"] == 1
        assert data["chunk"]["chunk_index"] == 1
        assert data["stats"] == {"total": 2, "approved": 1, "rejected": 0, "pending": 1, "filtered": 0}
        assert data["has_previous"] is True
        assert data["has_next"] is False
        assert data["progress"] == 0.5


def test_ingest_refuses_list_topic(test_client: TestClient, make_profile) -> None:
    app.dependency_overrides[get_current_profile] = lambda: make_profile("curator")
    service = mock_document_service()

    response = test_client.post(
        f"/api/documents/{uuid4()}/chunks",
        json={"chunks": [{"chunk_index": 0, "chunk_text": "a", "ai_metadata": {"topic": ["a", "b"]}}]},
    )

    assert response.status_code == 400
    service.ingest_chunks.assert_not_awaited()
