"""Repository statements compiled for PostgreSQL against a mocked session."""

from unittest.mock import AsyncMock, Mock
from uuid import uuid4

import pytest
from sqlalchemy.dialects import postgresql
from sqlalchemy.ext.asyncio import AsyncSession

from curator.repositories.chunk_repository import ChunkRepository
from curator.repositories.document_repository import DocumentRepository
from curator.repositories.profile_repository import ProfileRepository
from curator.repositories.setting_repository import SettingRepository
from curator.repositories.vector_repository import VectorRepository


@pytest.fixture
def mock_session():
    """Create a mock database session."""
    session = AsyncMock(spec=AsyncSession)
    session.add = Mock()
    session.flush = AsyncMock()
    session.execute = AsyncMock()
    result = Mock()
    result.scalar_one_or_none.return_value = None
    result.all.return_value = []
    session.execute.return_value = result
    return session


def executed(session, call: int = 0):
    """Compile the statement passed to ``session.execute`` for PostgreSQL."""
    statement = session.execute.await_args_list[call].args[0]
    compiled = statement.compile(dialect=postgresql.dialect())
    return str(compiled), compiled.params


class TestChunkRepository:

    @pytest.mark.asyncio
    async def test_review_transition_is_guarded_by_current_status(self, mock_session):
        repo = ChunkRepository(mock_session)
        chunk_id = uuid4()

        updated = await repo.transition_review_status(
            chunk_id, "approved", ["pending", "enriching"], curator_notes="ok"
        )

        assert updated is None
        sql, params = executed(mock_session)
        assert sql.startswith("UPDATE document_chunks SET")
        assert "WHERE document_chunks.id = " in sql
        assert "document_chunks.review_status IN (" in sql
        assert "RETURNING" in sql
        assert ["pending", "enriching"] in params.values()
        assert params["review_status"] == "approved"
        assert params["curator_notes"] == "ok"

    @pytest.mark.asyncio
    async def test_bulk_insert_skips_existing_indexes(self, mock_session):
        mock_session.execute.return_value.all.return_value = [(uuid4(),)]
        repo = ChunkRepository(mock_session)
        rows = [
            {"chunk_index": 0, "chunk_text": "Cover", "review_status": "filtered"},
            {"chunk_index": 1, "chunk_text": "Body", "review_status": "pending"},
        ]

        inserted = await repo.create_many(uuid4(), rows)

        assert inserted == 1
        sql, _ = executed(mock_session)
        assert sql.startswith("INSERT INTO document_chunks")
        assert "ON CONFLICT ON CONSTRAINT unique_chunk_index DO NOTHING" in sql
        assert "RETURNING document_chunks.id" in sql
        mock_session.flush.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_no_rows_no_statement(self, mock_session):
        assert await ChunkRepository(mock_session).create_many(uuid4(), []) == 0
        mock_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_status_counts(self, mock_session):
        mock_session.execute.return_value.all.return_value = [("pending", 2), ("approved", 1)]

        counts = await ChunkRepository(mock_session).count_by_status(uuid4())

        assert counts == {"pending": 2, "approved": 1}
        sql, _ = executed(mock_session)
        assert "GROUP BY document_chunks.review_status" in sql


class TestDocumentRepository:

    @pytest.mark.asyncio
    @pytest.mark.parametrize("column", ["approved_chunks", "rejected_chunks"])
    async def test_counter_increment_is_atomic(self, mock_session, column):
        await DocumentRepository(mock_session).increment_counter(uuid4(), column)

        sql, params = executed(mock_session)
        assert sql.startswith(f"UPDATE documents SET {column}=")
        assert f"coalesce(documents.{column}, " in sql
        assert "WHERE documents.id = " in sql
        assert {0, 1} <= set(v for v in params.values() if isinstance(v, int))

    @pytest.mark.asyncio
    async def test_unknown_counter_refused(self, mock_session):
        with pytest.raises(ValueError):
            await DocumentRepository(mock_session).increment_counter(uuid4(), "total_chunks")
        mock_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_status_transition_is_conditional(self, mock_session):
        result = await DocumentRepository(mock_session).transition_status(
            uuid4(), ["processing", "review"], "completed"
        )

        assert result is None
        sql, params = executed(mock_session)
        assert "documents.processing_status IN (" in sql
        assert ["processing", "review"] in params.values()
        assert params["processing_status"] == "completed"


class TestVectorRepository:

    @pytest.mark.asyncio
    async def test_search_uses_provider_column_threshold_order_and_limit(self, mock_session):
        record = Mock()
        mock_session.execute.return_value.all.return_value = [(record, 0.91)]
        repo = VectorRepository(mock_session)

        matches = await repo.search([0.1] * 1536, "openai", threshold=0.8, limit=5)

        assert matches == [(record, 0.91)]
        sql, params = executed(mock_session)
        assert "kb_vectors.embedding_openai <=> " in sql
        assert "embedding_gemini <=>" not in sql
        assert "kb_vectors.embedding_openai IS NOT NULL" in sql
        assert ">= " in sql
        assert "ORDER BY similarity DESC" in sql
        assert "LIMIT " in sql
        assert 0.8 in params.values()
        assert 5 in params.values()

    @pytest.mark.asyncio
    async def test_search_filters(self, mock_session):
        repo = VectorRepository(mock_session)

        await repo.search([0.1] * 768, "gemini", doc_type="vbc", use_cases=["quality"])

        sql, params = executed(mock_session)
        assert "kb_vectors.embedding_gemini <=> " in sql
        assert "kb_vectors.doc_type = " in sql
        assert "kb_vectors.use_cases && " in sql
        assert "vbc" in params.values()
        assert ["quality"] in params.values()

    @pytest.mark.asyncio
    async def test_unknown_provider(self, mock_session):
        with pytest.raises(ValueError):
            await VectorRepository(mock_session).search([0.1], "cohere")

    @pytest.mark.asyncio
    async def test_vector_lands_in_provider_column(self, mock_session):
        repo = VectorRepository(mock_session)

        record = await repo.create_vector("openai", [0.2] * 1536, chunk_id=uuid4(), content="text")

        assert mock_session.add.call_args[0][0] is record
        assert record.embedding_openai == [0.2] * 1536
        assert record.embedding_gemini is None


class TestUpserts:

    @pytest.mark.asyncio
    async def test_profile_insert_ignores_existing_id(self, mock_session):
        repo = ProfileRepository(mock_session)

        await repo.create_if_absent(uuid4(), "una@kbcurator.io", "Una User")

        sql, params = executed(mock_session)
        assert sql.startswith("INSERT INTO profiles")
        assert "ON CONFLICT (id) DO NOTHING" in sql
        assert params["role"] == "user"
        assert params["is_active"] is True
        assert mock_session.execute.await_count == 2

    @pytest.mark.asyncio
    async def test_setting_upsert(self, mock_session):
        await SettingRepository(mock_session).upsert("ai_provider", {"provider": "openai"})

        sql, _ = executed(mock_session)
        assert sql.startswith("INSERT INTO settings")
        assert "ON CONFLICT (key) DO UPDATE SET value = excluded.value" in sql
