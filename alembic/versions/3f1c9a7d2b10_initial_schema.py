"""initial_schema

Revision ID: 3f1c9a7d2b10
Revises:
Create Date: 2026-10-18 10:02:11.418230

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

from curator.core.database import Base
from curator.database import models  # noqa: F401


# revision identifiers, used by Alembic.
revision: str = '3f1c9a7d2b10'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.execute("CREATE EXTENSION IF NOT EXISTS vector")
    Base.metadata.create_all(bind=op.get_bind())

    # Approximate nearest neighbour indexes, one per embedding column
    op.execute(
        "CREATE INDEX IF NOT EXISTS idx_kb_embedding_gemini ON kb_vectors "
        "USING ivfflat (embedding_gemini vector_cosine_ops) WITH (lists = 100)"
    )
    op.execute(
        "CREATE INDEX IF NOT EXISTS idx_kb_embedding_openai ON kb_vectors "
        "USING ivfflat (embedding_openai vector_cosine_ops) WITH (lists = 100)"
    )

    settings_table = sa.table(
        'settings',
        sa.column('key', sa.String()),
        sa.column('value', sa.dialects.postgresql.JSONB()),
    )
    op.bulk_insert(
        settings_table,
        [
            {'key': 'ai_provider', 'value': {'provider': 'gemini'}},
            {'key': 'document_processor', 'value': {'processor': 'flowise'}},
        ],
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.execute("DROP INDEX IF EXISTS idx_kb_embedding_openai")
    op.execute("DROP INDEX IF EXISTS idx_kb_embedding_gemini")
    Base.metadata.drop_all(bind=op.get_bind())
