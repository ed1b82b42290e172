"""row_level_security

Revision ID: 8d4e2b6a1c57
Revises: 3f1c9a7d2b10
Create Date: 2026-10-18 11:40:52.093117

"""
from typing import Sequence, Union

from alembic import op

from curator.core.roles import render_has_role_sql


# revision identifiers, used by Alembic.
revision: str = '8d4e2b6a1c57'
down_revision: Union[str, Sequence[str], None] = '3f1c9a7d2b10'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TABLES = ['profiles', 'documents', 'document_chunks', 'kb_vectors', 'settings']

CURATOR = "is_curator_or_admin(auth.uid())"
ADMIN = "is_admin(auth.uid())"

# (name, table, command, USING, WITH CHECK)
POLICIES = [
    ("settings_select_all", "settings", "SELECT", "true", None),
    ("settings_admin_insert", "settings", "INSERT", None, ADMIN),
    ("settings_admin_update", "settings", "UPDATE", ADMIN, None),
    ("profiles_select_own", "profiles", "SELECT", "auth.uid() = id", None),
    ("profiles_curator_select", "profiles", "SELECT", CURATOR, None),
    ("profiles_insert_own", "profiles", "INSERT", None, "auth.uid() = id"),
    ("profiles_update_own", "profiles", "UPDATE", "auth.uid() = id", "auth.uid() = id"),
    ("profiles_admin_update", "profiles", "UPDATE", ADMIN, None),
    ("documents_curator_select", "documents", "SELECT", CURATOR, None),
    ("documents_curator_insert", "documents", "INSERT", None, CURATOR),
    ("documents_curator_update", "documents", "UPDATE", CURATOR, None),
    ("documents_admin_delete", "documents", "DELETE", ADMIN, None),
    ("chunks_curator_select", "document_chunks", "SELECT", CURATOR, None),
    ("chunks_curator_insert", "document_chunks", "INSERT", None, CURATOR),
    ("chunks_curator_update", "document_chunks", "UPDATE", CURATOR, None),
    ("vectors_select_all", "kb_vectors", "SELECT", "true", None),
    ("vectors_curator_insert", "kb_vectors", "INSERT", None, CURATOR),
    ("vectors_curator_update", "kb_vectors", "UPDATE", CURATOR, None),
    ("vectors_admin_delete", "kb_vectors", "DELETE", ADMIN, None),
]

HELPER_FUNCTIONS = """
CREATE OR REPLACE FUNCTION is_curator_or_admin(user_id UUID)
RETURNS BOOLEAN AS $$
  SELECT has_role(user_id, 'curator');
$$ LANGUAGE sql SECURITY DEFINER;

CREATE OR REPLACE FUNCTION is_admin(user_id UUID)
RETURNS BOOLEAN AS $$
  SELECT has_role(user_id, 'admin');
$$ LANGUAGE sql SECURITY DEFINER;
"""

# Profiles are also created from the API on first sight; whichever runs
# second hits ON CONFLICT and does nothing.
HANDLE_NEW_USER = """
CREATE OR REPLACE FUNCTION handle_new_user()
RETURNS TRIGGER AS $$
BEGIN
  INSERT INTO profiles (id, email, full_name, role, is_active)
  VALUES (
    NEW.id,
    NEW.email,
    COALESCE(NEW.raw_user_meta_data->>'full_name', NEW.raw_user_meta_data->>'name', ''),
    'user',
    true
  )
  ON CONFLICT (id) DO NOTHING;
  RETURN NEW;
EXCEPTION
  WHEN OTHERS THEN
    RAISE LOG 'Error creating profile for user %: %', NEW.id, SQLERRM;
    RETURN NEW;
END;
$$ LANGUAGE plpgsql SECURITY DEFINER;

DROP TRIGGER IF EXISTS on_auth_user_created ON auth.users;
CREATE TRIGGER on_auth_user_created
  AFTER INSERT ON auth.users
  FOR EACH ROW
  EXECUTE FUNCTION handle_new_user();
"""


def _create_policy(name, table, command, using, check) -> str:
    sql = f'CREATE POLICY "{name}" ON {table} FOR {command} TO authenticated'
    if using:
        sql += f" USING ({using})"
    if check:
        sql += f" WITH CHECK ({check})"
    return sql


def upgrade() -> None:
    """Upgrade schema."""
    op.execute(render_has_role_sql())
    op.execute(HELPER_FUNCTIONS)
    op.execute(HANDLE_NEW_USER)

    for table in TABLES:
        op.execute(f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY")
    for policy in POLICIES:
        op.execute(_create_policy(*policy))


def downgrade() -> None:
    """Downgrade schema."""
    for name, table, *_ in reversed(POLICIES):
        op.execute(f'DROP POLICY IF EXISTS "{name}" ON {table}')
    for table in TABLES:
        op.execute(f"ALTER TABLE {table} DISABLE ROW LEVEL SECURITY")

    op.execute("DROP TRIGGER IF EXISTS on_auth_user_created ON auth.users")
    op.execute("DROP FUNCTION IF EXISTS handle_new_user()")
    op.execute("DROP FUNCTION IF EXISTS is_admin(UUID)")
    op.execute("DROP FUNCTION IF EXISTS is_curator_or_admin(UUID)")
    op.execute("DROP FUNCTION IF EXISTS has_role(UUID, TEXT)")
