import pytest

from curator.core.roles import (
    ROLE_RANK,
    Role,
    is_valid_role,
    render_has_role_sql,
    satisfies,
)


class TestSatisfies:

    @pytest.mark.parametrize(
        "actual, required, expected",
        [
            ("admin", "admin", True),
            ("admin", "curator", True),
            ("admin", "user", True),
            ("curator", "admin", False),
            ("curator", "curator", True),
            ("curator", "user", True),
            ("user", "admin", False),
            ("user", "curator", False),
            ("user", "user", True),
        ],
    )
    def test_rank_order(self, actual, required, expected):
        assert satisfies(actual, required, True) is expected

    @pytest.mark.parametrize("actual", ["user", "curator", "admin"])
    def test_inactive_satisfies_nothing(self, actual):
        assert satisfies(actual, "user", False) is False

    def test_unknown_roles_satisfy_nothing(self):
        assert satisfies("superuser", "user", True) is False
        assert satisfies("admin", "owner", True) is False
        assert satisfies(None, "user", True) is False
        assert satisfies("", "user", True) is False

    def test_enum_members_accepted(self):
        assert satisfies(Role.ADMIN, Role.CURATOR, True) is True

    def test_is_valid_role(self):
        assert is_valid_role("curator")
        assert not is_valid_role("Curator")


def test_has_role_sql_lists_every_rank():
    sql = render_has_role_sql()

    assert "CREATE OR REPLACE FUNCTION has_role(user_id UUID, required_role TEXT)" in sql
    for role, rank in ROLE_RANK.items():
        assert f"WHEN '{role}' THEN {rank}" in sql
    assert "is_active = true" in sql
