"""Role policy shared by the API layer and the database access rules.

Roles are ranked ``user < curator < admin``. A profile satisfies a required
role when it is active and its rank is at least the required rank. The
same table renders the SQL ``has_role`` function installed by the
row-level-security migration, so both layers read one definition.
"""

from enum import Enum
from typing import Optional


class Role(str, Enum):
    """Profile roles, lowest privilege first."""

    USER = "user"
    CURATOR = "curator"
    ADMIN = "admin"


ROLE_RANK: dict[str, int] = {
    Role.USER.value: 0,
    Role.CURATOR.value: 1,
    Role.ADMIN.value: 2,
}

VALID_ROLES = frozenset(ROLE_RANK)


def _role_value(role: Optional[str]) -> Optional[str]:
    if isinstance(role, Role):
        return role.value
    return role


def is_valid_role(role: Optional[str]) -> bool:
    """Return True when ``role`` is one of the three known roles."""
    return _role_value(role) in ROLE_RANK


def satisfies(actual_role: Optional[str], required_role: Optional[str], is_active: bool) -> bool:
    """Decide whether a profile with ``actual_role`` may act as ``required_role``.

    Inactive profiles satisfy nothing. Unrecognised role strings on either
    side satisfy nothing.

    Args:
        actual_role: Role stored on the caller's profile
        required_role: Minimum role the operation needs
        is_active: Whether the caller's profile is active

    Returns:
        bool: True if the caller may proceed
    """
    if not is_active:
        return False

    actual = _role_value(actual_role)
    required = _role_value(required_role)
    if actual not in ROLE_RANK or required not in ROLE_RANK:
        return False

    return ROLE_RANK[actual] >= ROLE_RANK[required]


def render_has_role_sql() -> str:
    """Render the ``has_role(user_id, required_role)`` SQL function.

    The CASE arms are generated from ``ROLE_RANK`` so that the policy engine
    and :func:`satisfies` cannot drift apart.
    """
    arms = "\n".join(
        f"    WHEN '{role}' THEN {rank}" for role, rank in ROLE_RANK.items()
    )
    return f"""
CREATE OR REPLACE FUNCTION has_role(user_id UUID, required_role TEXT)
RETURNS BOOLEAN AS $$
DECLARE
  user_rank INT;
  required_rank INT;
BEGIN
  SELECT CASE role
{arms}
    ELSE NULL
  END INTO user_rank
  FROM profiles WHERE id = user_id AND is_active = true;

  required_rank := CASE required_role
{arms}
    ELSE NULL
  END;

  IF user_rank IS NULL OR required_rank IS NULL THEN
    RETURN FALSE;
  END IF;

  RETURN user_rank >= required_rank;
END;
$$ LANGUAGE plpgsql SECURITY DEFINER;
"""
