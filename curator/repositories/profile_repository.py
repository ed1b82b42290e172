from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from curator.database.models import Profile
from curator.repositories.base_repository import BaseRepository


class ProfileRepository(BaseRepository[Profile]):
    """Repository for curator profiles keyed by Supabase user ID."""

    def __init__(self, session: AsyncSession):
        super().__init__(session, Profile)

    async def list_profiles(self) -> List[Profile]:
        """All profiles, newest first."""
        result = await self.session.execute(
            select(Profile).order_by(Profile.created_at.desc())
        )
        return list(result.scalars().all())

    async def create_if_absent(
        self, user_id: UUID, email: str, full_name: Optional[str] = None
    ) -> Optional[Profile]:
        """Insert a ``user`` profile unless one already exists for ``user_id``.

        Concurrent first requests for the same identity race on the primary
        key; ``ON CONFLICT DO NOTHING`` lets exactly one of them insert.

        Returns:
            The stored profile
        """
        stmt = (
            insert(Profile)
            .values(id=user_id, email=email, full_name=full_name, role="user", is_active=True)
            .on_conflict_do_nothing(index_elements=[Profile.id])
        )
        await self.session.execute(stmt)
        await self.session.flush()
        return await self.get_by_id(user_id)
