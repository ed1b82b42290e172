"""Profile lifecycle: first-sight creation, self-service edits and admin role changes."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from curator.core.exceptions import (
    AuthorizationError,
    NotFoundError,
    SelfModificationError,
    ValidationError,
)
from curator.core.roles import is_valid_role, satisfies
from curator.database.models import Profile
from curator.repositories.profile_repository import ProfileRepository
from curator.repositories.vector_repository import VectorRepository
from curator.schemas.auth import CurrentUser
from curator.utils.logging import get_logger

LOGGER = get_logger(__name__)


class ProfileService:
    """Service for profile reads and mutations."""

    def __init__(self, session: AsyncSession):
        self.session = session
        self.profile_repo = ProfileRepository(session)
        self.vector_repo = VectorRepository(session)

    async def get_profile(self, profile_id: UUID) -> Optional[Profile]:
        return await self.profile_repo.get_by_id(profile_id)

    async def create_profile_on_first_sight(self, user: CurrentUser) -> Optional[Profile]:
        """Ensure a profile exists for an authenticated identity.

        Creation is best effort: a failure is logged and swallowed so the
        request that triggered it carries on, and is simply retried on the
        identity's next request.

        Returns:
            The profile, or None if it could not be created
        """
        user_id = UUID(user.id)
        try:
            profile = await self.profile_repo.get_by_id(user_id)
            if profile is not None:
                return profile

            profile = await self.profile_repo.create_if_absent(
                user_id=user_id,
                email=user.email,
                full_name=user.display_name,
            )
            await self.session.commit()
            LOGGER.info(f"Created profile for {user_id}")
            return profile
        except Exception as e:
            LOGGER.error(f"Failed to create profile for {user_id}: {e}", exc_info=True)
            await self.session.rollback()
            return None

    async def list_profiles(self, actor: Profile) -> List[Profile]:
        """Newest-first list of every profile (curators and admins)."""
        if not satisfies(actor.role, "curator", actor.is_active):
            raise AuthorizationError("Curator access required")
        return await self.profile_repo.list_profiles()

    async def update_name(self, actor: Profile, full_name: str) -> Profile:
        """Change the caller's own name and backfill it onto the vectors they approved."""
        if not actor.is_active:
            raise AuthorizationError("Profile is deactivated")

        try:
            profile = await self.profile_repo.update(actor.id, full_name=full_name)
            if profile is None:
                raise NotFoundError("Profile not found")
            await self.vector_repo.backfill_curator_name(actor.id, full_name)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return profile

    async def update_role(self, actor: Profile, target_id: UUID, new_role: str) -> Profile:
        """Change a profile's role; admins may not change their own.

        Raises:
            AuthorizationError: If the actor is not an active admin
            ValidationError: If ``new_role`` is not a known role
            SelfModificationError: If the actor would change their own role
            NotFoundError: If the target profile does not exist
        """
        self._require_admin(actor)
        if not is_valid_role(new_role):
            raise ValidationError(f"Invalid role: {new_role}")
        if actor.id == target_id and new_role != actor.role:
            raise SelfModificationError("Admins cannot change their own role")

        profile = await self._update(target_id, role=new_role)
        LOGGER.info(f"Profile {target_id} role set to {new_role} by {actor.id}")
        return profile

    async def set_active(self, actor: Profile, target_id: UUID, is_active: bool) -> Profile:
        """Activate or deactivate another profile.

        Raises:
            AuthorizationError: If the actor is not an active admin
            SelfModificationError: If the actor tries to deactivate themselves
            NotFoundError: If the target profile does not exist
        """
        self._require_admin(actor)
        if actor.id == target_id and not is_active:
            raise SelfModificationError("Admins cannot deactivate themselves")

        profile = await self._update(target_id, is_active=is_active)
        LOGGER.info(f"Profile {target_id} is_active={is_active} set by {actor.id}")
        return profile

    def _require_admin(self, actor: Profile) -> None:
        if not satisfies(actor.role, "admin", actor.is_active):
            LOGGER.warning(f"Profile {actor.id} refused admin operation")
            raise AuthorizationError("Admin access required")

    async def _update(self, target_id: UUID, **fields) -> Profile:
        try:
            profile = await self.profile_repo.update(target_id, **fields)
            if profile is None:
                raise NotFoundError(f"Profile {target_id} not found")
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise
        return profile
