"""Process-wide runtime settings: active embedding provider and document processor."""

from dataclasses import dataclass
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from curator.core.exceptions import AuthorizationError, ValidationError
from curator.core.roles import satisfies
from curator.database.models import Profile
from curator.repositories.setting_repository import SettingRepository
from curator.utils.logging import get_logger

LOGGER = get_logger(__name__)

AI_PROVIDER_KEY = "ai_provider"
DOCUMENT_PROCESSOR_KEY = "document_processor"

AI_PROVIDERS = ("gemini", "openai")
DOCUMENT_PROCESSORS = ("flowise", "direct_gemini")

DEFAULT_AI_PROVIDER = "gemini"
DEFAULT_DOCUMENT_PROCESSOR = "flowise"


@dataclass(frozen=True)
class RuntimeConfig:
    """Provider and processor in effect for one request."""

    ai_provider: str = DEFAULT_AI_PROVIDER
    document_processor: str = DEFAULT_DOCUMENT_PROCESSOR


class SettingsService:
    def __init__(self, session: AsyncSession):
        self.session = session
        self.settings_repo = SettingRepository(session)

    async def get_settings(self) -> Dict[str, Any]:
        """All stored settings as ``{key: value}``."""
        return await self.settings_repo.get_all()

    async def get_runtime_config(self) -> RuntimeConfig:
        """Resolve the active provider and processor, falling back to defaults."""
        stored = await self.settings_repo.get_all()
        provider = (stored.get(AI_PROVIDER_KEY) or {}).get("provider")
        processor = (stored.get(DOCUMENT_PROCESSOR_KEY) or {}).get("processor")
        return RuntimeConfig(
            ai_provider=provider if provider in AI_PROVIDERS else DEFAULT_AI_PROVIDER,
            document_processor=(
                processor if processor in DOCUMENT_PROCESSORS else DEFAULT_DOCUMENT_PROCESSOR
            ),
        )

    async def update_settings(
        self,
        actor: Profile,
        provider: Optional[str] = None,
        document_processor: Optional[str] = None,
    ) -> Dict[str, Optional[str]]:
        """Persist a new provider and/or processor.

        Both values are validated before either is written.

        Raises:
            AuthorizationError: If the actor is not an active admin
            ValidationError: If a value is not one of the known options
        """
        if not satisfies(actor.role, "admin", actor.is_active):
            LOGGER.warning(f"Profile {actor.id} refused settings update")
            raise AuthorizationError("Admin access required")

        if provider is not None and provider not in AI_PROVIDERS:
            raise ValidationError("Invalid AI provider")
        if document_processor is not None and document_processor not in DOCUMENT_PROCESSORS:
            raise ValidationError("Invalid document processor")

        try:
            if provider is not None:
                await self.settings_repo.upsert(AI_PROVIDER_KEY, {"provider": provider}, actor.id)
            if document_processor is not None:
                await self.settings_repo.upsert(
                    DOCUMENT_PROCESSOR_KEY, {"processor": document_processor}, actor.id
                )
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        LOGGER.info(
            f"Settings updated by {actor.id}: provider={provider}, processor={document_processor}"
        )
        return {"provider": provider, "document_processor": document_processor}
