from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.ext.asyncio import AsyncSession

from curator.database.models import Setting


class SettingRepository:
    """Key/value access to the ``settings`` table."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_all(self) -> Dict[str, Any]:
        result = await self.session.execute(select(Setting))
        return {row.key: row.value for row in result.scalars().all()}

    async def upsert(self, key: str, value: Any, updated_by: Optional[UUID] = None) -> None:
        now = datetime.now(timezone.utc)
        stmt = insert(Setting).values(key=key, value=value, updated_at=now, updated_by=updated_by)
        stmt = stmt.on_conflict_do_update(
            index_elements=[Setting.key],
            set_={"value": stmt.excluded.value, "updated_at": now, "updated_by": updated_by},
        )
        await self.session.execute(stmt)
        await self.session.flush()
