from __future__ import annotations
from typing import Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from sqlalchemy.dialects import postgresql, sqlite
from liftplan.db.database import utcnow
from liftplan.models.stats_cache import StatsCacheEntry
from liftplan.repositories.base import Repository

_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class StatsCacheRepository(Repository[StatsCacheEntry, int]):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get(self, id: int) -> StatsCacheEntry | None:
        return await self._session.get(StatsCacheEntry, id)

    async def find(self, user_id: str, metric: str, params_hash: str) -> StatsCacheEntry | None:
        result = await self._session.execute(
            select(StatsCacheEntry).where(
                StatsCacheEntry.user_id == user_id,
                StatsCacheEntry.metric == metric,
                StatsCacheEntry.params_hash == params_hash,
            ).execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def upsert(self, user_id: str, metric: str, params_hash: str, payload: Any) -> None:
        insert = _INSERTS.get(self._dialect_name())
        if insert is None:
            raise NotImplementedError(f"Upsert not supported for dialect {self._dialect_name()!r}")

        now = utcnow()
        stmt = insert(StatsCacheEntry).values(
            user_id=user_id,
            metric=metric,
            params_hash=params_hash,
            payload=payload,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[
                StatsCacheEntry.user_id,
                StatsCacheEntry.metric,
                StatsCacheEntry.params_hash,
            ],
            set_={
                "payload": stmt.excluded.payload,
                "updated_at": stmt.excluded.updated_at,
            },
        )
        await self._session.execute(stmt)

    async def delete_for_user(self, user_id: str) -> int:
        result = await self._session.execute(
            delete(StatsCacheEntry).where(StatsCacheEntry.user_id == user_id)
        )
        return result.rowcount or 0
