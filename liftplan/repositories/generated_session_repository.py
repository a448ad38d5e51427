from __future__ import annotations
from datetime import datetime
from typing import Any
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from sqlalchemy.dialects import postgresql, sqlite
from liftplan.db.database import utcnow
from liftplan.models.plan import GeneratedSession
from liftplan.repositories.base import Repository

MAX_LIST_LIMIT = 100

_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class GeneratedSessionRepository(Repository[GeneratedSession, int]):
    """Materialized sessions keyed by (user_id, plan_id, session_key)."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get(self, id: int) -> GeneratedSession | None:
        return await self._session.get(GeneratedSession, id)

    async def get_by_key(self, user_id: str, plan_id: int, session_key: str) -> GeneratedSession | None:
        result = await self._session.execute(
            select(GeneratedSession).where(
                GeneratedSession.user_id == user_id,
                GeneratedSession.plan_id == plan_id,
                GeneratedSession.session_key == session_key,
            )
        )
        return result.scalar_one_or_none()

    async def upsert(
        self,
        user_id: str,
        plan_id: int,
        session_key: str,
        snapshot: dict[str, Any],
        scheduled_at: datetime | None = None,
    ) -> GeneratedSession:
        """Insert the session or overwrite its snapshot in one statement.

        Concurrent writers for the same identity resolve at the unique
        constraint: the last one wins and no duplicate row is created.
        """
        dialect = self._dialect_name()
        insert = _INSERTS.get(dialect)
        if insert is None:
            raise NotImplementedError(f"Upsert not supported for dialect {dialect!r}")

        now = utcnow()
        stmt = insert(GeneratedSession).values(
            user_id=user_id,
            plan_id=plan_id,
            session_key=session_key,
            snapshot=snapshot,
            scheduled_at=scheduled_at,
            created_at=now,
            updated_at=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[
                GeneratedSession.user_id,
                GeneratedSession.plan_id,
                GeneratedSession.session_key,
            ],
            set_={
                "snapshot": stmt.excluded.snapshot,
                "scheduled_at": stmt.excluded.scheduled_at,
                "updated_at": stmt.excluded.updated_at,
            },
        ).returning(GeneratedSession)

        result = await self._session.execute(
            stmt, execution_options={"populate_existing": True}
        )
        return result.scalar_one()

    async def list_recent(
        self,
        user_id: str,
        plan_id: int | None = None,
        limit: int = 20,
    ) -> list[GeneratedSession]:
        limit = max(1, min(limit, MAX_LIST_LIMIT))
        query = select(GeneratedSession).where(GeneratedSession.user_id == user_id)
        if plan_id is not None:
            query = query.where(GeneratedSession.plan_id == plan_id)
        result = await self._session.execute(
            query.order_by(GeneratedSession.updated_at.desc(), GeneratedSession.id.desc()).limit(limit)
        )
        return list(result.scalars().all())

    async def list_planned_in_range(
        self,
        user_id: str,
        start: datetime,
        end: datetime,
        plan_id: int | None = None,
    ) -> list[GeneratedSession]:
        """Sessions whose schedule (or last generation) falls inside the range."""
        planned_at = func.coalesce(GeneratedSession.scheduled_at, GeneratedSession.updated_at)
        query = select(GeneratedSession).where(
            GeneratedSession.user_id == user_id,
            planned_at >= start,
            planned_at <= end,
        )
        if plan_id is not None:
            query = query.where(GeneratedSession.plan_id == plan_id)
        result = await self._session.execute(query)
        return list(result.scalars().all())
