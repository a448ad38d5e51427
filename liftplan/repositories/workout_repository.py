from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_, or_, func
from liftplan.models.workout import WorkoutLog, WorkoutSet
from liftplan.repositories.base import Repository


@dataclass(frozen=True)
class SetRow:
    """One performed set joined with its log, the input of every stats metric."""

    performed_at: datetime
    exercise_name: str
    reps: int | None
    weight_kg: float | None
    log_id: int


class WorkoutRepository(Repository[WorkoutLog, int]):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get(self, id: int) -> WorkoutLog | None:
        result = await self._session.execute(
            select(WorkoutLog).where(WorkoutLog.id == id)
        )
        return result.scalar_one_or_none()

    async def create(self, log: WorkoutLog, sets: list[WorkoutSet]) -> WorkoutLog:
        log.sets = sets
        self._session.add(log)
        await self._session.flush()
        return log

    async def list_page(
        self,
        user_id: str,
        limit: int,
        plan_id: int | None = None,
        after: tuple[datetime, int] | None = None,
    ) -> tuple[list[WorkoutLog], bool]:
        """Newest-first keyset page; returns (items, has_more)."""
        query = select(WorkoutLog).where(WorkoutLog.user_id == user_id)
        if plan_id is not None:
            query = query.where(WorkoutLog.plan_id == plan_id)
        if after is not None:
            performed_at, log_id = after
            query = query.where(
                or_(
                    WorkoutLog.performed_at < performed_at,
                    and_(WorkoutLog.performed_at == performed_at, WorkoutLog.id < log_id),
                )
            )
        query = query.order_by(WorkoutLog.performed_at.desc(), WorkoutLog.id.desc()).limit(limit + 1)
        result = await self._session.execute(query)
        items = list(result.scalars().all())
        has_more = len(items) > limit
        return items[:limit], has_more

    async def list_set_rows(
        self,
        user_id: str,
        start: datetime,
        end: datetime,
        exercise_name: str | None = None,
        require_load: bool = False,
    ) -> list[SetRow]:
        """Sets performed in [start, end], oldest first."""
        query = (
            select(
                WorkoutLog.performed_at,
                WorkoutSet.exercise_name,
                WorkoutSet.reps,
                WorkoutSet.weight_kg,
                WorkoutLog.id,
            )
            .join(WorkoutSet, WorkoutSet.log_id == WorkoutLog.id)
            .where(
                WorkoutLog.user_id == user_id,
                WorkoutLog.performed_at >= start,
                WorkoutLog.performed_at <= end,
            )
        )
        if exercise_name:
            query = query.where(func.lower(WorkoutSet.exercise_name) == exercise_name.strip().lower())
        if require_load:
            query = query.where(WorkoutSet.weight_kg.is_not(None), WorkoutSet.reps.is_not(None))
        query = query.order_by(
            WorkoutLog.performed_at, WorkoutLog.id, WorkoutSet.sort_order, WorkoutSet.set_number, WorkoutSet.id
        )
        result = await self._session.execute(query)
        return [
            SetRow(
                performed_at=row[0],
                exercise_name=row[1],
                reps=row[2],
                weight_kg=row[3],
                log_id=row[4],
            )
            for row in result.all()
        ]

    async def list_done_session_ids(
        self,
        user_id: str,
        start: datetime,
        end: datetime,
        generated_session_ids: list[int],
    ) -> set[int]:
        """Distinct generated sessions fulfilled by a log performed in range."""
        if not generated_session_ids:
            return set()
        result = await self._session.execute(
            select(WorkoutLog.generated_session_id)
            .where(
                WorkoutLog.user_id == user_id,
                WorkoutLog.performed_at >= start,
                WorkoutLog.performed_at <= end,
                WorkoutLog.generated_session_id.in_(generated_session_ids),
            )
            .distinct()
        )
        return {row[0] for row in result.all() if row[0] is not None}
