"""
WorkoutService - performed workout logs and their sets.
"""

import logging
from datetime import datetime, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from liftplan.core.cache import StatsCache
from liftplan.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from liftplan.core.pagination import decode_cursor, encode_cursor
from liftplan.core.transactions import transactional
from liftplan.db.database import utcnow
from liftplan.models import WorkoutLog, WorkoutSet
from liftplan.models.enums import SessionStatus
from liftplan.repositories import GeneratedSessionRepository, PlanRepository, WorkoutRepository
from liftplan.schemas.workout import WorkoutLogCreate
from liftplan.services.generation import load_owned_plan

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


def to_naive_utc(value: datetime | None) -> datetime:
    """Stored timestamps are naive UTC."""
    if value is None:
        return utcnow()
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class WorkoutService:
    def __init__(self, db: AsyncSession, cache: StatsCache | None = None):
        self._session = db
        self._logs = WorkoutRepository(db)
        self._plans = PlanRepository(db)
        self._generated = GeneratedSessionRepository(db)
        self._cache = cache or StatsCache(db)

    @transactional
    async def create_log(self, user_id: str, request: WorkoutLogCreate) -> WorkoutLog:
        """
        Record a performed workout.

        The log, its sets and the user's stats cache invalidation commit or
        roll back together.

        Raises:
            ValidationError: no sets, blank exercise names, or a generated
                session that belongs to a different plan
            NotFoundError / AuthorizationError: unknown or foreign plan/session
        """
        if not request.sets:
            raise ValidationError("sets", "at least one set is required")

        if request.plan_id is not None:
            await load_owned_plan(self._plans, request.plan_id, user_id)

        generated = None
        if request.generated_session_id is not None:
            generated = await self._generated.get(request.generated_session_id)
            if generated is None:
                raise NotFoundError("generated_session", details={"id": request.generated_session_id})
            if generated.user_id != user_id:
                raise AuthorizationError("Generated session does not belong to the current user")
            if request.plan_id is not None and generated.plan_id != request.plan_id:
                raise ValidationError("generated_session_id", "does not belong to the given plan")

        sets = []
        for idx, s in enumerate(request.sets):
            name = s.exercise_name.strip()
            if not name:
                raise ValidationError("exercise_name", f"set {idx + 1} has no exercise name")
            sets.append(
                WorkoutSet(
                    exercise_name=name,
                    sort_order=s.sort_order if s.sort_order is not None else idx,
                    set_number=s.set_number,
                    reps=s.reps,
                    weight_kg=s.weight_kg,
                    rpe=s.rpe,
                    is_extra=s.is_extra,
                    meta=s.meta,
                )
            )

        log = await self._logs.create(
            WorkoutLog(
                user_id=user_id,
                plan_id=request.plan_id if request.plan_id is not None else (generated.plan_id if generated else None),
                generated_session_id=request.generated_session_id,
                performed_at=to_naive_utc(request.performed_at),
                duration_minutes=request.duration_minutes,
                notes=request.notes,
                tags=request.tags,
            ),
            sets,
        )
        if generated is not None:
            generated.status = SessionStatus.DONE

        removed = await self._cache.invalidate(user_id)
        logger.info("Logged workout %s with %d sets, dropped %d cached stats", log.id, len(sets), removed)
        return log

    async def list_logs(
        self,
        user_id: str,
        plan_id: int | None = None,
        cursor: str | None = None,
        limit: int = 20,
    ) -> tuple[list[WorkoutLog], str | None, int]:
        """Newest-first page of logs with sets; returns (items, next_cursor, limit)."""
        limit = max(1, min(limit, MAX_PAGE_SIZE))
        after = decode_cursor(cursor) if cursor else None
        items, has_more = await self._logs.list_page(user_id, limit, plan_id=plan_id, after=after)
        next_cursor = None
        if has_more and items:
            last = items[-1]
            next_cursor = encode_cursor(last.performed_at, last.id)
        return items, next_cursor, limit

    async def get_log(self, user_id: str, log_id: int) -> WorkoutLog:
        log = await self._logs.get(log_id)
        if log is None:
            raise NotFoundError("workout_log", details={"log_id": log_id})
        if log.user_id != user_id:
            raise AuthorizationError(f"Workout log {log_id} does not belong to the current user")
        return log
