"""
SessionGenerationService - resolve, generate, patch and persist one session.
"""

import logging
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from liftplan.config.settings import Settings, get_settings
from liftplan.core.exceptions import AuthorizationError, NotFoundError
from liftplan.core.metrics import sessions_generated_total
from liftplan.models import GeneratedSession, Plan
from liftplan.models.enums import PlanType
from liftplan.repositories import GeneratedSessionRepository, PlanRepository, ProgramRepository
from liftplan.schemas.session import PlannedExercise, SessionDraft
from liftplan.services.overrides import apply_overrides, collect_param_overrides
from liftplan.services.plan_resolver import PlanResolver
from liftplan.services.session_generator import build_session_context, generate

logger = logging.getLogger(__name__)

# Exercise ``order`` values of module i start at i * MODULE_ORDER_STRIDE
MODULE_ORDER_STRIDE = 100


@dataclass
class GenerationResult:
    session: GeneratedSession
    draft: SessionDraft


async def load_owned_plan(plans: PlanRepository, plan_id: int, user_id: str) -> Plan:
    plan = await plans.get(plan_id)
    if plan is None:
        raise NotFoundError("plan", details={"plan_id": plan_id})
    if plan.user_id != user_id:
        raise AuthorizationError(f"Plan {plan_id} does not belong to the current user")
    return plan


class SessionGenerationService:
    """
    Write path for generated sessions.

    Plan Resolver -> Session Generator -> Override Engine -> Generated Session
    Store. Regenerating the same (plan, session key) overwrites the stored
    snapshot in place.
    """

    def __init__(self, db: AsyncSession, settings: Settings | None = None):
        self._session = db
        self._settings = settings or get_settings()
        self._plans = PlanRepository(db)
        self._programs = ProgramRepository(db)
        self._sessions = GeneratedSessionRepository(db)
        self._resolver = PlanResolver(self._programs, self._settings.composite_target_policy)

    async def build_draft(
        self,
        user_id: str,
        plan_id: int,
        week: int | None = None,
        day: int | None = None,
        session_date: date | str | None = None,
        timezone: str | None = None,
    ) -> SessionDraft:
        """Produce the patched draft without persisting it."""
        plan = await load_owned_plan(self._plans, plan_id, user_id)
        context = build_session_context(
            plan.params,
            week,
            day,
            session_date,
            timezone,
            default_timezone=self._settings.default_timezone,
        )
        overrides = await self._plans.list_overrides(plan.id)
        param_overrides = collect_param_overrides(overrides, context.week, context.session_key)

        resolved = await self._resolver.resolve(plan, context.week, context.day, param_overrides)
        composite = PlanType(plan.type) == PlanType.COMPOSITE

        warnings: list[dict[str, Any]] = list(resolved.warnings)
        exercises: list[PlannedExercise] = []
        programs: list[dict[str, Any]] = []
        for i, module in enumerate(resolved.modules):
            version = module.program_version
            exercises.extend(
                generate(
                    version,
                    module.effective_params,
                    context,
                    target=module.target if composite else None,
                    order_base=i * MODULE_ORDER_STRIDE,
                    warnings=warnings,
                    fallback_training_max_kg=self._settings.default_training_max_kg,
                    default_tm_percent=self._settings.default_tm_percent,
                )
            )
            programs.append({
                "target": module.target,
                "programVersionId": version.id,
                "slug": version.template.slug if version.template else None,
                "version": version.version,
                "kind": (version.definition or {}).get("kind"),
            })

        draft = SessionDraft(
            context=context,
            plan={"id": plan.id, "name": plan.name, "type": PlanType(plan.type).value},
            programs=programs,
            exercises=exercises,
            warnings=warnings,
        )
        return apply_overrides(draft, overrides, context.week, context.session_key)

    async def generate_and_save(
        self,
        user_id: str,
        plan_id: int,
        week: int | None = None,
        day: int | None = None,
        session_date: date | str | None = None,
        timezone: str | None = None,
    ) -> GenerationResult:
        draft = await self.build_draft(user_id, plan_id, week, day, session_date, timezone)
        context = draft.context
        scheduled_at = datetime.combine(date.fromisoformat(context.session_date), datetime.min.time())

        stored = await self._sessions.upsert(
            user_id=user_id,
            plan_id=plan_id,
            session_key=context.session_key,
            snapshot=draft.to_snapshot(),
            scheduled_at=scheduled_at,
        )
        sessions_generated_total.labels(plan_type=draft.plan["type"]).inc()
        logger.info(
            "Generated session %s for plan %s (%d exercises, %d warnings)",
            context.session_key,
            plan_id,
            len(draft.exercises),
            len(draft.warnings),
        )
        return GenerationResult(session=stored, draft=draft)

    async def get_session(self, user_id: str, plan_id: int, session_key: str) -> GeneratedSession:
        await load_owned_plan(self._plans, plan_id, user_id)
        stored = await self._sessions.get_by_key(user_id, plan_id, session_key)
        if stored is None:
            raise NotFoundError("generated_session", details={"plan_id": plan_id, "session_key": session_key})
        return stored

    async def list_recent(self, user_id: str, plan_id: int | None = None, limit: int = 20) -> list[GeneratedSession]:
        if plan_id is not None:
            await load_owned_plan(self._plans, plan_id, user_id)
        return await self._sessions.list_recent(user_id, plan_id, limit)
