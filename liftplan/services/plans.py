"""
PlanService - plans, their composite modules and scoped overrides.
"""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from liftplan.core.exceptions import ValidationError
from liftplan.core.transactions import transactional
from liftplan.models import Plan, PlanModule, PlanOverride
from liftplan.models.enums import OverrideScope, PlanType
from liftplan.repositories import PlanRepository, ProgramRepository
from liftplan.schemas.patches import InvalidPatchError, parse_patch
from liftplan.schemas.plan import OverrideCreate, PlanCreate
from liftplan.services.generation import load_owned_plan
from liftplan.services.progressions.base import normalize_target

logger = logging.getLogger(__name__)


def validate_override_scope(
    scope: OverrideScope,
    week_number: int | None,
    session_key: str | None,
) -> None:
    """WEEK needs week_number, SESSION needs session_key; nothing else may be set."""
    if scope == OverrideScope.WEEK:
        if week_number is None:
            raise ValidationError("week_number", "required for WEEK scope")
        if session_key is not None:
            raise ValidationError("session_key", "must be empty for WEEK scope")
    elif scope == OverrideScope.SESSION:
        if session_key is None:
            raise ValidationError("session_key", "required for SESSION scope")
        if week_number is not None:
            raise ValidationError("week_number", "must be empty for SESSION scope")
    else:
        if week_number is not None or session_key is not None:
            raise ValidationError("scope", "PLAN scope takes neither week_number nor session_key")


class PlanService:
    def __init__(self, db: AsyncSession):
        self._session = db
        self._plans = PlanRepository(db)
        self._programs = ProgramRepository(db)

    @transactional
    async def create_plan(self, user_id: str, request: PlanCreate) -> Plan:
        """
        Create a plan; COMPOSITE modules are written in the same transaction.

        Raises:
            ValidationError: missing modules / root version, or unknown version ids
        """
        modules: list[PlanModule] = []
        if request.type == PlanType.COMPOSITE:
            if not request.modules:
                raise ValidationError("modules", "at least one module is required for COMPOSITE plans")
            ids = [m.program_version_id for m in request.modules]
            found = await self._programs.get_versions(ids)
            missing = sorted(set(ids) - set(found))
            if missing:
                raise ValidationError("modules", f"unknown program versions {missing}")
            modules = [
                PlanModule(
                    target=normalize_target(m.target),
                    program_version_id=m.program_version_id,
                    priority=m.priority,
                    params=m.params,
                )
                for m in request.modules
            ]
            root_version_id = None
        else:
            if request.root_program_version_id is None:
                raise ValidationError("root_program_version_id", f"required for {request.type.value} plans")
            if await self._programs.get(request.root_program_version_id) is None:
                raise ValidationError(
                    "root_program_version_id",
                    f"program version {request.root_program_version_id} not found",
                )
            root_version_id = request.root_program_version_id

        plan = await self._plans.create(
            Plan(
                user_id=user_id,
                name=request.name,
                type=request.type,
                root_program_version_id=root_version_id,
                params=request.params,
                is_archived=False,
            ),
            modules,
        )
        logger.info("Created %s plan %s with %d modules", request.type.value, plan.id, len(modules))
        return plan

    async def get_plan(self, plan_id: int, user_id: str) -> Plan:
        return await load_owned_plan(self._plans, plan_id, user_id)

    async def list_plans(self, user_id: str, include_archived: bool = False) -> list[Plan]:
        return await self._plans.list_by_user(user_id, include_archived)

    @transactional
    async def add_override(self, plan_id: int, user_id: str, request: OverrideCreate) -> PlanOverride:
        """
        Append an override to a plan.

        Known ops must match their payload shape; unknown ops are stored as-is
        and skipped with a warning at generation time.
        """
        plan = await load_owned_plan(self._plans, plan_id, user_id)
        validate_override_scope(request.scope, request.week_number, request.session_key)
        try:
            parse_patch(request.patch)
        except InvalidPatchError as e:
            raise ValidationError("patch", f"invalid {e.op} payload", details={"field": "patch", "errors": e.errors})

        override = await self._plans.add_override(
            PlanOverride(
                plan_id=plan.id,
                scope=request.scope,
                week_number=request.week_number,
                session_key=request.session_key,
                patch=request.patch,
                note=request.note,
            )
        )
        logger.info("Added %s override %s to plan %s", request.scope.value, override.id, plan.id)
        return override

    async def list_overrides(self, plan_id: int, user_id: str) -> list[PlanOverride]:
        plan = await load_owned_plan(self._plans, plan_id, user_id)
        return await self._plans.list_overrides(plan.id)
