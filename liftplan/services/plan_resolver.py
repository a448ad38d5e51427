"""
Plan resolution: map a plan onto the program versions that generate its sessions.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Literal

from liftplan.core.exceptions import PlanResolutionError
from liftplan.models import Plan, PlanModule, ProgramVersion
from liftplan.models.enums import PlanType
from liftplan.repositories import ProgramRepository
from liftplan.services.progressions.base import normalize_target

logger = logging.getLogger(__name__)

TargetPolicy = Literal["first", "last"]


@dataclass
class ResolvedModule:
    target: str | None
    program_version: ProgramVersion
    effective_params: dict[str, Any]
    priority: int = 0
    module_id: int | None = None


@dataclass
class ResolvedPlan:
    plan: Plan
    modules: list[ResolvedModule] = field(default_factory=list)
    warnings: list[dict[str, Any]] = field(default_factory=list)


def merge_params(*sources: dict[str, Any] | None) -> dict[str, Any]:
    """Shallow merge; later sources win on key collisions."""
    merged: dict[str, Any] = {}
    for source in sources:
        if source:
            merged.update(source)
    return merged


def _int_list(value: Any) -> list[int] | None:
    if not isinstance(value, list):
        return None
    out = []
    for item in value:
        try:
            out.append(int(item))
        except (TypeError, ValueError):
            continue
    return out


def is_module_active(module: PlanModule, week: int, day: int) -> bool:
    """A module runs unless its params restrict ``days`` / ``weeks`` away from this slot."""
    params = module.params or {}
    days = _int_list(params.get("days"))
    if days is not None and day not in days:
        return False
    weeks = _int_list(params.get("weeks"))
    if weeks is not None and week not in weeks:
        return False
    return True


def select_modules(
    modules: list[PlanModule],
    week: int,
    day: int,
    policy: TargetPolicy = "first",
) -> tuple[list[PlanModule], list[dict[str, Any]]]:
    """
    Active modules in ascending priority, one per target.

    Ties keep insertion order. When two modules claim the same target the
    policy decides which survives; the loser is reported as a warning.
    """
    active = [m for m in modules if is_module_active(m, week, day)]
    ordered = sorted(enumerate(active), key=lambda pair: (pair[1].priority or 0, pair[0]))

    chosen: dict[str, PlanModule] = {}
    warnings: list[dict[str, Any]] = []
    for _, module in ordered:
        target = normalize_target(module.target)
        existing = chosen.get(target)
        if existing is None:
            chosen[target] = module
            continue
        keep, drop = (existing, module) if policy == "first" else (module, existing)
        chosen[target] = keep
        warnings.append({
            "source": "resolver",
            "reason": "duplicate_target",
            "target": target,
            "keptModuleId": keep.id,
            "droppedModuleId": drop.id,
        })

    result = [m for _, m in ordered if chosen.get(normalize_target(m.target)) is m]
    return result, warnings


class PlanResolver:
    """Resolve a plan for one (week, day) slot."""

    def __init__(self, programs: ProgramRepository, target_policy: TargetPolicy = "first"):
        self._programs = programs
        self._policy = target_policy

    async def resolve(
        self,
        plan: Plan,
        week: int,
        day: int,
        param_overrides: dict[str, Any] | None = None,
    ) -> ResolvedPlan:
        plan_type = PlanType(plan.type)
        if plan_type == PlanType.COMPOSITE:
            return await self._resolve_composite(plan, week, day, param_overrides)

        if plan.root_program_version_id is None:
            raise PlanResolutionError(
                f"{plan_type.value} plan {plan.id} has no root program version",
                details={"plan_id": plan.id},
            )
        version = await self._programs.get(plan.root_program_version_id)
        if version is None:
            raise PlanResolutionError(
                f"Program version {plan.root_program_version_id} not found",
                details={"plan_id": plan.id, "program_version_id": plan.root_program_version_id},
            )
        module = ResolvedModule(
            target=None,
            program_version=version,
            effective_params=merge_params(version.defaults, plan.params, param_overrides),
        )
        return ResolvedPlan(plan=plan, modules=[module])

    async def _resolve_composite(
        self,
        plan: Plan,
        week: int,
        day: int,
        param_overrides: dict[str, Any] | None,
    ) -> ResolvedPlan:
        modules = list(plan.modules or [])
        if not modules:
            raise PlanResolutionError(
                f"Composite plan {plan.id} has no modules",
                details={"plan_id": plan.id},
            )

        selected, warnings = select_modules(modules, week, day, self._policy)
        versions = await self._programs.get_versions([m.program_version_id for m in modules])
        missing = sorted({m.program_version_id for m in modules if m.program_version_id not in versions})
        if missing:
            raise PlanResolutionError(
                f"Program versions not found: {missing}",
                details={"plan_id": plan.id, "program_version_ids": missing},
            )

        resolved = [
            ResolvedModule(
                target=normalize_target(m.target),
                program_version=versions[m.program_version_id],
                effective_params=merge_params(
                    versions[m.program_version_id].defaults,
                    m.params,
                    plan.params,
                    param_overrides,
                ),
                priority=m.priority or 0,
                module_id=m.id,
            )
            for m in selected
        ]
        for warning in warnings:
            logger.warning(f"Plan {plan.id}: dropped module claiming {warning['target']}")
        return ResolvedPlan(plan=plan, modules=resolved, warnings=warnings)
