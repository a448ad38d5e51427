"""
Override engine: layer stored PLAN / WEEK / SESSION patches onto a draft.

Patches apply strictly in the order given, which the store guarantees is
creation order. A patch that cannot be applied is skipped with a warning;
generation never fails because of one.
"""

import logging
from collections.abc import Iterable
from typing import Any, Protocol

from liftplan.core.exceptions import OverridePatchWarning
from liftplan.core.metrics import override_warnings_total
from liftplan.models.enums import ExerciseRole, OverrideScope
from liftplan.schemas.patches import (
    AddAccessoryPatch,
    InvalidPatchError,
    PatchTarget,
    RemoveExercisePatch,
    ReorderBlocksPatch,
    ReplaceExercisePatch,
    SetParamPatch,
    UnknownPatch,
    parse_patch,
)
from liftplan.schemas.session import PlannedExercise, PlannedSet, SessionDraft
from liftplan.services.formulas import round1

logger = logging.getLogger(__name__)

ACCESSORY_TARGET = "ACCESSORY"


class OverrideLike(Protocol):
    id: int | None
    scope: Any
    week_number: int | None
    session_key: str | None
    patch: Any


def _scope(override: OverrideLike) -> OverrideScope | None:
    try:
        return OverrideScope(override.scope)
    except ValueError:
        return None


def select_overrides(
    overrides: Iterable[OverrideLike],
    week: int,
    session_key: str,
) -> list[OverrideLike]:
    """Overrides that apply to this slot, in their stored order."""
    selected = []
    for override in overrides:
        scope = _scope(override)
        if scope == OverrideScope.PLAN:
            selected.append(override)
        elif scope == OverrideScope.WEEK and override.week_number == week:
            selected.append(override)
        elif scope == OverrideScope.SESSION and override.session_key == session_key:
            selected.append(override)
    return selected


def _record(warnings: list[OverridePatchWarning], warning: OverridePatchWarning) -> None:
    warnings.append(warning)
    override_warnings_total.labels(reason=warning.reason).inc()
    logger.warning(
        f"Skipping override {warning.override_id}: {warning.reason}",
        extra={"op": warning.op, **warning.details},
    )


def collect_param_overrides(
    overrides: Iterable[OverrideLike],
    week: int,
    session_key: str,
) -> dict[str, Any]:
    """Fold applicable SET_PARAM patches into a params dict, last write wins.

    Malformed patches are ignored here and reported by ``apply_overrides``.
    """
    params: dict[str, Any] = {}
    for override in select_overrides(overrides, week, session_key):
        raw = override.patch
        if not isinstance(raw, dict) or raw.get("op") != "SET_PARAM":
            continue
        try:
            patch = parse_patch(raw)
        except InvalidPatchError:
            continue
        params[patch.value.key] = patch.value.value
    return params


def _matches(exercise: PlannedExercise, target: PatchTarget) -> bool:
    if target.block_target and exercise.source_target:
        if exercise.source_target.upper() == target.block_target.strip().upper():
            return True
    if target.exercise_name:
        return exercise.exercise_name.casefold() == target.exercise_name.strip().casefold()
    return False


def _accessory(patch: AddAccessoryPatch, override_id: int | None) -> PlannedExercise:
    value = patch.value
    return PlannedExercise(
        exercise_name=value.exercise_name,
        role=ExerciseRole.ASSIST,
        sets=[
            PlannedSet(
                set_number=s.set_number or i + 1,
                reps=s.reps,
                weight_kg=round1(s.weight_kg) if s.weight_kg is not None else None,
                rpe=s.rpe,
            )
            for i, s in enumerate(value.sets)
        ],
        source_target=ACCESSORY_TARGET,
        order=value.order,
        meta={"overrideId": override_id},
    )


def _reorder(exercises: list[PlannedExercise], order: list[str]) -> list[PlannedExercise]:
    rank = {name.strip().upper(): i for i, name in enumerate(order)}
    unranked = len(rank)

    def key(pair: tuple[int, PlannedExercise]) -> tuple[int, int]:
        index, exercise = pair
        target = (exercise.source_target or "").upper()
        return rank.get(target, unranked), index

    return [e for _, e in sorted(enumerate(exercises), key=key)]


def apply_overrides(
    draft: SessionDraft,
    overrides: Iterable[OverrideLike],
    week: int,
    session_key: str,
) -> SessionDraft:
    """Return a new draft with applicable overrides applied.

    Generated exercises stay first, in generator order unless REORDER_BLOCKS
    says otherwise; accessories added by overrides follow, stable-sorted by
    their ``order``.
    """
    result = draft.model_copy(deep=True)
    generated = list(result.exercises)
    accessories: list[PlannedExercise] = []
    applied: list[dict[str, Any]] = []
    warnings: list[OverridePatchWarning] = []

    for override in select_overrides(overrides, week, session_key):
        try:
            patch = parse_patch(override.patch)
        except InvalidPatchError as e:
            _record(warnings, OverridePatchWarning(override.id, e.op, "invalid_payload", {"errors": e.errors}))
            continue

        if isinstance(patch, UnknownPatch):
            _record(warnings, OverridePatchWarning(override.id, patch.op, "unknown_op"))
            continue

        if isinstance(patch, AddAccessoryPatch):
            accessories.append(_accessory(patch, override.id))
        elif isinstance(patch, ReplaceExercisePatch):
            hits = 0
            for exercise in generated + accessories:
                if _matches(exercise, patch.target):
                    exercise.meta = {**exercise.meta, "replacedFrom": exercise.exercise_name}
                    exercise.exercise_name = patch.value.exercise_name
                    hits += 1
            if not hits:
                _record(warnings, OverridePatchWarning(override.id, patch.op, "no_match", patch.target.model_dump(by_alias=True, exclude_none=True)))
                continue
        elif isinstance(patch, RemoveExercisePatch):
            before = len(generated) + len(accessories)
            generated = [e for e in generated if not _matches(e, patch.target)]
            accessories = [e for e in accessories if not _matches(e, patch.target)]
            if len(generated) + len(accessories) == before:
                _record(warnings, OverridePatchWarning(override.id, patch.op, "no_match", patch.target.model_dump(by_alias=True, exclude_none=True)))
                continue
        elif isinstance(patch, ReorderBlocksPatch):
            generated = _reorder(generated, patch.value.order)
        elif isinstance(patch, SetParamPatch):
            # Consumed before generation by collect_param_overrides
            pass

        applied.append({
            "overrideId": override.id,
            "op": patch.op,
            "scope": _scope(override).value,
        })

    accessories.sort(key=lambda e: e.order)
    result.exercises = generated + accessories
    result.overrides_applied = applied
    result.warnings = [*result.warnings, *(w.as_dict() for w in warnings)]
    return result
