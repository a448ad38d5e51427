"""Literal sessions authored by hand; loads are copied, never computed."""
import math
from typing import Any

from liftplan.models.enums import ExerciseRole
from liftplan.schemas.session import PlannedExercise, PlannedSet
from liftplan.services.progressions.base import GeneratorInput, normalize_target, to_number


def _session_key(inp: GeneratorInput) -> str:
    schedule = inp.params.get("schedule")
    if isinstance(schedule, list) and schedule:
        return str(schedule[(inp.context.day - 1) % len(schedule)])
    return f"W{inp.context.week}D{inp.context.day}"


def _find_session(sessions: Any, key: str, inp: GeneratorInput) -> dict[str, Any] | None:
    if isinstance(sessions, dict):
        found = sessions.get(key) or sessions.get(inp.context.session_key)
        return found if isinstance(found, dict) else None
    if not isinstance(sessions, list):
        return None
    for candidate in (key, inp.context.session_key):
        for session in sessions:
            if isinstance(session, dict) and str(session.get("key")) == candidate:
                return session
    return None


def _role(value: Any) -> ExerciseRole:
    try:
        return ExerciseRole(str(value).upper())
    except ValueError:
        return ExerciseRole.MAIN


def _finite(value: Any) -> float | None:
    number = to_number(value)
    if number is None or not math.isfinite(number):
        return None
    return number


def _int_or(value: Any, fallback: int | None) -> int | None:
    number = _finite(value)
    return int(number) if number is not None else fallback


def _text(value: Any) -> str | None:
    return value if isinstance(value, str) and value.strip() else None


def _planned_set(raw: dict[str, Any], set_number: int) -> PlannedSet:
    # Non-numeric reps ("AMRAP") survive as the set note.
    reps = _int_or(raw.get("reps"), None)
    note = _text(raw.get("note"))
    if reps is None and note is None:
        note = _text(raw.get("reps"))
    return PlannedSet(
        set_number=set_number,
        reps=reps,
        weight_kg=_finite(raw.get("weightKg", raw.get("targetWeightKg"))),
        percent=_finite(raw.get("percent")),
        rpe=_finite(raw.get("rpe")),
        note=note,
    )


def _sets(item: dict[str, Any]) -> list[PlannedSet]:
    raw_sets = item.get("sets")
    if isinstance(raw_sets, list):
        return [
            _planned_set(raw, _int_or(raw.get("setNumber"), None) or i + 1)
            for i, raw in enumerate(raw_sets)
            if isinstance(raw, dict)
        ]
    # Shorthand: {"sets": 3, "reps": 10, "weightKg": 60}
    count = max(1, _int_or(raw_sets, 1) or 1)
    return [_planned_set(item, i + 1) for i in range(count)]


def generate(inp: GeneratorInput) -> list[PlannedExercise]:
    key = _session_key(inp)
    session = _find_session(inp.definition.get("sessions"), key, inp)
    if session is None:
        inp.warn("manual_session_missing", sessionKey=key)
        return []

    exercises = []
    for i, item in enumerate(session.get("items") or session.get("exercises") or []):
        if not isinstance(item, dict):
            continue
        name = item.get("exerciseName") or item.get("name")
        if not name:
            inp.warn("manual_item_unnamed", sessionKey=key, index=i)
            continue
        target = item.get("target")
        exercises.append(
            PlannedExercise(
                exercise_name=str(name),
                role=_role(item.get("role", "MAIN")),
                sets=_sets(item),
                source_target=normalize_target(target) if target else inp.target,
                order=inp.order_base + _int_or(item.get("order"), i),
                meta={"manualSessionKey": key},
            )
        )
    return exercises
