"""Shared pieces of the per-kind session generators."""
from dataclasses import dataclass, field
from typing import Any

from liftplan.models.enums import ExerciseRole
from liftplan.schemas.session import PlannedExercise, PlannedSet, SessionContext
from liftplan.services.formulas import round_load

DEFAULT_EXERCISE_NAMES = {
    "SQUAT": "Back Squat",
    "BENCH": "Bench Press",
    "DEADLIFT": "Deadlift",
    "OHP": "Overhead Press",
    "PULL": "Pull-Up",
}


@dataclass
class GeneratorInput:
    """Everything one generator arm may look at. Arms must not do I/O."""

    definition: dict[str, Any]
    params: dict[str, Any]
    context: SessionContext
    target: str | None = None
    order_base: int = 0
    fallback_training_max_kg: float = 100.0
    default_tm_percent: float = 0.9
    warnings: list[dict[str, Any]] = field(default_factory=list)

    def warn(self, reason: str, **details: Any) -> None:
        self.warnings.append({"source": "generator", "reason": reason, **details})


@dataclass(frozen=True)
class SetScheme:
    reps: int
    percent: float
    note: str | None = None

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "SetScheme":
        return cls(reps=int(raw["reps"]), percent=float(raw["percent"]), note=raw.get("note"))


@dataclass(frozen=True)
class BlockScheme:
    """N identical sets of reps at a percentage of training max."""

    sets: int
    reps: int
    percent: float
    note: str | None = None

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "BlockScheme":
        return cls(
            sets=int(raw["sets"]),
            reps=int(raw["reps"]),
            percent=float(raw["percent"]),
            note=raw.get("note"),
        )

    def rows(self) -> list[SetScheme]:
        return [SetScheme(self.reps, self.percent, self.note) for _ in range(self.sets)]


def normalize_target(value: Any) -> str:
    return str(value).strip().upper()


def exercise_name_for(target: str, params: dict[str, Any] | None = None) -> str:
    names = (params or {}).get("exerciseNames")
    if isinstance(names, dict):
        for key in (target, target.lower()):
            if isinstance(names.get(key), str) and names[key].strip():
                return names[key].strip()
    return DEFAULT_EXERCISE_NAMES.get(target, "Main Lift")


def definition_targets(definition: dict[str, Any], fallback: list[str]) -> list[str]:
    """Distinct lift targets named by the definition, in declaration order."""
    raw: list[Any] = []
    for key in ("mainLifts", "lifts", "modules", "cluster"):
        value = definition.get(key)
        if isinstance(value, list):
            raw.extend(value)
    targets: list[str] = []
    for item in raw or fallback:
        target = normalize_target(item)
        if target and target not in targets:
            targets.append(target)
    return targets or ["CUSTOM"]


def to_number(value: Any) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _scoped_number(value: Any, target: str) -> float | None:
    direct = to_number(value)
    if direct is not None:
        return direct
    if isinstance(value, dict):
        for key in (target, target.lower(), target.capitalize()):
            n = to_number(value.get(key))
            if n is not None:
                return n
    return None


def tm_percent(inp: GeneratorInput) -> float:
    value = to_number(inp.params.get("tmPercent"))
    return value if value is not None and value > 0 else inp.default_tm_percent


def training_max_kg(inp: GeneratorInput, target: str) -> float:
    """Training max for a lift.

    Taken as-is from trainingMaxKg / tmKg, or derived from oneRepMaxKg
    scaled by tmPercent, or the configured fallback.
    """
    for key in ("trainingMaxKg", "tmKg", "tm"):
        n = _scoped_number(inp.params.get(key), target)
        if n is not None:
            return n
    one_rm = _scoped_number(inp.params.get("oneRepMaxKg"), target)
    if one_rm is not None:
        return one_rm * tm_percent(inp)
    inp.warn("training_max_fallback", target=target, trainingMaxKg=inp.fallback_training_max_kg)
    return inp.fallback_training_max_kg


def percent_sets(inp: GeneratorInput, tm: float, rows: list[SetScheme], start: int = 1) -> list[PlannedSet]:
    increment = to_number(inp.params.get("plateIncrementKg"))
    return [
        PlannedSet(
            set_number=start + i,
            reps=row.reps,
            percent=row.percent,
            weight_kg=round_load(tm * row.percent, increment),
            note=row.note,
        )
        for i, row in enumerate(rows)
    ]


def main_exercise(inp: GeneratorInput, target: str, sets: list[PlannedSet], order: int, tm: float) -> PlannedExercise:
    return PlannedExercise(
        exercise_name=exercise_name_for(target, inp.params),
        role=ExerciseRole.MAIN,
        sets=sets,
        source_target=target,
        order=order,
        meta={"trainingMaxKg": round_load(tm)},
    )


def week_in_cycle(week: int, length: int) -> int:
    """Zero-based index of the week within a repeating cycle."""
    return (week - 1) % length
