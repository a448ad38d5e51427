"""Tactical Barbell Operator: every cluster lift, every session."""
from typing import Any

from liftplan.schemas.session import PlannedExercise
from liftplan.services.progressions.base import (
    BlockScheme,
    GeneratorInput,
    definition_targets,
    main_exercise,
    normalize_target,
    percent_sets,
    training_max_kg,
    week_in_cycle,
)

DEFAULT_LIFTS = ["SQUAT", "BENCH", "DEADLIFT"]

DEFAULT_SCHEME: list[dict[str, Any]] = [
    {"sets": 5, "reps": 5, "percent": 0.75},
    {"sets": 5, "reps": 5, "percent": 0.75},
    {"sets": 5, "reps": 4, "percent": 0.80},
    {"sets": 5, "reps": 4, "percent": 0.80},
    {"sets": 6, "reps": 3, "percent": 0.85},
    {"sets": 3, "reps": 5, "percent": 0.70, "note": "deload"},
]


def _week_scheme(definition: dict[str, Any], week: int) -> BlockScheme:
    progression = definition.get("progression") or {}
    scheme = progression.get("scheme") if isinstance(progression, dict) else None
    if not isinstance(scheme, list) or not scheme:
        scheme = DEFAULT_SCHEME
    return BlockScheme.from_dict(scheme[week_in_cycle(week, len(scheme))])


def generate(inp: GeneratorInput) -> list[PlannedExercise]:
    if inp.target:
        lifts = [normalize_target(inp.target)]
    else:
        lifts = definition_targets(inp.definition, DEFAULT_LIFTS)

    block = _week_scheme(inp.definition, inp.context.week)
    exercises = []
    for i, lift in enumerate(lifts):
        tm = training_max_kg(inp, lift)
        exercises.append(main_exercise(inp, lift, percent_sets(inp, tm, block.rows()), inp.order_base + i, tm))
    return exercises
