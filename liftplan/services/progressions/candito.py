"""Candito linear: a lift per day from a day map, six-week linear ramp."""
from typing import Any

from liftplan.schemas.session import PlannedExercise
from liftplan.services.progressions.base import (
    BlockScheme,
    GeneratorInput,
    main_exercise,
    normalize_target,
    percent_sets,
    training_max_kg,
    week_in_cycle,
)

DEFAULT_DAY_MAP = ["SQUAT", "BENCH", "DEADLIFT", "BENCH"]

DEFAULT_SCHEME: list[dict[str, Any]] = [
    {"sets": 4, "reps": 8, "percent": 0.70, "note": "volume"},
    {"sets": 4, "reps": 6, "percent": 0.75},
    {"sets": 5, "reps": 4, "percent": 0.80, "note": "strength"},
    {"sets": 6, "reps": 3, "percent": 0.85},
    {"sets": 4, "reps": 2, "percent": 0.90, "note": "peak"},
    {"sets": 3, "reps": 1, "percent": 0.95, "note": "test prep"},
]


def _progression(definition: dict[str, Any]) -> dict[str, Any]:
    progression = definition.get("progression")
    return progression if isinstance(progression, dict) else {}


def generate(inp: GeneratorInput) -> list[PlannedExercise]:
    progression = _progression(inp.definition)
    if inp.target:
        lift = normalize_target(inp.target)
    else:
        day_map = progression.get("dayMap")
        if not isinstance(day_map, list) or not day_map:
            day_map = DEFAULT_DAY_MAP
        lift = normalize_target(day_map[(inp.context.day - 1) % len(day_map)])

    scheme = progression.get("scheme")
    if not isinstance(scheme, list) or not scheme:
        scheme = DEFAULT_SCHEME
    block = BlockScheme.from_dict(scheme[week_in_cycle(inp.context.week, len(scheme))])

    tm = training_max_kg(inp, lift)
    return [main_exercise(inp, lift, percent_sets(inp, tm, block.rows()), inp.order_base, tm)]
