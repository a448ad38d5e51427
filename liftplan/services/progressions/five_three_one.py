"""Wendler 5/3/1: one main lift per day on a four-week wave."""
from typing import Any

from liftplan.schemas.session import PlannedExercise
from liftplan.services.progressions.base import (
    BlockScheme,
    GeneratorInput,
    SetScheme,
    definition_targets,
    main_exercise,
    normalize_target,
    percent_sets,
    training_max_kg,
    week_in_cycle,
)

DEFAULT_LIFTS = ["SQUAT", "BENCH", "DEADLIFT", "OHP"]

DEFAULT_WEEKS: list[list[dict[str, Any]]] = [
    [{"reps": 5, "percent": 0.65}, {"reps": 5, "percent": 0.75}, {"reps": 5, "percent": 0.85, "note": "5+"}],
    [{"reps": 3, "percent": 0.70}, {"reps": 3, "percent": 0.80}, {"reps": 3, "percent": 0.90, "note": "3+"}],
    [{"reps": 5, "percent": 0.75}, {"reps": 3, "percent": 0.85}, {"reps": 1, "percent": 0.95, "note": "1+"}],
    [{"reps": 5, "percent": 0.40}, {"reps": 5, "percent": 0.50}, {"reps": 5, "percent": 0.60, "note": "deload"}],
]


def _week_rows(definition: dict[str, Any], week: int) -> list[SetScheme]:
    weeks = definition.get("weeks")
    if not isinstance(weeks, list) or not weeks:
        weeks = DEFAULT_WEEKS
    return [SetScheme.from_dict(row) for row in weeks[week_in_cycle(week, len(weeks))]]


def generate(inp: GeneratorInput) -> list[PlannedExercise]:
    definition = inp.definition
    ctx = inp.context
    if inp.target:
        lift = normalize_target(inp.target)
    else:
        lifts = definition_targets(definition, DEFAULT_LIFTS)
        lift = lifts[(ctx.day - 1) % len(lifts)]

    tm = training_max_kg(inp, lift)
    rows = _week_rows(definition, ctx.week)

    # Deload weeks skip supplemental work
    supplemental = definition.get("supplemental")
    if isinstance(supplemental, dict) and not any(row.note == "deload" for row in rows):
        rows = rows + BlockScheme.from_dict({**supplemental, "note": supplemental.get("note", "supplemental")}).rows()

    sets = percent_sets(inp, tm, rows)
    return [main_exercise(inp, lift, sets, inp.order_base, tm)]
