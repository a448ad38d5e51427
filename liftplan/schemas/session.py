"""In-memory session types produced by the generator and patched by overrides."""
from typing import Any

from pydantic import Field

from liftplan.models.enums import ExerciseRole, SessionKeyMode
from liftplan.schemas.base import CamelModel

SNAPSHOT_SCHEMA_VERSION = 4


class SessionContext(CamelModel):
    week: int
    day: int
    session_date: str
    session_key: str
    timezone: str
    key_mode: SessionKeyMode = SessionKeyMode.LEGACY


class PlannedSet(CamelModel):
    set_number: int
    reps: int | None = None
    weight_kg: float | None = None
    percent: float | None = None
    rpe: float | None = None
    note: str | None = None


class PlannedExercise(CamelModel):
    exercise_name: str
    role: ExerciseRole = ExerciseRole.MAIN
    sets: list[PlannedSet] = Field(default_factory=list)
    source_target: str | None = None
    order: int = 0
    is_extra: bool = False
    meta: dict[str, Any] = Field(default_factory=dict)


class SessionDraft(CamelModel):
    """A session before persistence: generated exercises plus applied patches."""

    context: SessionContext
    plan: dict[str, Any] = Field(default_factory=dict)
    programs: list[dict[str, Any]] = Field(default_factory=list)
    exercises: list[PlannedExercise] = Field(default_factory=list)
    overrides_applied: list[dict[str, Any]] = Field(default_factory=list)
    warnings: list[dict[str, Any]] = Field(default_factory=list)

    def flat_sets(self) -> list[dict[str, Any]]:
        """Ordered set rows: exercise order first, then set number."""
        rows = []
        for exercise in self.exercises:
            for planned in exercise.sets:
                rows.append({
                    "exerciseName": exercise.exercise_name,
                    "setNumber": planned.set_number,
                    "reps": planned.reps,
                    "weightKg": planned.weight_kg,
                    "rpe": planned.rpe,
                    "isExtra": exercise.is_extra,
                    "meta": {
                        **exercise.meta,
                        **({"percent": planned.percent} if planned.percent is not None else {}),
                        **({"note": planned.note} if planned.note else {}),
                    },
                })
        return rows

    def to_snapshot(self) -> dict[str, Any]:
        """JSON document stored on GeneratedSession.snapshot.

        Contains nothing time-varying, so regenerating identical inputs
        produces an identical document.
        """
        body = self.model_dump(mode="json", by_alias=True, exclude_none=True)
        context = body.pop("context")
        return {
            "schemaVersion": SNAPSHOT_SCHEMA_VERSION,
            **context,
            **body,
            "sets": self.flat_sets(),
        }
