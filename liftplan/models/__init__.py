"""ORM models."""
from liftplan.models.enums import (
    ExerciseRole,
    OverrideScope,
    PlanType,
    ProgramType,
    SessionKeyMode,
    SessionStatus,
    Visibility,
    VolumeBucket,
)
from liftplan.models.plan import GeneratedSession, Plan, PlanModule, PlanOverride
from liftplan.models.program import ProgramTemplate, ProgramVersion
from liftplan.models.stats_cache import StatsCacheEntry
from liftplan.models.workout import WorkoutLog, WorkoutSet

__all__ = [
    "ExerciseRole",
    "OverrideScope",
    "PlanType",
    "ProgramType",
    "SessionKeyMode",
    "SessionStatus",
    "Visibility",
    "VolumeBucket",
    "GeneratedSession",
    "Plan",
    "PlanModule",
    "PlanOverride",
    "ProgramTemplate",
    "ProgramVersion",
    "StatsCacheEntry",
    "WorkoutLog",
    "WorkoutSet",
]
