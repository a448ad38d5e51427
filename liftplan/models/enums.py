"""Enumerations shared by models, schemas and the generation engine."""
from enum import Enum


class ProgramType(str, Enum):
    LOGIC = "LOGIC"
    MANUAL = "MANUAL"


class Visibility(str, Enum):
    PUBLIC = "PUBLIC"
    PRIVATE = "PRIVATE"


class PlanType(str, Enum):
    SINGLE = "SINGLE"
    COMPOSITE = "COMPOSITE"
    MANUAL = "MANUAL"


class OverrideScope(str, Enum):
    PLAN = "PLAN"
    WEEK = "WEEK"
    SESSION = "SESSION"


class SessionStatus(str, Enum):
    PLANNED = "PLANNED"
    DONE = "DONE"
    SKIPPED = "SKIPPED"


class SessionKeyMode(str, Enum):
    LEGACY = "LEGACY"
    DATE = "DATE"


class ExerciseRole(str, Enum):
    MAIN = "MAIN"
    ASSIST = "ASSIST"


class VolumeBucket(str, Enum):
    DAY = "day"
    WEEK = "week"
    MONTH = "month"
