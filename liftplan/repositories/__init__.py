"""Repositories package."""
from liftplan.repositories.base import Repository
from liftplan.repositories.generated_session_repository import GeneratedSessionRepository
from liftplan.repositories.plan_repository import PlanRepository
from liftplan.repositories.program_repository import ProgramRepository
from liftplan.repositories.stats_cache_repository import StatsCacheRepository
from liftplan.repositories.workout_repository import SetRow, WorkoutRepository

__all__ = [
    "Repository",
    "GeneratedSessionRepository",
    "PlanRepository",
    "ProgramRepository",
    "StatsCacheRepository",
    "SetRow",
    "WorkoutRepository",
]
