from datetime import datetime
from typing import Any

from pydantic import Field

from liftplan.schemas.base import CamelModel


class WorkoutSetCreate(CamelModel):
    exercise_name: str = Field(min_length=1, max_length=200)
    sort_order: int | None = None
    set_number: int = Field(default=1, ge=1)
    reps: int | None = Field(default=None, ge=0)
    weight_kg: float | None = Field(default=None, ge=0)
    rpe: float | None = Field(default=None, ge=0, le=10)
    is_extra: bool = False
    meta: dict[str, Any] = Field(default_factory=dict)


class WorkoutLogCreate(CamelModel):
    plan_id: int | None = None
    generated_session_id: int | None = None
    performed_at: datetime | None = None
    duration_minutes: int | None = Field(default=None, ge=0)
    notes: str | None = None
    tags: list[str] | None = None
    sets: list[WorkoutSetCreate] = Field(default_factory=list)


class WorkoutSetResponse(CamelModel):
    id: int
    exercise_name: str
    sort_order: int
    set_number: int
    reps: int | None = None
    weight_kg: float | None = None
    rpe: float | None = None
    is_extra: bool
    meta: dict[str, Any]


class WorkoutLogResponse(CamelModel):
    id: int
    user_id: str
    plan_id: int | None = None
    generated_session_id: int | None = None
    performed_at: datetime
    duration_minutes: int | None = None
    notes: str | None = None
    tags: list[str] | None = None
    sets: list[WorkoutSetResponse] = Field(default_factory=list)


class WorkoutLogPage(CamelModel):
    items: list[WorkoutLogResponse]
    next_cursor: str | None = None
    limit: int
