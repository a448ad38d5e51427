from datetime import date, datetime
from typing import Any

from pydantic import Field

from liftplan.models.enums import OverrideScope, PlanType, SessionStatus
from liftplan.schemas.base import CamelModel


class PlanModuleCreate(CamelModel):
    target: str = Field(min_length=1, max_length=50)
    program_version_id: int
    priority: int = 0
    params: dict[str, Any] = Field(default_factory=dict)


class PlanCreate(CamelModel):
    name: str = Field(min_length=1, max_length=200)
    type: PlanType
    root_program_version_id: int | None = None
    params: dict[str, Any] = Field(default_factory=dict)
    modules: list[PlanModuleCreate] = Field(default_factory=list)


class PlanModuleResponse(CamelModel):
    id: int
    target: str
    program_version_id: int
    priority: int
    params: dict[str, Any]


class PlanResponse(CamelModel):
    id: int
    user_id: str
    name: str
    type: PlanType
    root_program_version_id: int | None = None
    params: dict[str, Any]
    is_archived: bool
    modules: list[PlanModuleResponse] = Field(default_factory=list)
    created_at: datetime


class OverrideCreate(CamelModel):
    scope: OverrideScope
    week_number: int | None = Field(default=None, ge=1)
    session_key: str | None = Field(default=None, min_length=1, max_length=32)
    patch: dict[str, Any]
    note: str | None = None


class OverrideResponse(CamelModel):
    id: int
    plan_id: int
    scope: OverrideScope
    week_number: int | None = None
    session_key: str | None = None
    patch: dict[str, Any]
    note: str | None = None
    created_at: datetime


class GenerateRequest(CamelModel):
    week: int | None = Field(default=None, ge=1)
    day: int | None = Field(default=None, ge=1)
    session_date: date | None = None
    timezone: str | None = None


class GeneratedSessionResponse(CamelModel):
    id: int
    user_id: str
    plan_id: int
    session_key: str
    status: SessionStatus
    snapshot: dict[str, Any]
    created_at: datetime
    updated_at: datetime


class GenerateResponse(CamelModel):
    session: GeneratedSessionResponse
    warnings: list[dict[str, Any]] = Field(default_factory=list)
