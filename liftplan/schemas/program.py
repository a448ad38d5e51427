from datetime import datetime
from typing import Any

from pydantic import Field

from liftplan.models.enums import ProgramType, Visibility
from liftplan.schemas.base import CamelModel


class TemplateCreate(CamelModel):
    slug: str = Field(min_length=1, max_length=120, pattern=r"^[a-z0-9][a-z0-9\-_.]*$")
    name: str = Field(min_length=1, max_length=200)
    type: ProgramType
    visibility: Visibility = Visibility.PUBLIC
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    definition: dict[str, Any]
    defaults: dict[str, Any] = Field(default_factory=dict)
    changelog: str | None = None


class VersionCreate(CamelModel):
    base_version_id: int | None = None
    definition: dict[str, Any] | None = None
    defaults: dict[str, Any] | None = None
    changelog: str | None = None


class ForkRequest(CamelModel):
    new_slug: str | None = Field(default=None, max_length=120)
    new_name: str | None = Field(default=None, max_length=200)


class ProgramVersionResponse(CamelModel):
    id: int
    template_id: int
    version: int
    parent_version_id: int | None = None
    definition: dict[str, Any]
    defaults: dict[str, Any]
    changelog: str | None = None
    is_deprecated: bool = False
    created_at: datetime


class ProgramTemplateResponse(CamelModel):
    id: int
    slug: str
    name: str
    type: ProgramType
    visibility: Visibility
    owner_user_id: str | None = None
    parent_template_id: int | None = None
    description: str | None = None
    tags: list[str] = Field(default_factory=list)
    created_at: datetime


class TemplateWithVersionResponse(CamelModel):
    template: ProgramTemplateResponse
    version: ProgramVersionResponse


class ForkResponse(TemplateWithVersionResponse):
    source_template_id: int
    source_version_id: int
