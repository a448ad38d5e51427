"""API routes for program templates and versions."""
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from liftplan.api.routes.dependencies import get_current_user_id
from liftplan.db.database import get_db
from liftplan.schemas.program import (
    ForkRequest,
    ForkResponse,
    ProgramTemplateResponse,
    ProgramVersionResponse,
    TemplateCreate,
    TemplateWithVersionResponse,
    VersionCreate,
)
from liftplan.services.programs import ProgramService

router = APIRouter()
versions_router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("", response_model=TemplateWithVersionResponse, status_code=status.HTTP_201_CREATED)
async def create_template(
    request: TemplateCreate,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Create a template and its version 1."""
    template, version = await ProgramService(db).create_template(user_id, request)
    return TemplateWithVersionResponse(
        template=ProgramTemplateResponse.model_validate(template),
        version=ProgramVersionResponse.model_validate(version),
    )


@router.get("", response_model=list[ProgramTemplateResponse])
async def list_templates(
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Public templates plus the caller's private ones."""
    return await ProgramService(db).list_templates(user_id)


@router.post("/{slug}/versions", response_model=ProgramVersionResponse, status_code=status.HTTP_201_CREATED)
async def create_version(
    slug: str,
    request: VersionCreate,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return await ProgramService(db).create_version(
        slug,
        user_id,
        base_version_id=request.base_version_id,
        definition=request.definition,
        defaults=request.defaults,
        changelog=request.changelog,
    )


@router.post("/{slug}/fork", response_model=ForkResponse, status_code=status.HTTP_201_CREATED)
async def fork_template(
    slug: str,
    request: ForkRequest | None = None,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Copy a template into a private one owned by the caller."""
    request = request or ForkRequest()
    template, version, source_version = await ProgramService(db).fork_template(
        slug, user_id, new_slug=request.new_slug, new_name=request.new_name
    )
    return ForkResponse(
        template=ProgramTemplateResponse.model_validate(template),
        version=ProgramVersionResponse.model_validate(version),
        source_template_id=source_version.template_id,
        source_version_id=source_version.id,
    )


@versions_router.get("/{version_id}", response_model=ProgramVersionResponse)
async def get_program_version(
    version_id: int,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return await ProgramService(db).get_version(version_id, user_id)
