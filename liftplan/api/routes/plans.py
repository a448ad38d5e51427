"""API routes for plans, overrides and session generation."""
import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from liftplan.api.routes.dependencies import get_current_user_id
from liftplan.db.database import get_db
from liftplan.schemas.plan import (
    GenerateRequest,
    GenerateResponse,
    GeneratedSessionResponse,
    OverrideCreate,
    OverrideResponse,
    PlanCreate,
    PlanResponse,
)
from liftplan.services.generation import SessionGenerationService
from liftplan.services.plans import PlanService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("", response_model=PlanResponse, status_code=status.HTTP_201_CREATED)
async def create_plan(
    request: PlanCreate,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """
    Create a plan.

    - SINGLE / MANUAL: requires rootProgramVersionId
    - COMPOSITE: requires at least one module {target, programVersionId, priority?, params?}
    """
    return await PlanService(db).create_plan(user_id, request)


@router.get("", response_model=list[PlanResponse])
async def list_plans(
    include_archived: bool = False,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return await PlanService(db).list_plans(user_id, include_archived)


@router.get("/{plan_id}", response_model=PlanResponse)
async def get_plan(
    plan_id: int,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return await PlanService(db).get_plan(plan_id, user_id)


@router.post("/{plan_id}/overrides", response_model=OverrideResponse, status_code=status.HTTP_201_CREATED)
async def add_override(
    plan_id: int,
    request: OverrideCreate,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return await PlanService(db).add_override(plan_id, user_id, request)


@router.get("/{plan_id}/overrides", response_model=list[OverrideResponse])
async def list_overrides(
    plan_id: int,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return await PlanService(db).list_overrides(plan_id, user_id)


@router.post("/{plan_id}/generate", response_model=GenerateResponse, status_code=status.HTTP_201_CREATED)
async def generate_session(
    plan_id: int,
    request: GenerateRequest | None = None,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """
    Generate (or regenerate) the session for a slot and store its snapshot.

    Idempotent per (plan, session key): repeated calls overwrite one row.
    """
    request = request or GenerateRequest()
    result = await SessionGenerationService(db).generate_and_save(
        user_id,
        plan_id,
        week=request.week,
        day=request.day,
        session_date=request.session_date,
        timezone=request.timezone,
    )
    logger.info("generate_session: plan_id=%s key=%s", plan_id, result.session.session_key)
    return GenerateResponse(
        session=GeneratedSessionResponse.model_validate(result.session),
        warnings=result.draft.warnings,
    )


@router.get("/{plan_id}/sessions/{session_key}", response_model=GeneratedSessionResponse)
async def get_generated_session(
    plan_id: int,
    session_key: str,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """The stored snapshot for one session key, as last generated."""
    return await SessionGenerationService(db).get_session(user_id, plan_id, session_key)
