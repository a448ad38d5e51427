"""API routes for workout logs."""
import logging

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from liftplan.api.routes.dependencies import get_current_user_id
from liftplan.db.database import get_db
from liftplan.schemas.workout import WorkoutLogCreate, WorkoutLogPage, WorkoutLogResponse
from liftplan.services.workouts import WorkoutService

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("", response_model=WorkoutLogResponse, status_code=status.HTTP_201_CREATED)
async def create_log(
    request: WorkoutLogCreate,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Record performed sets; linking generatedSessionId marks that session done."""
    return await WorkoutService(db).create_log(user_id, request)


@router.get("", response_model=WorkoutLogPage)
async def list_logs(
    plan_id: int | None = Query(None, alias="planId"),
    cursor: str | None = None,
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    items, next_cursor, limit = await WorkoutService(db).list_logs(
        user_id, plan_id=plan_id, cursor=cursor, limit=limit
    )
    return WorkoutLogPage(
        items=[WorkoutLogResponse.model_validate(item) for item in items],
        next_cursor=next_cursor,
        limit=limit,
    )


@router.get("/{log_id}", response_model=WorkoutLogResponse)
async def get_log(
    log_id: int,
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """One log with its sets in performed order."""
    return await WorkoutService(db).get_log(user_id, log_id)
