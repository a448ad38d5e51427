"""API routes for stored generated sessions."""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from liftplan.api.routes.dependencies import get_current_user_id
from liftplan.db.database import get_db
from liftplan.schemas.plan import GeneratedSessionResponse
from liftplan.services.generation import SessionGenerationService

router = APIRouter()


@router.get("", response_model=list[GeneratedSessionResponse])
async def list_generated_sessions(
    plan_id: int | None = Query(None, alias="planId"),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Most recently (re)generated sessions first."""
    return await SessionGenerationService(db).list_recent(user_id, plan_id, limit)
