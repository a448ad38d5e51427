"""API routes for aggregate training statistics."""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from liftplan.api.routes.dependencies import get_current_user_id
from liftplan.config.settings import get_settings
from liftplan.db.database import get_db
from liftplan.models.enums import VolumeBucket
from liftplan.services.stats import StatsService, parse_date_range

router = APIRouter()
settings = get_settings()


@router.get("/e1rm")
async def e1rm(
    exercise: str | None = None,
    from_: str | None = Query(None, alias="from"),
    to: str | None = None,
    days: int | None = Query(None, ge=1),
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Best Epley e1RM per day for one exercise, plus the overall best."""
    window = parse_date_range(from_, to, days, settings.stats_e1rm_default_days)
    return await StatsService(db).e1rm(user_id, exercise, window)


@router.get("/volume")
async def volume(
    exercise: str | None = None,
    compare_prev: bool = Query(False, alias="comparePrev"),
    from_: str | None = Query(None, alias="from"),
    to: str | None = None,
    days: int | None = Query(None, ge=1),
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    window = parse_date_range(from_, to, days, settings.stats_volume_default_days)
    return await StatsService(db).volume(user_id, window, exercise, compare_prev)


@router.get("/volume-series")
async def volume_series(
    bucket: VolumeBucket = VolumeBucket.WEEK,
    exercise: str | None = None,
    per_exercise: bool = Query(False, alias="perExercise"),
    max_exercises: int = Query(12, alias="maxExercises", ge=1, le=40),
    from_: str | None = Query(None, alias="from"),
    to: str | None = None,
    days: int | None = Query(None, ge=1),
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Tonnage, reps and set counts per day / week / month bucket."""
    window = parse_date_range(from_, to, days, settings.stats_volume_series_default_days)
    return await StatsService(db).volume_series(user_id, window, bucket, exercise, per_exercise, max_exercises)


@router.get("/prs")
async def prs(
    exercise: str | None = None,
    limit: int = Query(20, ge=1, le=100),
    from_: str | None = Query(None, alias="from"),
    to: str | None = None,
    days: int | None = Query(None, ge=1),
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    window = parse_date_range(from_, to, days, settings.stats_prs_default_days)
    return await StatsService(db).prs(user_id, window, exercise, limit)


@router.get("/compliance")
async def compliance(
    plan_id: int | None = Query(None, alias="planId"),
    compare_prev: bool = Query(False, alias="comparePrev"),
    from_: str | None = Query(None, alias="from"),
    to: str | None = None,
    days: int | None = Query(None, ge=1),
    db: AsyncSession = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Share of planned sessions in the window that have a linked log."""
    window = parse_date_range(from_, to, days, settings.stats_compliance_default_days)
    return await StatsService(db).compliance(user_id, window, plan_id, compare_prev)
