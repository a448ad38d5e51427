from fastapi import APIRouter, HTTPException
from fastapi.responses import Response
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from liftplan.config.settings import get_settings
from liftplan.core.logging import get_logger
from liftplan.core.metrics import get_metrics
from liftplan.db import database

logger = get_logger(__name__)
router = APIRouter()


@router.get("/metrics", include_in_schema=False)
async def prometheus_metrics():
    try:
        metrics_data = get_metrics()
        return Response(
            content=metrics_data,
            media_type="text/plain; version=0.0.4; charset=utf-8"
        )
    except Exception as e:
        logger.error("Failed to generate metrics", exc_info=e)
        raise HTTPException(status_code=500, detail="Failed to generate metrics")


@router.get("/health", include_in_schema=False)
async def health_check():
    return {"status": "healthy", "app": get_settings().app_name}


@router.get("/health/db", include_in_schema=False)
async def database_health_check():
    try:
        async with database.engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return {"status": "healthy", "database": "connected"}
    except SQLAlchemyError as e:
        logger.error("Database health check failed", exc_info=e)
        return {"status": "unhealthy", "database": "disconnected", "error": str(e)}
