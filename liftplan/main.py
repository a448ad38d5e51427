"""Main FastAPI application."""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError

from liftplan.config.settings import get_settings
from liftplan.core.error_handlers import domain_error_handler, request_validation_handler
from liftplan.core.exceptions import DomainError
from liftplan.core.logging import configure_logging, get_logger
from liftplan.db.database import close_engine, init_db
from liftplan.middleware import RequestIDMiddleware

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    configure_logging()
    await init_db()
    logger.info("startup_complete", app=get_settings().app_name)
    yield
    await close_engine()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Workout plans from versioned program templates, with overrides, logs and stats",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_middleware(RequestIDMiddleware)
    app.add_exception_handler(DomainError, domain_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)

    from liftplan.api.routes import (
        generated_sessions_router,
        health_router,
        logs_router,
        plans_router,
        program_versions_router,
        stats_router,
        templates_router,
    )

    app.include_router(health_router, tags=["Health"])
    app.include_router(templates_router, prefix="/templates", tags=["Templates"])
    app.include_router(program_versions_router, prefix="/program-versions", tags=["Templates"])
    app.include_router(plans_router, prefix="/plans", tags=["Plans"])
    app.include_router(generated_sessions_router, prefix="/generated-sessions", tags=["Sessions"])
    app.include_router(logs_router, prefix="/logs", tags=["Logging"])
    app.include_router(stats_router, prefix="/stats", tags=["Stats"])

    return app


# Create app instance
app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("liftplan.main:app", host="0.0.0.0", port=8000, reload=True)
