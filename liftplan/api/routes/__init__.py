"""API routes module."""
from liftplan.api.routes.generated_sessions import router as generated_sessions_router
from liftplan.api.routes.health import router as health_router
from liftplan.api.routes.logs import router as logs_router
from liftplan.api.routes.plans import router as plans_router
from liftplan.api.routes.stats import router as stats_router
from liftplan.api.routes.templates import router as templates_router
from liftplan.api.routes.templates import versions_router as program_versions_router

__all__ = [
    "generated_sessions_router",
    "health_router",
    "logs_router",
    "plans_router",
    "program_versions_router",
    "stats_router",
    "templates_router",
]
