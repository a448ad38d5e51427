"""Shared dependencies for API routes."""
from liftplan.config.settings import get_settings


async def get_current_user_id() -> str:
    """Single-user deployment: every request runs as the configured user.

    Real authentication replaces this dependency; services only ever see
    the user id passed in explicitly.
    """
    return get_settings().auth_user_id
