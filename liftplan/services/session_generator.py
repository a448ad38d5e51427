"""
Session generation: turn a program version plus effective params into planned work.

The generator is pure. It never reads the database or the clock except through
``build_session_context``, which pins "today" to the requested timezone.
"""

import logging
from datetime import date, datetime
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from liftplan.core.exceptions import (
    MissingContextError,
    UnsupportedDefinitionKindError,
    ValidationError,
)
from liftplan.models import ProgramVersion
from liftplan.models.enums import SessionKeyMode
from liftplan.schemas.session import PlannedExercise, SessionContext
from liftplan.services.progressions import GENERATORS, GeneratorInput

logger = logging.getLogger(__name__)

DEFAULT_SESSIONS_PER_WEEK = 7


def normalize_kind(kind: Any) -> str:
    return str(kind or "").strip().lower()


def legacy_session_key(week: int, day: int) -> str:
    return f"W{week}D{day}"


def _resolve_timezone(timezone: str | None, plan_params: dict[str, Any], default: str) -> str:
    name = timezone or plan_params.get("timezone") or default
    try:
        ZoneInfo(str(name))
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ValidationError("timezone", f"unknown timezone {name!r}") from e
    return str(name)


def _parse_date(value: Any, field: str) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = str(value).strip()
    try:
        if len(text) == 10:
            return date.fromisoformat(text)
        return datetime.fromisoformat(text).date()
    except ValueError as e:
        raise ValidationError(field, f"expected YYYY-MM-DD, got {value!r}") from e


def _sessions_per_week(plan_params: dict[str, Any]) -> int:
    schedule = plan_params.get("schedule")
    if isinstance(schedule, list) and schedule:
        return len(schedule)
    raw = plan_params.get("sessionsPerWeek")
    if isinstance(raw, int) and not isinstance(raw, bool) and raw > 0:
        return min(raw, DEFAULT_SESSIONS_PER_WEEK)
    return DEFAULT_SESSIONS_PER_WEEK


def _key_mode(plan_params: dict[str, Any]) -> SessionKeyMode:
    raw = str(plan_params.get("sessionKeyMode") or "").strip().upper()
    return SessionKeyMode.DATE if raw == SessionKeyMode.DATE.value else SessionKeyMode.LEGACY


def build_session_context(
    plan_params: dict[str, Any] | None,
    week: int | None = None,
    day: int | None = None,
    session_date: date | str | None = None,
    timezone: str | None = None,
    *,
    default_timezone: str = "UTC",
    today: date | None = None,
) -> SessionContext:
    """
    Pin week, day, date and session key for one generation request.

    Explicit week/day win. Otherwise, when the plan carries ``startDate``,
    they are derived from the session date. The session date defaults to
    today in the resolved timezone.
    """
    params = plan_params or {}
    tz = _resolve_timezone(timezone, params, default_timezone)
    resolved_date = _parse_date(session_date, "session_date")
    if resolved_date is None:
        resolved_date = today or datetime.now(ZoneInfo(tz)).date()

    if week is None or day is None:
        start = _parse_date(params.get("startDate"), "start_date")
        if start is not None:
            # Dates before the start clamp to the first session.
            delta = max(0, (resolved_date - start).days)
            per_week = _sessions_per_week(params)
            week = week if week is not None else delta // per_week + 1
            day = day if day is not None else delta % per_week + 1

    missing = [name for name, value in (("week", week), ("day", day)) if value is None]
    if missing:
        raise MissingContextError(missing)
    if week < 1 or day < 1:
        raise ValidationError("context", "week and day must be >= 1")

    mode = _key_mode(params)
    key = resolved_date.isoformat() if mode == SessionKeyMode.DATE else legacy_session_key(week, day)
    return SessionContext(
        week=week,
        day=day,
        session_date=resolved_date.isoformat(),
        session_key=key,
        timezone=tz,
        key_mode=mode,
    )


def generate(
    program_version: ProgramVersion,
    effective_params: dict[str, Any],
    context: SessionContext,
    target: str | None = None,
    *,
    order_base: int = 0,
    warnings: list[dict[str, Any]] | None = None,
    fallback_training_max_kg: float = 100.0,
    default_tm_percent: float = 0.9,
) -> list[PlannedExercise]:
    """Dispatch on ``definition.kind``; warnings are appended to ``warnings``."""
    definition = program_version.definition or {}
    kind = normalize_kind(definition.get("kind"))
    generator = GENERATORS.get(kind)
    if generator is None:
        raise UnsupportedDefinitionKindError(definition.get("kind"))

    inp = GeneratorInput(
        definition=definition,
        params=effective_params or {},
        context=context,
        target=target,
        order_base=order_base,
        fallback_training_max_kg=fallback_training_max_kg,
        default_tm_percent=default_tm_percent,
        warnings=warnings if warnings is not None else [],
    )
    exercises = generator(inp)
    logger.debug(
        f"Generated {len(exercises)} exercises",
        extra={"kind": kind, "session_key": context.session_key, "target": target},
    )
    return exercises
