"""
Stats aggregation over performed sets and generated sessions.

The ``compute_*`` functions are pure and operate on rows already loaded from
the stores; StatsService loads the rows and memoizes each metric in the
stats cache.
"""

import logging
from collections import OrderedDict
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Iterable

from sqlalchemy.ext.asyncio import AsyncSession

from liftplan.config.settings import Settings, get_settings
from liftplan.core.cache import StatsCache
from liftplan.core.exceptions import StatsParamsError
from liftplan.db.database import utcnow
from liftplan.models import GeneratedSession
from liftplan.models.enums import VolumeBucket
from liftplan.repositories import GeneratedSessionRepository, PlanRepository, SetRow, WorkoutRepository
from liftplan.services.formulas import epley_e1rm, round1, tonnage

logger = logging.getLogger(__name__)

MAX_SERIES_EXERCISES = 40
MAX_PR_ITEMS = 100


@dataclass(frozen=True)
class DateRange:
    start: datetime
    end: datetime

    @property
    def range_days(self) -> int:
        seconds = max(1.0, (self.end - self.start).total_seconds())
        return max(1, int(-(-seconds // 86400)))

    def previous(self) -> "DateRange":
        """The window of equal length ending just before this one starts."""
        prev_end = self.start - timedelta(microseconds=1)
        return DateRange(prev_end - (self.end - self.start), prev_end)

    def as_params(self) -> dict[str, Any]:
        return {"from": self.start.isoformat(), "to": self.end.isoformat()}

    def describe(self) -> dict[str, Any]:
        return {**self.as_params(), "rangeDays": self.range_days}


def _parse_bound(raw: str | None, end_of_day: bool, field: str) -> datetime | None:
    if raw is None or not raw.strip():
        return None
    text = raw.strip()
    try:
        if len(text) == 10:
            day = date.fromisoformat(text)
            return datetime.combine(day, time.max if end_of_day else time.min)
        value = datetime.fromisoformat(text.replace("Z", "+00:00"))
    except ValueError as e:
        raise StatsParamsError(f"Invalid {field} date: {raw!r}", details={"field": field}) from e
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def parse_date_range(
    from_: str | None,
    to: str | None,
    days: int | None,
    default_days: int,
    now: datetime | None = None,
) -> DateRange:
    """
    Resolve a stats window.

    ``to`` defaults to now; ``from`` defaults to ``to - days``. Date-only
    bounds cover whole UTC days. An inverted range falls back to the default
    window ending at ``to``.
    """
    end = _parse_bound(to, True, "to") or now or utcnow()
    start = _parse_bound(from_, False, "from")
    if start is None:
        span = max(1, days) if days is not None else default_days
        start = end - timedelta(days=span)
    if start > end:
        start = end - timedelta(days=max(1, default_days))
    return DateRange(start, end)


def period_start(moment: datetime, bucket: VolumeBucket) -> str:
    day = moment.date()
    if bucket == VolumeBucket.WEEK:
        day = day - timedelta(days=day.weekday())
    elif bucket == VolumeBucket.MONTH:
        day = day.replace(day=1)
    return day.isoformat()


def _empty_totals() -> dict[str, Any]:
    return {"tonnage": 0.0, "reps": 0, "sets": 0}


def _add(totals: dict[str, Any], row: SetRow) -> None:
    totals["tonnage"] += tonnage(row.weight_kg, row.reps)
    totals["reps"] += row.reps or 0
    totals["sets"] += 1


def _finish(totals: dict[str, Any]) -> dict[str, Any]:
    return {**totals, "tonnage": round1(totals["tonnage"])}


def _point(row: SetRow) -> dict[str, Any] | None:
    if not row.weight_kg or not row.reps:
        return None
    return {
        "date": row.performed_at.date().isoformat(),
        "e1rm": epley_e1rm(row.weight_kg, row.reps),
        "weightKg": row.weight_kg,
        "reps": row.reps,
    }


def compute_e1rm(rows: Iterable[SetRow]) -> dict[str, Any]:
    """Best estimated 1RM per UTC day, ascending, plus the overall best."""
    best_by_day: dict[str, dict[str, Any]] = {}
    for row in rows:
        point = _point(row)
        if point is None:
            continue
        current = best_by_day.get(point["date"])
        if current is None or point["e1rm"] > current["e1rm"]:
            best_by_day[point["date"]] = point

    series = [best_by_day[d] for d in sorted(best_by_day)]
    best = None
    for point in series:
        if best is None or point["e1rm"] > best["e1rm"]:
            best = point
    return {"best": best, "series": series}


def compute_volume(rows: Iterable[SetRow]) -> dict[str, Any]:
    """Tonnage / reps / set counts in total and per exercise (heaviest first)."""
    totals = _empty_totals()
    by_exercise: OrderedDict[str, dict[str, Any]] = OrderedDict()
    for row in rows:
        key = row.exercise_name.strip().lower()
        entry = by_exercise.setdefault(key, {"exerciseName": row.exercise_name, **_empty_totals()})
        _add(entry, row)
        _add(totals, row)

    items = sorted((_finish(e) for e in by_exercise.values()), key=lambda e: -e["tonnage"])
    return {"totals": _finish(totals), "byExercise": items}


def compute_volume_series(
    rows: Iterable[SetRow],
    bucket: VolumeBucket,
    per_exercise: bool = False,
    max_exercises: int = 12,
) -> dict[str, Any]:
    rows = list(rows)
    series: dict[str, dict[str, Any]] = {}
    for row in rows:
        _add(series.setdefault(period_start(row.performed_at, bucket), _empty_totals()), row)

    payload: dict[str, Any] = {
        "bucket": bucket.value,
        "series": [{"period": p, **_finish(series[p])} for p in sorted(series)],
    }
    if per_exercise:
        grouped: dict[str, dict[str, Any]] = {}
        for row in rows:
            key = row.exercise_name.strip().lower()
            group = grouped.setdefault(
                key, {"exerciseName": row.exercise_name, "totals": _empty_totals(), "series": {}}
            )
            _add(group["totals"], row)
            _add(group["series"].setdefault(period_start(row.performed_at, bucket), _empty_totals()), row)

        ranked = sorted(grouped.values(), key=lambda g: -g["totals"]["tonnage"])[:max_exercises]
        payload["byExercise"] = [
            {
                "exerciseName": g["exerciseName"],
                "totals": _finish(g["totals"]),
                "series": [{"period": p, **_finish(g["series"][p])} for p in sorted(g["series"])],
            }
            for g in ranked
        ]
    return payload


def compute_prs(rows: Iterable[SetRow], limit: int = 20) -> dict[str, Any]:
    """First, best and latest e1RM per exercise; rows must be oldest first."""
    by_exercise: dict[str, dict[str, Any]] = {}
    for row in rows:
        point = _point(row)
        key = row.exercise_name.strip().lower()
        if point is None or not key:
            continue
        entry = by_exercise.get(key)
        if entry is None:
            by_exercise[key] = {
                "exerciseName": row.exercise_name,
                "first": point,
                "best": point,
                "latest": point,
            }
            continue
        if point["e1rm"] > entry["best"]["e1rm"]:
            entry["best"] = point
        latest = entry["latest"]
        if point["date"] > latest["date"] or (point["date"] == latest["date"] and point["e1rm"] >= latest["e1rm"]):
            entry["latest"] = point

    items = [
        {
            "exerciseName": e["exerciseName"],
            "best": e["best"],
            "latest": e["latest"],
            "improvement": round1(e["best"]["e1rm"] - e["first"]["e1rm"]),
        }
        for e in by_exercise.values()
    ]
    items.sort(key=lambda item: -item["best"]["e1rm"])
    return {"items": items[:limit]}


def _ratio(done: int, planned: int) -> float:
    return round(done / planned, 3) if planned > 0 else 0.0


def compute_compliance(
    planned_sessions: Iterable[GeneratedSession],
    done_session_ids: set[int],
    plan_names: dict[int, str] | None = None,
) -> dict[str, Any]:
    """
    Share of planned sessions with a linked log.

    ``planned`` counts distinct (plan, session key) pairs; ``done`` counts
    distinct planned sessions referenced by a log. The ratio is in [0, 1]
    and 0 when nothing was planned.
    """
    plan_names = plan_names or {}
    per_plan: dict[int, dict[str, Any]] = {}
    planned_keys: set[tuple[int, str]] = set()
    done_ids: set[int] = set()
    for session in planned_sessions:
        planned_keys.add((session.plan_id, session.session_key))
        bucket = per_plan.setdefault(session.plan_id, {"keys": set(), "done": set()})
        bucket["keys"].add(session.session_key)
        if session.id in done_session_ids:
            done_ids.add(session.id)
            bucket["done"].add(session.id)

    by_plan = [
        {
            "planId": plan_id,
            "planName": plan_names.get(plan_id, "Unknown plan"),
            "planned": len(bucket["keys"]),
            "done": len(bucket["done"]),
            "compliance": _ratio(len(bucket["done"]), len(bucket["keys"])),
        }
        for plan_id, bucket in per_plan.items()
    ]
    by_plan.sort(key=lambda p: (-p["planned"], -p["compliance"], p["planId"]))

    planned = len(planned_keys)
    done = len(done_ids)
    return {"planned": planned, "done": done, "compliance": _ratio(done, planned), "byPlan": by_plan}


class StatsService:
    """Cached read side over workout logs and generated sessions."""

    def __init__(self, db: AsyncSession, settings: Settings | None = None, cache: StatsCache | None = None):
        self._session = db
        self._settings = settings or get_settings()
        self._cache = cache or StatsCache(db, enabled=self._settings.stats_cache_enabled)
        self._logs = WorkoutRepository(db)
        self._generated = GeneratedSessionRepository(db)
        self._plans = PlanRepository(db)

    async def _cached(self, user_id: str, metric: str, params: dict[str, Any], compute) -> dict[str, Any]:
        return await self._cache.get_or_compute(
            user_id,
            metric,
            params,
            compute,
            max_age_seconds=self._settings.stats_cache_max_age_seconds,
        )

    async def e1rm(self, user_id: str, exercise: str | None, window: DateRange) -> dict[str, Any]:
        if not exercise or not exercise.strip():
            raise StatsParamsError("exercise is required", details={"field": "exercise"})
        name = exercise.strip()
        params = {**window.as_params(), "exercise": name.lower()}

        async def compute() -> dict[str, Any]:
            rows = await self._logs.list_set_rows(user_id, window.start, window.end, name, require_load=True)
            return {**window.describe(), "exercise": name, **compute_e1rm(rows)}

        return await self._cached(user_id, "e1rm_best", params, compute)

    async def volume(
        self,
        user_id: str,
        window: DateRange,
        exercise: str | None = None,
        compare_prev: bool = False,
    ) -> dict[str, Any]:
        name = exercise.strip() if exercise and exercise.strip() else None
        params = {**window.as_params(), "exercise": name.lower() if name else None, "comparePrev": compare_prev}

        async def compute() -> dict[str, Any]:
            rows = await self._logs.list_set_rows(user_id, window.start, window.end, name)
            payload = {**window.describe(), "exercise": name, **compute_volume(rows)}
            if compare_prev:
                prev = window.previous()
                prev_rows = await self._logs.list_set_rows(user_id, prev.start, prev.end, name)
                previous = compute_volume(prev_rows)["totals"]
                totals = payload["totals"]
                payload["previousTotals"] = previous
                payload["trend"] = {
                    "tonnageDelta": round1(totals["tonnage"] - previous["tonnage"]),
                    "repsDelta": totals["reps"] - previous["reps"],
                    "setsDelta": totals["sets"] - previous["sets"],
                }
            return payload

        return await self._cached(user_id, "volume_totals", params, compute)

    async def volume_series(
        self,
        user_id: str,
        window: DateRange,
        bucket: VolumeBucket = VolumeBucket.WEEK,
        exercise: str | None = None,
        per_exercise: bool = False,
        max_exercises: int = 12,
    ) -> dict[str, Any]:
        name = exercise.strip() if exercise and exercise.strip() else None
        max_exercises = max(1, min(max_exercises, MAX_SERIES_EXERCISES))
        params = {
            **window.as_params(),
            "bucket": bucket,
            "exercise": name.lower() if name else None,
            "perExercise": per_exercise,
            "maxExercises": max_exercises,
        }

        async def compute() -> dict[str, Any]:
            rows = await self._logs.list_set_rows(user_id, window.start, window.end, name)
            return {
                **window.describe(),
                "exercise": name,
                **compute_volume_series(rows, bucket, per_exercise, max_exercises),
            }

        return await self._cached(user_id, "volume_series", params, compute)

    async def prs(
        self,
        user_id: str,
        window: DateRange,
        exercise: str | None = None,
        limit: int = 20,
    ) -> dict[str, Any]:
        name = exercise.strip() if exercise and exercise.strip() else None
        limit = max(1, min(limit, MAX_PR_ITEMS))
        params = {**window.as_params(), "exercise": name.lower() if name else None, "limit": limit}

        async def compute() -> dict[str, Any]:
            rows = await self._logs.list_set_rows(user_id, window.start, window.end, name, require_load=True)
            return {**window.describe(), **compute_prs(rows, limit)}

        return await self._cached(user_id, "prs", params, compute)

    async def _compliance_for(self, user_id: str, window: DateRange, plan_id: int | None) -> dict[str, Any]:
        planned = await self._generated.list_planned_in_range(user_id, window.start, window.end, plan_id)
        if not planned:
            return compute_compliance([], set())
        done_ids = await self._logs.list_done_session_ids(
            user_id, window.start, window.end, [s.id for s in planned]
        )
        names = await self._plans.names_by_id(list({s.plan_id for s in planned}))
        return compute_compliance(planned, done_ids, names)

    async def compliance(
        self,
        user_id: str,
        window: DateRange,
        plan_id: int | None = None,
        compare_prev: bool = False,
    ) -> dict[str, Any]:
        params = {**window.as_params(), "planId": plan_id, "comparePrev": compare_prev}

        async def compute() -> dict[str, Any]:
            current = await self._compliance_for(user_id, window, plan_id)
            payload = {**window.describe(), "planId": plan_id, **current}
            if compare_prev:
                prev = await self._compliance_for(user_id, window.previous(), plan_id)
                payload["previous"] = {k: prev[k] for k in ("planned", "done", "compliance")}
                payload["trend"] = {
                    "complianceDelta": round(current["compliance"] - prev["compliance"], 3),
                    "doneDelta": current["done"] - prev["done"],
                }
            return payload

        return await self._cached(user_id, "compliance", params, compute)
