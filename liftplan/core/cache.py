"""Content-addressed cache for expensive aggregate stats.

Entries live in the stats_cache table keyed by (user_id, metric,
params_hash), where params_hash is the SHA-256 of a key-order independent
serialization of the query parameters. The cache is best-effort: a failing
read or write is logged and the value is computed directly.
"""
import hashlib
import json
from contextlib import asynccontextmanager
from datetime import date, datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any, Awaitable, Callable, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from liftplan.core.logging import get_logger
from liftplan.core.metrics import stats_cache_errors, stats_cache_hits, stats_cache_misses
from liftplan.db.database import utcnow
from liftplan.repositories.stats_cache_repository import StatsCacheRepository

logger = get_logger(__name__)

T = TypeVar('T')


def stable_serialize(value: Any) -> str:
    """Serialize to JSON with recursively sorted keys.

    Two mappings holding the same items in different insertion order
    serialize identically. Dates become ISO strings, tuples and sets become
    lists (sets sorted by their serialized form).
    """
    if value is None:
        return "null"
    if isinstance(value, Enum):
        return stable_serialize(value.value)
    if isinstance(value, (datetime, date)):
        return json.dumps(value.isoformat())
    if isinstance(value, Decimal):
        return json.dumps(str(value))
    if isinstance(value, dict):
        items = sorted(((str(k), v) for k, v in value.items()), key=lambda kv: kv[0])
        return "{" + ",".join(f"{json.dumps(k)}:{stable_serialize(v)}" for k, v in items) + "}"
    if isinstance(value, (set, frozenset)):
        return "[" + ",".join(sorted(stable_serialize(v) for v in value)) + "]"
    if isinstance(value, (list, tuple)):
        return "[" + ",".join(stable_serialize(v) for v in value) + "]"
    return json.dumps(value)


def hash_params(params: dict[str, Any]) -> str:
    return hashlib.sha256(stable_serialize(params).encode()).hexdigest()


class StatsCache:
    """Memoizes pure stats computations per user, metric and params."""

    def __init__(self, session: AsyncSession, enabled: bool = True):
        self._session = session
        self._repo = StatsCacheRepository(session)
        self.enabled = enabled

    @asynccontextmanager
    async def _guard(self):
        # A savepoint keeps a failed cache statement from poisoning the
        # surrounding PostgreSQL transaction.
        if self._session.get_bind().dialect.name == "postgresql":
            async with self._session.begin_nested():
                yield
        else:
            yield

    async def get(self, user_id: str, metric: str, params: dict[str, Any], max_age_seconds: int | None = None) -> Any | None:
        params_hash = hash_params(params)
        try:
            async with self._guard():
                entry = await self._repo.find(user_id, metric, params_hash)
        except SQLAlchemyError as e:
            stats_cache_errors.labels(operation="read").inc()
            logger.warning("stats_cache_read_failed", metric=metric, user_id=user_id, error=str(e))
            return None

        if entry is None:
            return None
        if max_age_seconds and max_age_seconds > 0:
            if entry.updated_at < utcnow() - timedelta(seconds=max_age_seconds):
                return None
        return entry.payload

    async def set(self, user_id: str, metric: str, params: dict[str, Any], payload: Any) -> None:
        params_hash = hash_params(params)
        try:
            async with self._guard():
                await self._repo.upsert(user_id, metric, params_hash, payload)
        except SQLAlchemyError as e:
            stats_cache_errors.labels(operation="write").inc()
            logger.warning("stats_cache_write_failed", metric=metric, user_id=user_id, error=str(e))

    async def get_or_compute(
        self,
        user_id: str,
        metric: str,
        params: dict[str, Any],
        compute: Callable[[], Awaitable[T]],
        max_age_seconds: int | None = None,
    ) -> T:
        """Return the cached payload, or compute, store and return it."""
        if not self.enabled:
            return await compute()

        cached = await self.get(user_id, metric, params, max_age_seconds)
        if cached is not None:
            stats_cache_hits.labels(metric=metric).inc()
            return cached

        stats_cache_misses.labels(metric=metric).inc()
        payload = await compute()
        await self.set(user_id, metric, params, payload)
        return payload

    async def invalidate(self, user_id: str) -> int:
        """Drop every cached payload of the user; call after any log mutation."""
        removed = await self._repo.delete_for_user(user_id)
        logger.debug("stats_cache_invalidated", user_id=user_id, removed=removed)
        return removed
