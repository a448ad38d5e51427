from __future__ import annotations
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from liftplan.models.plan import Plan, PlanModule, PlanOverride
from liftplan.repositories.base import Repository


class PlanRepository(Repository[Plan, int]):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get(self, id: int) -> Plan | None:
        result = await self._session.execute(
            select(Plan).where(Plan.id == id)
        )
        return result.scalar_one_or_none()

    async def list_by_user(self, user_id: str, include_archived: bool = False) -> list[Plan]:
        query = select(Plan).where(Plan.user_id == user_id)
        if not include_archived:
            query = query.where(Plan.is_archived.is_(False))
        result = await self._session.execute(query.order_by(Plan.created_at.desc(), Plan.id.desc()))
        return list(result.scalars().all())

    async def create(self, plan: Plan, modules: list[PlanModule]) -> Plan:
        plan.modules = modules
        self._session.add(plan)
        await self._session.flush()
        return plan

    async def list_overrides(self, plan_id: int) -> list[PlanOverride]:
        """All overrides of a plan in creation order."""
        result = await self._session.execute(
            select(PlanOverride)
            .where(PlanOverride.plan_id == plan_id)
            .order_by(PlanOverride.id)
        )
        return list(result.scalars().all())

    async def add_override(self, override: PlanOverride) -> PlanOverride:
        self._session.add(override)
        await self._session.flush()
        return override

    async def names_by_id(self, ids: list[int]) -> dict[int, str]:
        if not ids:
            return {}
        result = await self._session.execute(
            select(Plan.id, Plan.name).where(Plan.id.in_(set(ids)))
        )
        return {row[0]: row[1] for row in result.all()}
