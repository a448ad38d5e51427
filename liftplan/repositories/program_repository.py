from __future__ import annotations
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_, func
from liftplan.models.enums import Visibility
from liftplan.models.program import ProgramTemplate, ProgramVersion
from liftplan.repositories.base import Repository


class ProgramRepository(Repository[ProgramVersion, int]):
    """Read/append access to templates and their versions."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get(self, id: int) -> ProgramVersion | None:
        result = await self._session.execute(
            select(ProgramVersion).where(ProgramVersion.id == id)
        )
        return result.unique().scalar_one_or_none()

    async def get_versions(self, ids: list[int]) -> dict[int, ProgramVersion]:
        if not ids:
            return {}
        result = await self._session.execute(
            select(ProgramVersion).where(ProgramVersion.id.in_(set(ids)))
        )
        return {v.id: v for v in result.unique().scalars().all()}

    async def get_template_by_slug(self, slug: str) -> ProgramTemplate | None:
        result = await self._session.execute(
            select(ProgramTemplate).where(ProgramTemplate.slug == slug)
        )
        return result.scalar_one_or_none()

    async def get_latest_version(self, template_id: int) -> ProgramVersion | None:
        result = await self._session.execute(
            select(ProgramVersion)
            .where(ProgramVersion.template_id == template_id)
            .order_by(ProgramVersion.version.desc())
            .limit(1)
        )
        return result.unique().scalar_one_or_none()

    async def next_version_number(self, template_id: int) -> int:
        result = await self._session.execute(
            select(func.max(ProgramVersion.version)).where(ProgramVersion.template_id == template_id)
        )
        return (result.scalar() or 0) + 1

    async def list_templates(self, user_id: str) -> list[ProgramTemplate]:
        result = await self._session.execute(
            select(ProgramTemplate)
            .where(
                or_(
                    ProgramTemplate.visibility == Visibility.PUBLIC,
                    ProgramTemplate.owner_user_id == user_id,
                )
            )
            .order_by(ProgramTemplate.slug)
        )
        return list(result.scalars().all())

    async def add_template(self, template: ProgramTemplate) -> ProgramTemplate:
        self._session.add(template)
        await self._session.flush()
        return template

    async def add_version(self, version: ProgramVersion) -> ProgramVersion:
        self._session.add(version)
        await self._session.flush()
        return version
