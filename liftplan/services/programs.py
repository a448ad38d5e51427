"""
ProgramService - catalogue of program templates and their append-only versions.
"""

import logging
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from liftplan.core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from liftplan.core.transactions import transactional
from liftplan.models import ProgramTemplate, ProgramVersion
from liftplan.models.enums import Visibility
from liftplan.repositories import ProgramRepository
from liftplan.schemas.program import TemplateCreate
from liftplan.services.session_generator import normalize_kind
from liftplan.services.progressions import GENERATORS

logger = logging.getLogger(__name__)


def validate_definition(definition: dict[str, Any]) -> None:
    kind = normalize_kind(definition.get("kind"))
    if kind not in GENERATORS:
        raise ValidationError(
            "definition",
            f"kind must be one of {sorted(GENERATORS)}",
            details={"field": "definition.kind", "kind": definition.get("kind")},
        )


def can_read(template: ProgramTemplate, user_id: str) -> bool:
    return Visibility(template.visibility) == Visibility.PUBLIC or template.owner_user_id == user_id


class ProgramService:
    """Create, version and fork program templates."""

    def __init__(self, db: AsyncSession):
        self._session = db
        self._programs = ProgramRepository(db)

    async def _readable_template(self, slug: str, user_id: str) -> ProgramTemplate:
        template = await self._programs.get_template_by_slug(slug)
        if template is None or not can_read(template, user_id):
            raise NotFoundError("template", details={"slug": slug})
        return template

    @transactional
    async def create_template(
        self, user_id: str, request: TemplateCreate
    ) -> tuple[ProgramTemplate, ProgramVersion]:
        """Create a template together with its version 1.

        Raises:
            ConflictError: if the slug is taken
            ValidationError: if the definition kind is not generatable
        """
        validate_definition(request.definition)
        if await self._programs.get_template_by_slug(request.slug) is not None:
            raise ConflictError(f"Template slug '{request.slug}' already exists", code="CF_TEMPLATE_SLUG")

        template = await self._programs.add_template(
            ProgramTemplate(
                slug=request.slug,
                name=request.name,
                type=request.type,
                visibility=request.visibility,
                owner_user_id=user_id,
                description=request.description,
                tags=list(request.tags),
            )
        )
        version = await self._programs.add_version(
            ProgramVersion(
                template=template,
                version=1,
                definition=request.definition,
                defaults=request.defaults,
                changelog=request.changelog,
            )
        )
        logger.info("Created template %s (id=%s)", template.slug, template.id)
        return template, version

    @transactional
    async def create_version(
        self,
        slug: str,
        user_id: str,
        base_version_id: int | None = None,
        definition: dict[str, Any] | None = None,
        defaults: dict[str, Any] | None = None,
        changelog: str | None = None,
    ) -> ProgramVersion:
        """Append the next version, inheriting unspecified fields from the base.

        The base is ``base_version_id`` when given, otherwise the latest version.
        """
        template = await self._programs.get_template_by_slug(slug)
        if template is None:
            raise NotFoundError("template", details={"slug": slug})
        if Visibility(template.visibility) == Visibility.PRIVATE and template.owner_user_id != user_id:
            raise AuthorizationError(f"Template '{slug}' is private")

        if base_version_id is not None:
            base = await self._programs.get(base_version_id)
            if base is None:
                raise NotFoundError("program_version", details={"id": base_version_id})
            if base.template_id != template.id:
                raise ValidationError("base_version_id", f"version {base_version_id} belongs to another template")
        else:
            base = await self._programs.get_latest_version(template.id)

        new_definition = definition if definition is not None else (base.definition if base else None)
        if new_definition is None:
            raise ValidationError("definition", "required for the first version")
        validate_definition(new_definition)

        version = await self._programs.add_version(
            ProgramVersion(
                template=template,
                version=await self._programs.next_version_number(template.id),
                parent_version_id=base.id if base else None,
                definition=new_definition,
                defaults=defaults if defaults is not None else (base.defaults if base else {}),
                changelog=changelog or (f"Derived from v{base.version}" if base else None),
            )
        )
        logger.info("Created %s version %s", slug, version.version)
        return version

    @transactional
    async def fork_template(
        self,
        slug: str,
        user_id: str,
        new_slug: str | None = None,
        new_name: str | None = None,
    ) -> tuple[ProgramTemplate, ProgramVersion, ProgramVersion]:
        """Copy a template into a PRIVATE one owned by the user.

        Returns (fork template, fork version 1, source version).
        """
        source = await self._readable_template(slug, user_id)
        source_version = await self._programs.get_latest_version(source.id)
        if source_version is None:
            raise NotFoundError("program_version", f"Template '{slug}' has no versions")

        fork_slug = new_slug or f"{source.slug}-{user_id}".lower()
        if await self._programs.get_template_by_slug(fork_slug) is not None:
            raise ConflictError(f"Template slug '{fork_slug}' already exists", code="CF_TEMPLATE_SLUG")

        fork = await self._programs.add_template(
            ProgramTemplate(
                slug=fork_slug,
                name=new_name or f"{source.name} (fork)",
                type=source.type,
                visibility=Visibility.PRIVATE,
                owner_user_id=user_id,
                parent_template_id=source.id,
                description=source.description,
                tags=list(source.tags or []),
            )
        )
        version = await self._programs.add_version(
            ProgramVersion(
                template=fork,
                version=1,
                parent_version_id=source_version.id,
                definition=source_version.definition,
                defaults=source_version.defaults,
                changelog=f"Forked from {source.slug} v{source_version.version}",
            )
        )
        logger.info("Forked template %s into %s", source.slug, fork.slug)
        return fork, version, source_version

    async def list_templates(self, user_id: str) -> list[ProgramTemplate]:
        return await self._programs.list_templates(user_id)

    async def get_version(self, version_id: int, user_id: str) -> ProgramVersion:
        version = await self._programs.get(version_id)
        if version is None or (version.template is not None and not can_read(version.template, user_id)):
            raise NotFoundError("program_version", details={"id": version_id})
        return version
