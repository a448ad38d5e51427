"""Program templates and their append-only versions."""
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from liftplan.db.database import Base, JSONType, utcnow
from liftplan.models.enums import ProgramType, Visibility


class ProgramTemplate(Base):
    """A named family of training logic, e.g. 5/3/1 or Operator.

    Forks are PRIVATE templates owned by a user, pointing back at the
    source through parent_template_id.
    """

    __tablename__ = "program_templates"

    id = Column(Integer, primary_key=True, autoincrement=True)
    slug = Column(String(120), nullable=False, unique=True, index=True)
    name = Column(String(200), nullable=False)
    type = Column(SAEnum(ProgramType, name="program_type"), nullable=False, index=True)
    visibility = Column(
        SAEnum(Visibility, name="visibility_type"),
        nullable=False,
        default=Visibility.PUBLIC,
    )
    owner_user_id = Column(String(100), nullable=True, index=True)
    parent_template_id = Column(Integer, nullable=True)
    description = Column(Text, nullable=True)
    tags = Column(JSONType, nullable=False, default=list)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow)

    versions = relationship(
        "ProgramVersion",
        back_populates="template",
        order_by="ProgramVersion.version",
        cascade="all, delete-orphan",
    )


class ProgramVersion(Base):
    """Immutable, numbered definition snapshot of a template.

    definition["kind"] selects the generation algorithm; defaults holds the
    parameters plans start from (training maxes, tmPercent, ...).
    """

    __tablename__ = "program_versions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    template_id = Column(
        Integer,
        ForeignKey("program_templates.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    version = Column(Integer, nullable=False)
    changelog = Column(Text, nullable=True)
    parent_version_id = Column(Integer, nullable=True)
    definition = Column(JSONType, nullable=False)
    defaults = Column(JSONType, nullable=False, default=dict)
    is_deprecated = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    template = relationship("ProgramTemplate", back_populates="versions", lazy="joined")

    __table_args__ = (
        UniqueConstraint("template_id", "version", name="uq_program_version_template_version"),
    )
