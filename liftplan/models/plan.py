"""Plans, their composite modules, overrides and generated sessions."""
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum as SAEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from liftplan.db.database import Base, JSONType, utcnow
from liftplan.models.enums import OverrideScope, PlanType, SessionStatus


class Plan(Base):
    __tablename__ = "plans"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(100), nullable=False, index=True)
    name = Column(String(200), nullable=False)
    type = Column(SAEnum(PlanType, name="plan_type"), nullable=False, index=True)
    # SINGLE / MANUAL only; COMPOSITE plans delegate through modules
    root_program_version_id = Column(
        Integer,
        ForeignKey("program_versions.id", ondelete="RESTRICT"),
        nullable=True,
    )
    params = Column(JSONType, nullable=False, default=dict)
    is_archived = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    modules = relationship(
        "PlanModule",
        back_populates="plan",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="PlanModule.id",
        lazy="selectin",
    )


class PlanModule(Base):
    __tablename__ = "plan_modules"

    id = Column(Integer, primary_key=True, autoincrement=True)
    plan_id = Column(Integer, ForeignKey("plans.id", ondelete="CASCADE"), nullable=False, index=True)
    target = Column(String(50), nullable=False)
    program_version_id = Column(
        Integer,
        ForeignKey("program_versions.id", ondelete="RESTRICT"),
        nullable=False,
    )
    priority = Column(Integer, nullable=False, default=0)
    params = Column(JSONType, nullable=False, default=dict)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    plan = relationship("Plan", back_populates="modules")


class PlanOverride(Base):
    """Append-only patch layered onto generated content.

    Creation order is meaningful and is the autoincrement id, not created_at.
    """

    __tablename__ = "plan_overrides"

    id = Column(Integer, primary_key=True, autoincrement=True)
    plan_id = Column(Integer, ForeignKey("plans.id", ondelete="CASCADE"), nullable=False)
    scope = Column(SAEnum(OverrideScope, name="override_scope"), nullable=False)
    week_number = Column(Integer, nullable=True)
    session_key = Column(String(32), nullable=True)
    patch = Column(JSONType, nullable=False)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    __table_args__ = (
        Index("ix_plan_overrides_plan_scope", "plan_id", "scope"),
        Index("ix_plan_overrides_plan_week", "plan_id", "week_number"),
    )


class GeneratedSession(Base):
    """Materialized generator output; regenerating a key overwrites it."""

    __tablename__ = "generated_sessions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(100), nullable=False, index=True)
    plan_id = Column(Integer, ForeignKey("plans.id", ondelete="CASCADE"), nullable=False, index=True)
    session_key = Column(String(32), nullable=False)
    scheduled_at = Column(DateTime, nullable=True)
    status = Column(
        SAEnum(SessionStatus, name="session_status"),
        nullable=False,
        default=SessionStatus.PLANNED,
    )
    snapshot = Column(JSONType, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    __table_args__ = (
        UniqueConstraint("user_id", "plan_id", "session_key", name="uq_generated_session_identity"),
    )
