"""Performed workouts and their sets."""
from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import relationship

from liftplan.db.database import Base, JSONType, utcnow


class WorkoutLog(Base):
    __tablename__ = "workout_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(100), nullable=False)
    plan_id = Column(Integer, ForeignKey("plans.id", ondelete="SET NULL"), nullable=True, index=True)
    # compliance join key back to the planned session
    generated_session_id = Column(
        Integer,
        ForeignKey("generated_sessions.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    performed_at = Column(DateTime, nullable=False, default=utcnow)
    duration_minutes = Column(Integer, nullable=True)
    notes = Column(Text, nullable=True)
    tags = Column(JSONType, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    sets = relationship(
        "WorkoutSet",
        back_populates="log",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by=lambda: [WorkoutSet.sort_order, WorkoutSet.set_number, WorkoutSet.id],
        lazy="selectin",
    )

    __table_args__ = (
        Index("ix_workout_logs_user_performed", "user_id", "performed_at"),
    )


class WorkoutSet(Base):
    __tablename__ = "workout_sets"

    id = Column(Integer, primary_key=True, autoincrement=True)
    log_id = Column(Integer, ForeignKey("workout_logs.id", ondelete="CASCADE"), nullable=False, index=True)
    exercise_name = Column(String(200), nullable=False, index=True)
    sort_order = Column(Integer, nullable=False, default=0)
    set_number = Column(Integer, nullable=False, default=1)
    reps = Column(Integer, nullable=True)
    weight_kg = Column(Float, nullable=True)
    rpe = Column(Float, nullable=True)
    is_extra = Column(Boolean, nullable=False, default=False)
    meta = Column(JSONType, nullable=False, default=dict)

    log = relationship("WorkoutLog", back_populates="sets")
