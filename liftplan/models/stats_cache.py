from sqlalchemy import Column, DateTime, Integer, String, UniqueConstraint

from liftplan.db.database import Base, JSONType, utcnow


class StatsCacheEntry(Base):
    """Derived aggregate payload; safe to delete and repopulate at any time."""

    __tablename__ = "stats_cache"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(100), nullable=False, index=True)
    metric = Column(String(64), nullable=False)
    params_hash = Column(String(64), nullable=False)
    payload = Column(JSONType, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, index=True)

    __table_args__ = (
        UniqueConstraint("user_id", "metric", "params_hash", name="uq_stats_cache_user_metric_params"),
    )
