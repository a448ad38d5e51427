"""Database package."""
from liftplan.db.database import Base, get_db, init_db

__all__ = ["Base", "get_db", "init_db"]
