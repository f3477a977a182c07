from chairtime.db.base import Base
from chairtime.db.session import engine, SessionLocal
from chairtime.db.tables import ALL_TABLE_NAMES

__all__ = ["engine", "SessionLocal", "Base", "ALL_TABLE_NAMES"]
