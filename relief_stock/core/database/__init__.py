from relief_stock.core.database.session import async_session, engine, get_db
from relief_stock.core.database.base import Base, TimestampedBase, BigIntPK

__all__ = ["async_session", "engine", "get_db", "Base", "TimestampedBase", "BigIntPK"]
