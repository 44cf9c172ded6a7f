"""Storage layer: connection pool and schema management."""

from src.storage.database import Database, close_database, get_database
from src.storage.schema import create_tables

__all__ = ["Database", "get_database", "close_database", "create_tables"]
