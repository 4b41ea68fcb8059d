"""Database infrastructure for SQLite persistence."""

from src.infrastructure.database.connection import (
    Database,
    get_database,
    init_database,
)
from src.infrastructure.database.timestamps import from_db, to_db, utc_now

__all__ = [
    "Database",
    "from_db",
    "get_database",
    "init_database",
    "to_db",
    "utc_now",
]
