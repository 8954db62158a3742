"""Database adapters for different database types."""

from sqlorder.db.adapters.postgresql import PostgreSQLAdapter
from sqlorder.db.adapters.mysql import MySQLAdapter
from sqlorder.db.adapters.sqlite import SQLiteAdapter

__all__ = [
    "PostgreSQLAdapter",
    "MySQLAdapter",
    "SQLiteAdapter",
]
