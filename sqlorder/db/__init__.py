"""Database connectivity, statement rendering and row-level helpers."""

from sqlorder.db.base import BaseAdapter, QueryResult
from sqlorder.db.dialects import (
    Dialect,
    MySQLDialect,
    PostgreSQLDialect,
    SQLiteDialect,
    get_dialect,
)
from sqlorder.db.expressions import Condition, OrderBy, ParamBuilder, Where
from sqlorder.db.store import RowStore
from sqlorder.db.connection import AdapterFactory, ConnectionManager
from sqlorder.db.adapters import (
    PostgreSQLAdapter,
    MySQLAdapter,
    SQLiteAdapter,
)

__all__ = [
    # Base classes
    "BaseAdapter",
    "QueryResult",
    # Dialects
    "Dialect",
    "MySQLDialect",
    "PostgreSQLDialect",
    "SQLiteDialect",
    "get_dialect",
    # Statement building
    "Condition",
    "OrderBy",
    "ParamBuilder",
    "Where",
    # Row access
    "RowStore",
    # Connection management
    "ConnectionManager",
    "AdapterFactory",
    # Database adapters
    "PostgreSQLAdapter",
    "MySQLAdapter",
    "SQLiteAdapter",
]
