"""SQLOrder: scoped row ordering and small CRUD helpers for SQL databases.

SQLOrder provides:
- A row store with parameterized insert, update, delete and listing helpers
- Position maintenance for manually ordered rows (rebuild, move, swap)
- Structured filters and orderings rendered per database dialect
- MySQL, PostgreSQL and SQLite support
- YAML-based configuration and a command line interface
"""

__version__ = "0.1.0"
__license__ = "MIT"

# Core exports
from sqlorder.exceptions import (
    SQLOrderError,
    ConfigurationError,
    DatabaseError,
    QueryError,
    PositionError,
)

__all__ = [
    "__version__",
    "SQLOrderError",
    "ConfigurationError",
    "DatabaseError",
    "QueryError",
    "PositionError",
]
