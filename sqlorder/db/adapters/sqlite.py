"""SQLite database adapter."""

from pathlib import Path
from typing import Any, Dict

from sqlalchemy.pool import StaticPool

from sqlorder.config.models import DatabaseConfig
from sqlorder.db.base import BaseAdapter
from sqlorder.exceptions import DatabaseError

MEMORY_PATH = ":memory:"


class SQLiteAdapter(BaseAdapter):
    """SQLite database adapter."""

    def __init__(self, config: DatabaseConfig) -> None:
        """Initialize SQLite adapter."""
        super().__init__(config)

        if not self.config.path:
            raise DatabaseError("SQLite requires a database file path", database_type="sqlite")

    @property
    def is_memory(self) -> bool:
        return self.config.path == MEMORY_PATH

    def get_driver_name(self) -> str:
        """Get the driver name for SQLite."""
        return "sqlite"

    def build_connection_string(self) -> str:
        """Build SQLite connection string.

        Relative paths are resolved against the working directory and the
        parent directory is created when missing.
        """
        if self.is_memory:
            return "sqlite://"

        db_path = Path(self.config.path)
        if not db_path.is_absolute():
            db_path = Path.cwd() / db_path

        db_path.parent.mkdir(parents=True, exist_ok=True)

        return f"sqlite:///{db_path}"

    def _get_engine_options(self) -> Dict[str, Any]:
        """Get SQLite-specific engine options."""
        options: Dict[str, Any] = {
            'connect_args': {
                'check_same_thread': False,
                'timeout': self.config.options.get('timeout', 30),
            }
        }
        if self.is_memory:
            # Every connection must see the same in-memory database.
            options['poolclass'] = StaticPool
        return options
