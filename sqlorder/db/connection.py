"""Database connection management and adapter factory."""

import logging
import time
from typing import Any, Dict, List, Optional, Type

from sqlorder.config.models import DatabaseConfig, DatabaseType, SQLOrderConfig
from sqlorder.db.base import BaseAdapter
from sqlorder.db.adapters.postgresql import PostgreSQLAdapter
from sqlorder.db.adapters.mysql import MySQLAdapter
from sqlorder.db.adapters.sqlite import SQLiteAdapter
from sqlorder.db.store import RowStore
from sqlorder.exceptions import DatabaseError

logger = logging.getLogger(__name__)


class AdapterFactory:
    """Factory for creating database adapters."""

    _adapters: Dict[DatabaseType, Type[BaseAdapter]] = {
        DatabaseType.POSTGRESQL: PostgreSQLAdapter,
        DatabaseType.MYSQL: MySQLAdapter,
        DatabaseType.SQLITE: SQLiteAdapter,
    }

    @classmethod
    def create_adapter(cls, config: DatabaseConfig) -> BaseAdapter:
        """Create a database adapter based on configuration.

        Raises:
            DatabaseError: If database type is not supported.
        """
        adapter_class = cls._adapters.get(config.type)
        if not adapter_class:
            supported_types = [db_type.value for db_type in cls._adapters]
            raise DatabaseError(
                f"Unsupported database type: {config.type}. "
                f"Supported types: {supported_types}"
            )

        return adapter_class(config)

    @classmethod
    def register_adapter(cls, db_type: DatabaseType, adapter_class: Type[BaseAdapter]) -> None:
        """Register a custom database adapter."""
        cls._adapters[db_type] = adapter_class

    @classmethod
    def get_supported_types(cls) -> List[DatabaseType]:
        """Get list of supported database types."""
        return list(cls._adapters.keys())


class ConnectionManager:
    """Creates and caches one adapter and row store per configured database.

    The manager is owned by its caller; close it with
    :meth:`close_all_connections` when done.
    """

    def __init__(self, config: SQLOrderConfig) -> None:
        self.config = config
        self._adapters: Dict[str, BaseAdapter] = {}
        self._stores: Dict[str, RowStore] = {}

    def _resolve_name(self, db_name: Optional[str]) -> str:
        name = db_name or self.config.default_database
        if not name:
            raise DatabaseError("No database specified and no default database configured")
        if name not in self.config.databases:
            available_dbs = list(self.config.databases.keys())
            raise DatabaseError(
                f"Database '{name}' not found in configuration. "
                f"Available databases: {available_dbs}"
            )
        return name

    def get_adapter(self, db_name: Optional[str] = None) -> BaseAdapter:
        """Get database adapter by name, defaulting to the default database.

        Raises:
            DatabaseError: If the database is not configured or adapter creation fails.
        """
        name = self._resolve_name(db_name)

        if name in self._adapters:
            return self._adapters[name]

        try:
            adapter = AdapterFactory.create_adapter(self.config.databases[name])
        except DatabaseError:
            raise
        except Exception as e:
            raise DatabaseError(f"Failed to create adapter for database '{name}': {e}") from e

        self._adapters[name] = adapter
        logger.debug(f"Created adapter for database '{name}'")
        return adapter

    def get_store(self, db_name: Optional[str] = None) -> RowStore:
        """Get the row store bound to a configured database."""
        name = self._resolve_name(db_name)
        if name not in self._stores:
            self._stores[name] = RowStore(self.get_adapter(name))
        return self._stores[name]

    def get_position_manager(self, db_name: Optional[str] = None, **overrides: Any):
        """Build a position manager using the configured position settings.

        Keyword overrides (``column``, ``primary``, ``atomic``,
        ``isolation_level``) replace the configured values.
        """
        from sqlorder.modules.positions import PositionManager

        settings = self.config.positions.model_copy(
            update={key: value for key, value in overrides.items() if value is not None}
        )
        return PositionManager.from_settings(self.get_store(db_name), settings)

    def test_connection(self, db_name: Optional[str] = None) -> Dict[str, Any]:
        """Test database connection.

        Returns:
            Connection test result with timing and status information.
        """
        start_time = time.time()
        name = db_name or self.config.default_database

        try:
            adapter = self.get_adapter(db_name)
            adapter.test_connection()

            return {
                'database': name,
                'status': 'success',
                'message': 'Connection successful',
                'response_time': round((time.time() - start_time) * 1000, 2),
                'driver': adapter.get_driver_name(),
                'database_type': adapter.config.type.value,
            }

        except DatabaseError as e:
            logger.warning(f"Connection test failed for '{name}': {e}")
            return {
                'database': name,
                'status': 'failed',
                'message': str(e),
                'response_time': round((time.time() - start_time) * 1000, 2),
                'error': type(e).__name__,
            }

    def test_all_connections(self) -> Dict[str, Dict[str, Any]]:
        """Test all configured database connections."""
        return {db_name: self.test_connection(db_name) for db_name in self.config.databases}

    def close_connection(self, db_name: str) -> None:
        """Close a specific database connection."""
        self._stores.pop(db_name, None)
        adapter = self._adapters.pop(db_name, None)
        if adapter is not None:
            adapter.close()

    def close_all_connections(self) -> None:
        """Close all database connections and cleanup resources."""
        for db_name in list(self._adapters):
            self.close_connection(db_name)
