"""MySQL database adapter."""

from typing import Any, Dict
from urllib.parse import quote_plus

from sqlorder.config.models import DatabaseConfig
from sqlorder.db.base import BaseAdapter
from sqlorder.exceptions import DatabaseError


class MySQLAdapter(BaseAdapter):
    """MySQL database adapter."""

    def __init__(self, config: DatabaseConfig) -> None:
        """Initialize MySQL adapter."""
        super().__init__(config)

        if self.config.port is None:
            self.config.port = 3306

    def get_driver_name(self) -> str:
        """Get the driver name for MySQL."""
        return "pymysql"

    def build_connection_string(self) -> str:
        """Build MySQL connection string.

        Raises:
            DatabaseError: If required configuration is missing.
        """
        if not all([self.config.host, self.config.database, self.config.username]):
            raise DatabaseError("MySQL requires host, database and username", database_type="mysql")

        password_encoded = quote_plus(self.config.password or "")

        connection_string = (
            f"mysql+pymysql://{self.config.username}:{password_encoded}@"
            f"{self.config.host}:{self.config.port}/{self.config.database}"
        )

        options = {'charset': self.config.charset}
        options.update(
            (key, value) for key, value in self.config.options.items()
            if key not in ('connect_timeout', 'init_command')
        )
        option_string = "&".join(f"{k}={v}" for k, v in options.items())

        return f"{connection_string}?{option_string}"

    def _get_engine_options(self) -> Dict[str, Any]:
        """Get MySQL-specific engine options."""
        return {
            'pool_recycle': 3600,
            'connect_args': {
                'connect_timeout': self.config.options.get('connect_timeout', 10),
                'init_command': self.config.options.get(
                    'init_command', f"SET NAMES {self.config.charset}"
                ),
            }
        }
