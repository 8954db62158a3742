"""SQL dialect capabilities used when rendering statements."""

import re
from typing import Dict, Type, Union

from sqlalchemy.dialects import mysql, postgresql, sqlite
from sqlalchemy.engine import Dialect as SQLAlchemyDialect

from sqlorder.config.models import DatabaseType
from sqlorder.exceptions import QueryError

IDENTIFIER_PATTERN = re.compile(r'^[A-Za-z_][A-Za-z0-9_]*$')


def validate_identifier(identifier: str) -> str:
    """Check that ``identifier`` is a plain table or column name.

    Raises:
        QueryError: If the identifier is empty or contains unsafe characters.
    """
    if not isinstance(identifier, str) or not IDENTIFIER_PATTERN.match(identifier):
        raise QueryError(f"Invalid identifier: {identifier!r}", identifier=str(identifier))
    return identifier


class Dialect:
    """Quoting rules and statement capabilities of one database family."""

    name = "generic"
    quote_char = '"'
    supports_limit_on_update = False
    supports_returning = False

    def quote_identifier(self, identifier: str) -> str:
        """Quote a table or column name, accepting a ``schema.table`` form."""
        if not isinstance(identifier, str) or not identifier:
            raise QueryError("Identifier cannot be empty", identifier=str(identifier))
        parts = identifier.split('.')
        if len(parts) > 2:
            raise QueryError(f"Invalid identifier: {identifier!r}", identifier=identifier)
        return '.'.join(
            f"{self.quote_char}{validate_identifier(part)}{self.quote_char}" for part in parts
        )

    def single_row_limit(self) -> str:
        """Suffix restricting an UPDATE/DELETE by primary key to one row."""
        return " LIMIT 1" if self.supports_limit_on_update else ""

    def insert_prefix(self, ignore: bool = False) -> str:
        return "INSERT INTO"

    def insert_suffix(self, ignore: bool = False) -> str:
        return ""

    def sqlalchemy_dialect(self) -> SQLAlchemyDialect:
        """SQLAlchemy dialect used to render literal values."""
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class MySQLDialect(Dialect):
    name = "mysql"
    quote_char = '`'
    supports_limit_on_update = True

    def insert_prefix(self, ignore: bool = False) -> str:
        return "INSERT IGNORE INTO" if ignore else "INSERT INTO"

    def sqlalchemy_dialect(self) -> SQLAlchemyDialect:
        return mysql.dialect()


class PostgreSQLDialect(Dialect):
    name = "postgresql"
    supports_returning = True

    def insert_suffix(self, ignore: bool = False) -> str:
        return " ON CONFLICT DO NOTHING" if ignore else ""

    def sqlalchemy_dialect(self) -> SQLAlchemyDialect:
        return postgresql.dialect()


class SQLiteDialect(Dialect):
    name = "sqlite"

    def insert_prefix(self, ignore: bool = False) -> str:
        return "INSERT OR IGNORE INTO" if ignore else "INSERT INTO"

    def sqlalchemy_dialect(self) -> SQLAlchemyDialect:
        return sqlite.dialect()


_DIALECTS: Dict[DatabaseType, Type[Dialect]] = {
    DatabaseType.MYSQL: MySQLDialect,
    DatabaseType.POSTGRESQL: PostgreSQLDialect,
    DatabaseType.SQLITE: SQLiteDialect,
}


def get_dialect(db_type: Union[DatabaseType, str]) -> Dialect:
    """Return the dialect for a database type.

    Raises:
        QueryError: If the database type has no registered dialect.
    """
    try:
        return _DIALECTS[DatabaseType(db_type)]()
    except (KeyError, ValueError) as e:
        raise QueryError(f"No SQL dialect registered for database type: {db_type}") from e
