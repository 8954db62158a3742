"""Base database adapter and connection management."""

import logging
import threading
import time
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Generator, List, Optional, Union

import pandas as pd
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine, Connection
from sqlalchemy.exc import SQLAlchemyError

from sqlorder.config.models import DatabaseConfig, IsolationLevel
from sqlorder.db.dialects import Dialect, get_dialect
from sqlorder.exceptions import DatabaseError

logger = logging.getLogger(__name__)


class QueryResult:
    """Container for query results with metadata."""

    def __init__(
        self,
        rows: Optional[List[Dict[str, Any]]] = None,
        rows_affected: Optional[int] = None,
        execution_time: Optional[float] = None,
        columns: Optional[List[str]] = None,
        last_insert_id: Any = None,
    ) -> None:
        """Initialize query result.

        Args:
            rows: Result rows as column to value dictionaries.
            rows_affected: Number of rows affected by query.
            execution_time: Query execution time in seconds.
            columns: Column names for the result.
            last_insert_id: Driver-reported id of an inserted row, if any.
        """
        self.rows = rows or []
        self.rows_affected = rows_affected or 0
        self.execution_time = execution_time or 0.0
        self.columns = columns or []
        self.last_insert_id = last_insert_id

    @property
    def is_empty(self) -> bool:
        """Check if result is empty."""
        return not self.rows

    @property
    def row_count(self) -> int:
        """Get number of rows in result."""
        return len(self.rows)

    def first(self) -> Optional[Dict[str, Any]]:
        """Return the first row, or None for an empty result."""
        return self.rows[0] if self.rows else None

    def scalar(self) -> Any:
        """Return the first column of the first row, or None."""
        if not self.rows:
            return None
        return next(iter(self.rows[0].values()), None)

    def to_dataframe(self) -> pd.DataFrame:
        """Return the rows as a DataFrame, keeping column order."""
        return pd.DataFrame.from_records(self.rows, columns=self.columns or None)

    def to_dict(self) -> Dict[str, Any]:
        """Convert result to dictionary."""
        return {
            'rows': self.rows,
            'rows_affected': self.rows_affected,
            'execution_time': self.execution_time,
            'columns': self.columns,
            'row_count': self.row_count,
            'is_empty': self.is_empty,
        }


class BaseAdapter(ABC):
    """Base class for database adapters.

    An adapter owns one SQLAlchemy engine. Statements run on a short-lived
    connection that commits on success, unless the calling thread is inside
    :meth:`transaction`, in which case they run on that transaction's
    connection.
    """

    def __init__(self, config: DatabaseConfig) -> None:
        """Initialize database adapter.

        Args:
            config: Database configuration.
        """
        self.config = config
        self._engine: Optional[Engine] = None
        self._dialect = get_dialect(config.type)
        self._local = threading.local()

    @abstractmethod
    def build_connection_string(self) -> str:
        """Build database connection string."""
        pass

    @abstractmethod
    def get_driver_name(self) -> str:
        """Get the driver name for this adapter."""
        pass

    @property
    def dialect(self) -> Dialect:
        """Quoting rules and capabilities of this database."""
        return self._dialect

    def get_engine(self) -> Engine:
        """Get or create SQLAlchemy engine.

        Raises:
            DatabaseError: If engine creation fails.
        """
        if self._engine is None:
            try:
                connection_string = self.build_connection_string()

                engine_args = {
                    'pool_pre_ping': True,  # Validate connections before use
                    'echo': False,
                }
                engine_args.update(self._get_engine_options())

                self._engine = create_engine(connection_string, **engine_args)
                logger.debug(f"Created {self.config.type.value} engine using {self.get_driver_name()}")

            except DatabaseError:
                raise
            except Exception as e:
                raise DatabaseError(
                    f"Failed to create database engine: {e}",
                    database_type=self.config.type.value,
                ) from e

        return self._engine

    def _get_engine_options(self) -> Dict[str, Any]:
        """Get database-specific engine options."""
        return {}

    @property
    def in_transaction(self) -> bool:
        """Whether the calling thread is inside :meth:`transaction`."""
        return getattr(self._local, 'connection', None) is not None

    def _connect(self) -> Connection:
        try:
            return self.get_engine().connect()
        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Database connection error: {e}",
                database_type=self.config.type.value,
            ) from e

    @staticmethod
    def _rollback_quietly(connection: Connection) -> None:
        try:
            connection.rollback()
        except SQLAlchemyError as e:
            logger.warning(f"Rollback failed: {e}")

    @contextmanager
    def get_connection(self) -> Generator[Connection, None, None]:
        """Get database connection with automatic cleanup.

        Inside :meth:`transaction` the transaction's connection is yielded
        and left open; otherwise a new connection is committed on success,
        rolled back on error, and closed.

        Raises:
            DatabaseError: If connecting fails.
        """
        active = getattr(self._local, 'connection', None)
        if active is not None:
            yield active
            return

        connection = self._connect()
        try:
            yield connection
            connection.commit()
        except Exception:
            self._rollback_quietly(connection)
            raise
        finally:
            connection.close()

    @contextmanager
    def transaction(
        self,
        isolation_level: Optional[Union[IsolationLevel, str]] = None,
    ) -> Generator[Connection, None, None]:
        """Run the enclosed statements as one transaction.

        Commits when the block exits normally and rolls back on any
        exception, which is re-raised. A nested call joins the transaction
        already open on this thread; only the outermost block commits.

        Args:
            isolation_level: Optional isolation level for the new transaction.

        Raises:
            DatabaseError: If the database fails to begin, commit or roll back.
            ValueError: If isolation_level is not a known level.
        """
        active = getattr(self._local, 'connection', None)
        if active is not None:
            logger.debug("Joining active transaction")
            yield active
            return

        level = IsolationLevel(isolation_level).value if isolation_level is not None else None
        connection = self._connect()
        if level is not None:
            try:
                connection = connection.execution_options(isolation_level=level)
            except SQLAlchemyError as e:
                connection.close()
                raise DatabaseError(
                    f"Isolation level {level} is not supported: {e}",
                    database_type=self.config.type.value,
                ) from e

        self._local.connection = connection
        try:
            logger.debug("Beginning transaction")
            with connection.begin():
                yield connection
            logger.debug("Transaction committed")
        except SQLAlchemyError as e:
            logger.error(f"Transaction rolled back due to database error: {e}")
            raise DatabaseError(
                f"Transaction failed: {e}",
                database_type=self.config.type.value,
            ) from e
        except Exception:
            logger.error("Transaction rolled back due to error")
            raise
        finally:
            self._local.connection = None
            connection.close()

    def test_connection(self) -> bool:
        """Test database connection.

        Raises:
            DatabaseError: If connection test fails.
        """
        try:
            with self.get_connection() as conn:
                result = conn.execute(text("SELECT 1 AS test"))
                result.fetchone()
                return True

        except DatabaseError:
            raise
        except Exception as e:
            raise DatabaseError(
                f"Connection test failed: {e}",
                database_type=self.config.type.value,
            ) from e

    def execute_query(
        self,
        query: str,
        params: Optional[Dict[str, Any]] = None,
    ) -> QueryResult:
        """Execute SQL query and return results.

        Args:
            query: SQL query string with ``:name`` placeholders.
            params: Query parameters keyed by placeholder name.

        Returns:
            QueryResult instance.

        Raises:
            DatabaseError: If query execution fails.
        """
        start_time = time.time()

        try:
            with self.get_connection() as conn:
                result = conn.execute(text(query), params or {})
                execution_time = time.time() - start_time
                logger.debug(f"Executed query in {execution_time:.4f}s: {query[:120]}")

                if result.returns_rows:
                    columns = list(result.keys())
                    rows = [dict(row._mapping) for row in result.fetchall()]
                    return QueryResult(
                        rows=rows,
                        rows_affected=len(rows),
                        execution_time=execution_time,
                        columns=columns,
                    )

                rows_affected = result.rowcount if result.rowcount >= 0 else 0
                last_insert_id = None
                if query.lstrip().upper().startswith("INSERT"):
                    last_insert_id = result.lastrowid
                return QueryResult(
                    rows_affected=rows_affected,
                    execution_time=execution_time,
                    last_insert_id=last_insert_id,
                )

        except SQLAlchemyError as e:
            execution_time = time.time() - start_time
            logger.error(f"Query execution failed after {execution_time:.2f}s: {query[:120]}")
            raise DatabaseError(
                f"Query execution failed after {execution_time:.2f}s: {e}",
                database_type=self.config.type.value,
                details={'query': query, 'params': params or {}},
            ) from e

    def get_table_names(self, schema: Optional[str] = None) -> List[str]:
        """Get list of table names in the database or schema."""
        try:
            with self.get_connection() as conn:
                return sorted(inspect(conn).get_table_names(schema=schema))
        except SQLAlchemyError as e:
            raise DatabaseError(
                f"Failed to list tables: {e}",
                database_type=self.config.type.value,
            ) from e

    def close(self) -> None:
        """Close database connections and cleanup resources."""
        if self._engine:
            self._engine.dispose()
            self._engine = None
