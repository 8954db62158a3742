"""Row-level convenience operations over a database adapter.

The :class:`RowStore` treats every table as a collection of flat rows
(``dict`` of column name to value) keyed by a primary key column. It is the
collaborator the position manager talks to: statements are rendered with
the adapter's dialect, identifiers are quoted, and values are always bound
as parameters.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

from sqlalchemy import literal

from sqlorder.config.models import IsolationLevel
from sqlorder.db.base import BaseAdapter, QueryResult
from sqlorder.db.dialects import Dialect
from sqlorder.db.expressions import OrderBy, ParamBuilder, Where, compile_where
from sqlorder.exceptions import QueryError

logger = logging.getLogger(__name__)

Filter = Union[Where, Mapping[str, Any], None]
Ordering = Union[OrderBy, str, None]


class RowStore:
    """CRUD helpers for flat rows on one database."""

    def __init__(self, adapter: BaseAdapter) -> None:
        self.adapter = adapter
        self._last_insert_id: Any = 0

    @property
    def dialect(self) -> Dialect:
        return self.adapter.dialect

    def transaction(self, isolation_level: Optional[Union[IsolationLevel, str]] = None):
        """Context manager grouping store calls into one transaction."""
        return self.adapter.transaction(isolation_level)

    # ------------------------------------------------------------------
    # Raw statements
    # ------------------------------------------------------------------

    def query(self, sql: str, params: Optional[Dict[str, Any]] = None) -> QueryResult:
        """Execute any statement with ``:name`` placeholders."""
        return self.adapter.execute_query(sql, params)

    def fetch_all(self, sql: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        return self.query(sql, params).rows

    def fetch_one(self, sql: str, params: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        return self.query(sql, params).first()

    def fetch_scalar(self, sql: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self.query(sql, params).scalar()

    # ------------------------------------------------------------------
    # Quoting
    # ------------------------------------------------------------------

    def quote(self, value: Any) -> str:
        """Render ``value`` as a SQL literal for this database.

        Only for statements that cannot take bind parameters; prefer
        passing values through ``params``.
        """
        if value is None:
            return "NULL"
        if not isinstance(value, (str, int, float, Decimal)):
            value = str(value)
        compiled = literal(value).compile(
            dialect=self.dialect.sqlalchemy_dialect(),
            compile_kwargs={"literal_binds": True},
        )
        return str(compiled)

    def escape_identifier(self, name: str) -> str:
        """Quote a table or column name for this database."""
        return self.dialect.quote_identifier(name)

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    def insert(
        self,
        data: Mapping[str, Any],
        table: str,
        ignore: bool = False,
        primary: str = "id",
    ) -> Any:
        """Insert one row and return its primary key.

        Args:
            data: Column name to value mapping; ``None`` is stored as NULL.
            table: Target table.
            ignore: Skip rows that violate a unique constraint instead of failing.
            primary: Primary key column, used for RETURNING where supported.

        Returns:
            The new row's key, or 0 when nothing was inserted.
        """
        if not data:
            return 0

        q = self.escape_identifier
        params = ParamBuilder()
        columns = ", ".join(q(column) for column in data)
        values = ", ".join(params.add(value) for value in data.values())

        sql = (
            f"{self.dialect.insert_prefix(ignore)} {q(table)} ({columns}) "
            f"VALUES ({values}){self.dialect.insert_suffix(ignore)}"
        )
        if self.dialect.supports_returning:
            sql += f" RETURNING {q(primary)}"

        result = self.query(sql, params.values)
        if self.dialect.supports_returning:
            new_id = result.scalar()
        elif result.rows_affected == 0:
            new_id = None
        else:
            new_id = result.last_insert_id

        self._last_insert_id = new_id if new_id is not None else 0
        logger.debug(f"Inserted row into {table} (id={self._last_insert_id})")
        return self._last_insert_id

    def last_insert_id(self) -> Any:
        """Key produced by the most recent :meth:`insert`, or 0."""
        return self._last_insert_id

    def update(
        self,
        data: Mapping[str, Any],
        table: str,
        id: Any,
        primary: str = "id",
    ) -> int:
        """Update the row whose ``primary`` equals ``id``.

        Returns:
            Number of rows affected; 0 without touching the database when
            ``data`` is empty.
        """
        if not data:
            return 0

        params = ParamBuilder()
        assignments = self._assignments(data, params)
        key = params.add(id)
        sql = (
            f"UPDATE {self.escape_identifier(table)} SET {assignments} "
            f"WHERE {self.escape_identifier(primary)} = {key}{self.dialect.single_row_limit()}"
        )
        return self.query(sql, params.values).rows_affected

    def update_where(self, data: Mapping[str, Any], table: str, where: Filter) -> int:
        """Update every row matching ``where``.

        Raises:
            QueryError: If ``where`` is empty.
        """
        condition = Where.coerce(where)
        if not condition:
            raise QueryError("Refusing to perform UPDATE with no filters")
        if not data:
            return 0

        params = ParamBuilder()
        assignments = self._assignments(data, params)
        sql = (
            f"UPDATE {self.escape_identifier(table)} SET {assignments}"
            f"{compile_where(condition, self.dialect, params)}"
        )
        return self.query(sql, params.values).rows_affected

    def increment(self, table: str, column: str, amount: int, where: Filter = None) -> int:
        """Add ``amount`` to ``column`` for every row matching ``where``."""
        params = ParamBuilder()
        col = self.escape_identifier(column)
        sql = (
            f"UPDATE {self.escape_identifier(table)} SET {col} = {col} + {params.add(amount)}"
            f"{compile_where(Where.coerce(where), self.dialect, params)}"
        )
        return self.query(sql, params.values).rows_affected

    def delete_by_id(
        self,
        table: str,
        id: Any,
        virtual: bool = False,
        del_column: str = "is_del",
        primary: str = "id",
    ) -> int:
        """Delete one row by key, or flag it deleted when ``virtual``."""
        params = ParamBuilder()
        key = params.add(id)
        target = self.escape_identifier(table)
        condition = f"{self.escape_identifier(primary)} = {key}"

        if virtual:
            sql = f"UPDATE {target} SET {self.escape_identifier(del_column)} = 1 WHERE {condition}"
        else:
            sql = f"DELETE FROM {target} WHERE {condition}"
        sql += self.dialect.single_row_limit()

        return self.query(sql, params.values).rows_affected

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def row_by_id(self, table: str, id: Any, primary: str = "id") -> Optional[Dict[str, Any]]:
        """Return the row whose ``primary`` equals ``id``, or None."""
        return self.first(table, Where.eq(primary, id))

    def table_list(
        self,
        table: str,
        where: Filter = None,
        order: Ordering = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        columns: Optional[Sequence[str]] = None,
    ) -> List[Dict[str, Any]]:
        """Select rows with optional filter, ordering and paging."""
        params = ParamBuilder()
        sql = self._select(table, where, order, limit, offset, columns, params)
        return self.fetch_all(sql, params.values)

    def first(
        self,
        table: str,
        where: Filter = None,
        order: Ordering = None,
        columns: Optional[Sequence[str]] = None,
    ) -> Optional[Dict[str, Any]]:
        """Return the first matching row, or None."""
        rows = self.table_list(table, where, order, limit=1, columns=columns)
        return rows[0] if rows else None

    def count(self, table: str, where: Filter = None) -> int:
        params = ParamBuilder()
        sql = (
            f"SELECT COUNT(*) FROM {self.escape_identifier(table)}"
            f"{compile_where(Where.coerce(where), self.dialect, params)}"
        )
        return int(self.fetch_scalar(sql, params.values) or 0)

    # ------------------------------------------------------------------
    # SQL rendering
    # ------------------------------------------------------------------

    def _assignments(self, data: Mapping[str, Any], params: ParamBuilder) -> str:
        return ", ".join(
            f"{self.escape_identifier(column)} = {params.add(value)}"
            for column, value in data.items()
        )

    def _select(
        self,
        table: str,
        where: Filter,
        order: Ordering,
        limit: Optional[int],
        offset: Optional[int],
        columns: Optional[Sequence[str]],
        params: ParamBuilder,
    ) -> str:
        selected = ", ".join(self.escape_identifier(c) for c in columns) if columns else "*"
        sql = f"SELECT {selected} FROM {self.escape_identifier(table)}"
        sql += compile_where(Where.coerce(where), self.dialect, params)

        ordering = OrderBy.coerce(order)
        if ordering:
            sql += f" ORDER BY {ordering.compile(self.dialect)}"
        if limit is not None:
            sql += f" LIMIT {int(limit)}"
            if offset:
                sql += f" OFFSET {int(offset)}"
        elif offset:
            raise QueryError("OFFSET requires LIMIT")
        return sql
