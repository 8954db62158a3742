"""Maintain a dense integer ordering column across scoped rows."""

import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional, Union

from ...config.models import IsolationLevel, PositionSettings
from ...db.expressions import OrderBy, ParamBuilder, Where, compile_where
from ...db.store import Filter, Ordering, RowStore
from ...exceptions import PositionError
from .models import Direction

logger = logging.getLogger(__name__)


def _as_position(value: Any) -> int:
    """Coerce a caller-supplied position to an int.

    Missing or unparseable values count as unset (0); numeric strings such as
    ``"2.5"`` are truncated.
    """
    if value is None or value == "":
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        pass
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0


class PositionManager:
    """Reads, renumbers and reorders the position column of a table.

    Every operation works on a *scope*: the rows matched by an optional
    filter. After :meth:`rebuild_pos` the scope holds positions 1..N in the
    requested order. Moves shift neighbouring rows so the scope stays dense.

    With ``atomic`` enabled (the default) each public operation runs in a
    single transaction, so a failure part way through leaves the table as
    it was. With ``atomic`` disabled statements commit one by one and a
    failure can leave a partial renumbering behind; run :meth:`rebuild_pos`
    afterwards to restore density.
    """

    def __init__(
        self,
        store: RowStore,
        column: str = "pos",
        primary: str = "id",
        atomic: bool = True,
        isolation_level: Optional[Union[IsolationLevel, str]] = None,
    ) -> None:
        """Initialize the manager.

        Args:
            store: Row store for the database holding the managed tables.
            column: Default position column.
            primary: Default primary key column.
            atomic: Wrap each operation in one transaction.
            isolation_level: Isolation level for those transactions.
        """
        self.store = store
        self.column = column
        self.primary = primary
        self.atomic = atomic
        self.isolation_level = isolation_level

    @classmethod
    def from_settings(cls, store: RowStore, settings: PositionSettings) -> "PositionManager":
        return cls(
            store,
            column=settings.column,
            primary=settings.primary,
            atomic=settings.atomic,
            isolation_level=settings.isolation_level,
        )

    @contextmanager
    def _unit_of_work(self) -> Iterator[None]:
        if self.atomic:
            with self.store.transaction(self.isolation_level):
                yield
        else:
            yield

    def _default_order(self, column: str, primary: str) -> OrderBy:
        return OrderBy.asc(column, primary)

    @staticmethod
    def _tie_broken(order: Ordering, primary: str) -> Optional[OrderBy]:
        """Coerce ``order`` and append ``primary ASC`` unless it already sorts by the key."""
        ordering = OrderBy.coerce(order)
        if not ordering:
            return None
        if any(column == primary for column, _ in ordering.terms):
            return ordering
        return ordering.then(primary)

    # ------------------------------------------------------------------
    # Renumbering
    # ------------------------------------------------------------------

    def rebuild_pos(
        self,
        table: str,
        scope: Filter = None,
        order: Ordering = None,
        column: Optional[str] = None,
        primary: Optional[str] = None,
    ) -> int:
        """Renumber the scope as 1..N.

        Args:
            table: Table holding the rows.
            scope: Filter selecting the rows to renumber; None for the whole table.
            order: Order defining the new positions. Defaults to the
                position column, then the primary key, ascending.
                Rows tied under a given order fall back to the primary key
                ascending.
            column: Position column, overriding the manager default.
            primary: Primary key column, overriding the manager default.

        Returns:
            Number of rows renumbered.
        """
        column = column or self.column
        primary = primary or self.primary
        ordering = self._tie_broken(order, primary) or self._default_order(column, primary)

        with self._unit_of_work():
            count = self._renumber(table, Where.coerce(scope), ordering, column, primary)

        logger.info(f"Rebuilt {column} for {count} row(s) in {table}")
        return count

    def reset_pos(
        self,
        table: str,
        order: Ordering = None,
        column: Optional[str] = None,
        primary: Optional[str] = None,
    ) -> int:
        """Renumber every row of ``table`` as 1..N, ignoring scopes.

        ``order`` defaults to the primary key ascending; ties under any other
        order are broken by the primary key.

        Returns:
            Number of rows renumbered.
        """
        column = column or self.column
        primary = primary or self.primary
        ordering = self._tie_broken(order, primary) or OrderBy.asc(primary)

        with self._unit_of_work():
            count = self._renumber(table, None, ordering, column, primary)

        logger.info(f"Reset {column} for all {count} row(s) in {table}")
        return count

    def _renumber(
        self,
        table: str,
        where: Optional[Where],
        ordering: OrderBy,
        column: str,
        primary: str,
    ) -> int:
        rows = self.store.table_list(table, where, ordering, columns=[primary])
        position = 0
        for row in rows:
            position += 1
            self.store.update({column: position}, table, row[primary], primary)
        return position

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def max_pos(self, table: str, scope: Filter = None, column: Optional[str] = None) -> int:
        """Highest position in the scope, or 0 when it has no positioned rows."""
        column = column or self.column
        params = ParamBuilder()
        sql = (
            f"SELECT MAX({self.store.escape_identifier(column)}) "
            f"FROM {self.store.escape_identifier(table)}"
            f"{compile_where(Where.coerce(scope), self.store.dialect, params)}"
        )
        value = self.store.fetch_scalar(sql, params.values)
        return int(value) if value is not None else 0

    # ------------------------------------------------------------------
    # Moves
    # ------------------------------------------------------------------

    def change_pos_from_to(
        self,
        table: str,
        scope: Filter,
        pos_from: Any,
        pos_to: Any,
        column: Optional[str] = None,
        primary: Optional[str] = None,
    ) -> bool:
        """Move the row at ``pos_from`` to ``pos_to`` within the scope.

        Rows between the two positions shift by one to make room. Position 0
        means "unset" and is never a valid endpoint.

        Returns:
            False, without writing anything, when the positions are equal,
            either is 0, or no row in the scope sits at ``pos_from``;
            otherwise True.
        """
        column = column or self.column
        primary = primary or self.primary
        pos_from = _as_position(pos_from)
        pos_to = _as_position(pos_to)

        if pos_from == pos_to or pos_from == 0 or pos_to == 0:
            return False

        where = Where.coerce(scope)
        with self._unit_of_work():
            row = self.store.first(table, Where.all_of(where, Where.eq(column, pos_from)), columns=[primary])
            if row is None:
                logger.debug(f"No row at {column}={pos_from} in {table}; nothing to move")
                return False

            if pos_from > pos_to:
                between = Where.all_of(where, Where.ge(column, pos_to), Where.lt(column, pos_from))
                self.store.increment(table, column, 1, between)
            else:
                between = Where.all_of(where, Where.gt(column, pos_from), Where.le(column, pos_to))
                self.store.increment(table, column, -1, between)

            self.store.update({column: pos_to}, table, row[primary], primary)

        logger.info(f"Moved {table} row {row[primary]} from {column}={pos_from} to {pos_to}")
        return True

    def change_pos(
        self,
        table: str,
        scope: Filter,
        id: Any,
        direction: Union[Direction, str],
        order: Ordering = None,
        column: Optional[str] = None,
        primary: Optional[str] = None,
    ) -> bool:
        """Move one row within its scope.

        The scope is rebuilt first (using ``order``) so positions are dense.
        Then, by ``direction``:

        * ``up`` / ``down`` swap the row with its neighbour at position
          p-1 / p+1, if there is one;
        * ``dup`` sends the row to the front and ``ddown`` to the back, after
          which the scope is rebuilt by position.

        Returns:
            True when the row moved, False when there was nothing to do.

        Raises:
            PositionError: If ``direction`` is not one of the four above.
        """
        try:
            direction = Direction(direction)
        except ValueError:
            raise PositionError(
                f"Unknown direction {direction!r}; expected one of {Direction.values()}",
                table=table,
            ) from None

        column = column or self.column
        primary = primary or self.primary
        where = Where.coerce(scope)
        ordering = self._tie_broken(order, primary) or self._default_order(column, primary)
        by_position = self._default_order(column, primary)

        with self._unit_of_work():
            self._renumber(table, where, ordering, column, primary)

            if direction is Direction.TO_FRONT:
                moved = self.store.update({column: 0}, table, id, primary) > 0
                if moved:
                    self._renumber(table, where, by_position, column, primary)
            elif direction is Direction.TO_BACK:
                last = self.max_pos(table, where, column) + 1
                moved = self.store.update({column: last}, table, id, primary) > 0
                if moved:
                    self._renumber(table, where, by_position, column, primary)
            else:
                offset = -1 if direction is Direction.UP else 1
                moved = self._swap_with_neighbour(table, where, id, offset, column, primary)

        if moved:
            logger.info(f"Moved {table} row {id} {direction.name.lower()}")
        else:
            logger.debug(f"Row {id} in {table} not moved {direction.name.lower()}")
        return moved

    def _swap_with_neighbour(
        self,
        table: str,
        where: Optional[Where],
        id: Any,
        offset: int,
        column: str,
        primary: str,
    ) -> bool:
        target = self.store.row_by_id(table, id, primary)
        if target is None or target.get(column) is None:
            return False

        current = int(target[column])
        wanted = current + offset
        neighbour = self.store.first(table, Where.all_of(where, Where.eq(column, wanted)), columns=[primary])
        if neighbour is None:
            return False

        self.store.update({column: wanted}, table, target[primary], primary)
        self.store.update({column: current}, table, neighbour[primary], primary)
        return True
