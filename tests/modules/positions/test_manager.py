"""Tests for PositionManager against SQLite."""

from __future__ import annotations

from unittest.mock import Mock

import pytest

from sqlorder.db.expressions import OrderBy, Where
from sqlorder.exceptions import DatabaseError, PositionError
from sqlorder.modules.positions import Direction, PositionManager


def positions_by_title(store, scope=None):
    rows = store.table_list("items", scope, OrderBy.asc("id"))
    return {row["title"]: row["pos"] for row in rows}


@pytest.fixture()
def write_spy(store, monkeypatch):
    """Record every row update and increment issued through the store."""
    update = Mock(wraps=store.update)
    increment = Mock(wraps=store.increment)
    monkeypatch.setattr(store, "update", update)
    monkeypatch.setattr(store, "increment", increment)
    return Mock(update=update, increment=increment)


@pytest.fixture()
def five_items(seed_items):
    return seed_items(*[(1, title, pos) for pos, title in enumerate("abcde", start=1)])


class TestRebuild:

    def test_rebuild_produces_dense_positions(self, store, positions, seed_items) -> None:
        seed_items((1, "a", 10), (1, "b", 3), (1, "c", None), (1, "d", 3), (2, "x", 7))

        assert positions.rebuild_pos("items", {"parent_id": 1}) == 4

        scoped = store.table_list("items", {"parent_id": 1}, "pos")
        assert [row["pos"] for row in scoped] == [1, 2, 3, 4]
        # Other scopes are untouched.
        assert store.first("items", {"title": "x"})["pos"] == 7

    def test_rebuild_preserves_order_with_primary_key_tie_break(self, store, positions, seed_items) -> None:
        seed_items((1, "a", 5), (1, "b", 2), (1, "c", 5), (1, "d", 2))

        positions.rebuild_pos("items", {"parent_id": 1})

        assert positions_by_title(store) == {"b": 1, "d": 2, "a": 3, "c": 4}

    def test_rebuild_with_explicit_order(self, store, positions, seed_items) -> None:
        seed_items((1, "b", 1), (1, "c", 2), (1, "a", 3))

        positions.rebuild_pos("items", Where.eq("parent_id", 1), order="title DESC")

        assert positions_by_title(store) == {"c": 1, "b": 2, "a": 3}

    def test_rebuild_breaks_custom_order_ties_by_primary_key(self, store, positions, seed_items) -> None:
        store.query('CREATE INDEX "items_title_pos" ON "items" ("title", "pos" DESC)')
        seed_items((1, "same", 1), (1, "same", 2), (1, "same", 3))

        positions.rebuild_pos("items", {"parent_id": 1}, order="title")

        rows = store.table_list("items", order="id")
        assert [row["pos"] for row in rows] == [1, 2, 3]

    def test_rebuild_keeps_explicit_primary_key_direction(self, store, positions, seed_items) -> None:
        seed_items((1, "same", 1), (1, "same", 2), (1, "same", 3))

        positions.rebuild_pos("items", {"parent_id": 1}, order="title, id DESC")

        rows = store.table_list("items", order="id")
        assert [row["pos"] for row in rows] == [3, 2, 1]

    def test_rebuild_null_scope_value(self, store, positions, seed_items) -> None:
        seed_items((None, "a", 9), (None, "b", 4), (1, "c", 8))

        assert positions.rebuild_pos("items", {"parent_id": None}) == 2

        assert positions_by_title(store) == {"a": 2, "b": 1, "c": 8}

    def test_rebuild_empty_scope(self, positions) -> None:
        assert positions.rebuild_pos("items", {"parent_id": 42}) == 0

    def test_rebuild_custom_columns(self, store, seed_items) -> None:
        store.query('ALTER TABLE "items" ADD COLUMN "rank" INTEGER')
        seed_items((1, "a", 0), (1, "b", 0))
        positions = PositionManager(store, column="rank")

        positions.rebuild_pos("items", order="title DESC")

        ranks = {row["title"]: row["rank"] for row in store.table_list("items")}
        assert ranks == {"a": 2, "b": 1}


class TestReset:

    def test_reset_numbers_by_ascending_id(self, store, positions, seed_items) -> None:
        seed_items((1, "a", 7), (2, "b", 7), (3, "c", None), (1, "d", 1))

        assert positions.reset_pos("items", order="id ASC") == 4

        rows = store.table_list("items", order="id")
        assert [row["pos"] for row in rows] == [1, 2, 3, 4]

    def test_reset_default_order_is_primary_key(self, store, positions, seed_items) -> None:
        seed_items((1, "a", 3), (1, "b", 2), (1, "c", 1))

        positions.reset_pos("items")

        assert positions_by_title(store) == {"a": 1, "b": 2, "c": 3}

    def test_reset_with_descending_order(self, store, positions, seed_items) -> None:
        seed_items((1, "a", 0), (1, "b", 0), (1, "c", 0))

        positions.reset_pos("items", order=OrderBy.desc("id"))

        assert positions_by_title(store) == {"a": 3, "b": 2, "c": 1}

    def test_reset_empty_table(self, positions) -> None:
        assert positions.reset_pos("items") == 0

    def test_reset_breaks_custom_order_ties_by_primary_key(self, store, positions, seed_items) -> None:
        store.query('CREATE INDEX "items_parent_pos" ON "items" ("parent_id", "pos" DESC)')
        seed_items((1, "a", 1), (1, "b", 2), (2, "c", 1), (2, "d", 2))

        positions.reset_pos("items", order="parent_id")

        assert positions_by_title(store) == {"a": 1, "b": 2, "c": 3, "d": 4}


class TestMaxPos:

    def test_empty_scope_is_zero(self, positions, seed_items) -> None:
        seed_items((1, "a", 4))
        assert positions.max_pos("items", {"parent_id": 2}) == 0

    def test_all_null_is_zero(self, positions, seed_items) -> None:
        seed_items((1, "a", None))
        assert positions.max_pos("items", {"parent_id": 1}) == 0

    def test_max_within_scope(self, positions, seed_items) -> None:
        seed_items((1, "a", 4), (1, "b", 9), (2, "c", 50))
        assert positions.max_pos("items", {"parent_id": 1}) == 9
        assert positions.max_pos("items") == 50


class TestChangePosFromTo:

    def test_move_earlier_shifts_rows_between(self, store, positions, five_items) -> None:
        assert positions.change_pos_from_to("items", {"parent_id": 1}, 4, 2) is True

        assert positions_by_title(store) == {"a": 1, "b": 3, "c": 4, "d": 2, "e": 5}

    def test_move_later_shifts_rows_between(self, store, positions, five_items) -> None:
        assert positions.change_pos_from_to("items", {"parent_id": 1}, 2, 4) is True

        assert positions_by_title(store) == {"a": 1, "b": 4, "c": 2, "d": 3, "e": 5}

    def test_move_accepts_string_positions(self, store, positions, five_items) -> None:
        assert positions.change_pos_from_to("items", {"parent_id": 1}, "5", "1") is True

        assert positions_by_title(store) == {"a": 2, "b": 3, "c": 4, "d": 5, "e": 1}

    def test_move_truncates_fractional_positions(self, store, positions, five_items) -> None:
        assert positions.change_pos_from_to("items", {"parent_id": 1}, "4.7", "2") is True

        assert positions_by_title(store) == {"a": 1, "b": 3, "c": 4, "d": 2, "e": 5}

    def test_move_stays_inside_scope(self, store, positions, five_items, seed_items) -> None:
        seed_items((2, "x", 2), (2, "y", 3))

        positions.change_pos_from_to("items", {"parent_id": 1}, 4, 2)

        assert positions_by_title(store, {"parent_id": 2}) == {"x": 2, "y": 3}

    @pytest.mark.parametrize(
        "pos_from, pos_to",
        [(3, 3), (0, 2), (2, 0), (None, 2), (9, 1), ("abc", 2), (2, "x"), ("2.5", "2"), (0.5, 3)],
    )
    def test_noop_conditions_write_nothing(self, store, positions, five_items, write_spy, pos_from, pos_to) -> None:
        before = positions_by_title(store)

        assert positions.change_pos_from_to("items", {"parent_id": 1}, pos_from, pos_to) is False

        write_spy.update.assert_not_called()
        write_spy.increment.assert_not_called()
        assert positions_by_title(store) == before

    def test_missing_source_in_other_scope(self, positions, five_items, write_spy) -> None:
        assert positions.change_pos_from_to("items", {"parent_id": 2}, 1, 3) is False
        write_spy.update.assert_not_called()


class TestChangePos:

    def test_up_swaps_with_previous(self, store, positions, five_items, write_spy) -> None:
        c_id = five_items[2]

        assert positions.change_pos("items", {"parent_id": 1}, c_id, "up") is True

        assert positions_by_title(store) == {"a": 1, "b": 3, "c": 2, "d": 4, "e": 5}
        # Five renumbering writes plus the two swapped rows.
        assert write_spy.update.call_count == 7

    def test_down_swaps_with_next(self, store, positions, five_items) -> None:
        assert positions.change_pos("items", {"parent_id": 1}, five_items[2], Direction.DOWN) is True

        assert positions_by_title(store) == {"a": 1, "b": 2, "c": 4, "d": 3, "e": 5}

    def test_up_at_front_is_noop(self, store, positions, five_items, write_spy) -> None:
        before = positions_by_title(store)

        assert positions.change_pos("items", {"parent_id": 1}, five_items[0], "up") is False

        assert positions_by_title(store) == before
        assert write_spy.update.call_count == 5

    def test_down_at_back_is_noop(self, store, positions, five_items) -> None:
        before = positions_by_title(store)
        assert positions.change_pos("items", {"parent_id": 1}, five_items[4], "down") is False
        assert positions_by_title(store) == before

    def test_to_front(self, store, positions, five_items) -> None:
        assert positions.change_pos("items", {"parent_id": 1}, five_items[3], "dup") is True

        assert positions_by_title(store) == {"a": 2, "b": 3, "c": 4, "d": 1, "e": 5}

    def test_to_back(self, store, positions, five_items) -> None:
        assert positions.change_pos("items", {"parent_id": 1}, five_items[1], "ddown") is True

        assert positions_by_title(store) == {"a": 1, "b": 5, "c": 2, "d": 3, "e": 4}

    def test_rebuilds_before_moving(self, store, positions, seed_items) -> None:
        ids = seed_items((1, "a", 10), (1, "b", 20), (1, "c", 30))

        assert positions.change_pos("items", {"parent_id": 1}, ids[2], "up") is True

        assert positions_by_title(store) == {"a": 1, "b": 3, "c": 2}

    def test_missing_row(self, positions, five_items) -> None:
        assert positions.change_pos("items", {"parent_id": 1}, 999, "up") is False
        assert positions.change_pos("items", {"parent_id": 1}, 999, "dup") is False

    def test_unknown_direction_issues_no_statements(self, store, positions, five_items, monkeypatch) -> None:
        query = Mock(wraps=store.query)
        monkeypatch.setattr(store, "query", query)

        with pytest.raises(PositionError) as exc_info:
            positions.change_pos("items", {"parent_id": 1}, five_items[0], "sideways")

        assert exc_info.value.table == "items"
        query.assert_not_called()


class TestAtomicity:

    def test_failure_rolls_back_partial_renumbering(self, store, seed_items, monkeypatch) -> None:
        seed_items((1, "a", 30), (1, "b", 20), (1, "c", 10))
        positions = PositionManager(store)
        real_update = store.update
        calls = []

        def failing_update(data, table, id, primary="id"):
            calls.append(id)
            if len(calls) == 2:
                raise DatabaseError("disk full")
            return real_update(data, table, id, primary)

        monkeypatch.setattr(store, "update", failing_update)

        with pytest.raises(DatabaseError):
            positions.rebuild_pos("items", {"parent_id": 1})

        monkeypatch.undo()
        assert positions_by_title(store) == {"a": 30, "b": 20, "c": 10}

    def test_non_atomic_keeps_partial_renumbering(self, store, seed_items, monkeypatch) -> None:
        seed_items((1, "a", 30), (1, "b", 20), (1, "c", 10))
        positions = PositionManager(store, atomic=False)
        real_update = store.update
        calls = []

        def failing_update(data, table, id, primary="id"):
            calls.append(id)
            if len(calls) == 2:
                raise DatabaseError("disk full")
            return real_update(data, table, id, primary)

        monkeypatch.setattr(store, "update", failing_update)

        with pytest.raises(DatabaseError):
            positions.rebuild_pos("items", {"parent_id": 1})

        monkeypatch.undo()
        assert positions_by_title(store)["c"] == 1

    def test_operations_run_in_one_transaction(self, store, positions, five_items, monkeypatch) -> None:
        seen = []
        real_query = store.query

        def recording_query(sql, params=None):
            seen.append(store.adapter.in_transaction)
            return real_query(sql, params)

        monkeypatch.setattr(store, "query", recording_query)

        positions.change_pos("items", {"parent_id": 1}, five_items[4], "dup")

        assert seen and all(seen)
        assert not store.adapter.in_transaction

    def test_from_settings(self, store) -> None:
        from sqlorder.config.models import PositionSettings

        settings = PositionSettings(column="rank", primary="uid", atomic=False, isolation_level="SERIALIZABLE")
        positions = PositionManager.from_settings(store, settings)

        assert (positions.column, positions.primary, positions.atomic) == ("rank", "uid", False)
        assert positions.isolation_level == "SERIALIZABLE"
