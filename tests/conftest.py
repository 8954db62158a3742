from __future__ import annotations

from pathlib import Path

import pytest

from sqlorder.config.models import DatabaseConfig, DatabaseType
from sqlorder.db.adapters.sqlite import SQLiteAdapter
from sqlorder.db.store import RowStore
from sqlorder.modules.positions import PositionManager

ITEMS_DDL = """
CREATE TABLE items (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    parent_id INTEGER,
    title TEXT,
    pos INTEGER,
    is_del INTEGER DEFAULT 0
)
"""


@pytest.fixture()
def sqlite_adapter(tmp_path: Path) -> SQLiteAdapter:
    config = DatabaseConfig(type=DatabaseType.SQLITE, path=str(tmp_path / "items.db"))
    adapter = SQLiteAdapter(config)
    adapter.execute_query(ITEMS_DDL)
    try:
        yield adapter
    finally:
        adapter.close()


@pytest.fixture()
def store(sqlite_adapter: SQLiteAdapter) -> RowStore:
    return RowStore(sqlite_adapter)


@pytest.fixture()
def positions(store: RowStore) -> PositionManager:
    return PositionManager(store)


@pytest.fixture()
def seed_items(store: RowStore):
    """Insert rows as (parent_id, title, pos) tuples and return their ids."""

    def _seed(*rows):
        return [
            store.insert({"parent_id": parent_id, "title": title, "pos": pos}, "items")
            for parent_id, title, pos in rows
        ]

    return _seed
