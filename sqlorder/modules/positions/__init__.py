"""Ordinal position management for reorderable rows.

Tables whose rows form a user-ordered list carry an integer position column
(``pos`` by default). Positions are dense, 1..N, within a scope: the rows
matching a filter such as ``{"parent_id": 7}``.
"""

from .manager import PositionManager
from .models import Direction

__all__ = [
    "PositionManager",
    "Direction",
]
