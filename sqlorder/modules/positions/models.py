"""Models for ordinal position management."""

from enum import Enum
from typing import List


class Direction(str, Enum):
    """Ways :meth:`PositionManager.change_pos` can move a row."""
    UP = "up"
    DOWN = "down"
    TO_FRONT = "dup"
    TO_BACK = "ddown"

    @classmethod
    def values(cls) -> List[str]:
        return [member.value for member in cls]
