"""Error types raised by the ordering core.

All of them are caller contract violations or exhausted key space; none
are transient, so nothing here is retried.
"""

from __future__ import annotations

from typing import Optional


class OrderingError(ValueError):
    """Base class for ordering failures."""


class InvalidNeighborOrder(OrderingError):
    """``prev >= next`` was handed to the position calculator."""

    def __init__(self, prev: int, next_: int) -> None:
        super().__init__(f"Neighbor positions out of order: prev={prev} next={next_}")
        self.prev = prev
        self.next = next_


class PositionSpaceExhausted(OrderingError):
    """No legal position is left; the column must be re-spaced first."""


class UnknownItem(OrderingError):
    """A drop event references an item that is not on the board."""

    def __init__(self, item_id: str) -> None:
        super().__init__(f"Item {item_id} not found in any column")
        self.item_id = item_id


class StaleColumnError(OrderingError):
    """The caller's view of a column is older than the stored one."""

    def __init__(self, status: str, expected: Optional[int], actual: int) -> None:
        super().__init__(
            f"Column {status} changed since it was read (expected version {expected}, found {actual})"
        )
        self.status = status
        self.expected = expected
        self.actual = actual
