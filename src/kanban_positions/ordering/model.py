"""Value types shared by the calculator, rebalancer and reconciler."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional, Union


# ---------------------------------------------------------------------------
# Items
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class PositionedItem:
    """The only part of a task the ordering core sees."""

    id: str
    position: int


@dataclass(frozen=True)
class PositionUpdate:
    """One ``{id, position}`` pair produced by a rebalance."""

    id: str
    position: int

    def to_dict(self) -> dict[str, Any]:
        return {"task_id": self.id, "position": self.position}


@dataclass(frozen=True)
class Placement:
    """Result of a calculator call.

    ``degraded`` is set when the neighbors were too close (or too close to
    the edge of the key space) for a comfortable placement; the column is
    then due for a rebalance.
    """

    position: int
    degraded: bool = False


class ColumnHealth(str, Enum):
    """Per-column state of the ordering key space."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"


# ---------------------------------------------------------------------------
# Drop events
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DropEvent:
    """What the drag layer reports when an item is released.

    Parameters
    ----------
    item_id:
        The dragged item.
    target_status:
        Column under the drop point.
    target_index:
        Slot in the target column with the dragged item removed.  ``None``
        means the end of the column.
    onto_column:
        True when the item was released on the column body rather than on
        a specific sibling.
    """

    item_id: str
    target_status: str
    target_index: Optional[int] = None
    onto_column: bool = False


# ---------------------------------------------------------------------------
# Mutations
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class NoOp:
    item_id: str

    kind = "noop"

    def to_dict(self) -> dict[str, Any]:
        return {"kind": self.kind, "item_id": self.item_id}


@dataclass(frozen=True)
class StatusChange:
    """Item dropped on another column's body; it lands at the given position."""

    item_id: str
    new_status: str
    new_position: int
    rebalance_due: bool = False

    kind = "status_change"

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "item_id": self.item_id,
            "new_status": self.new_status,
            "new_position": self.new_position,
            "rebalance_due": self.rebalance_due,
        }


@dataclass(frozen=True)
class Reposition:
    """Item dropped at a specific slot, possibly in another column."""

    item_id: str
    new_position: int
    new_status: Optional[str] = None
    rebalance_due: bool = False

    kind = "reposition"

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "item_id": self.item_id,
            "new_status": self.new_status,
            "new_position": self.new_position,
            "rebalance_due": self.rebalance_due,
        }


@dataclass(frozen=True)
class Rebalance:
    """No point position was left; the whole target column is re-spaced.

    ``updates`` already contains the dragged item at its new slot.
    """

    item_id: str
    updates: tuple[PositionUpdate, ...] = field(default_factory=tuple)
    new_status: Optional[str] = None

    kind = "rebalance"

    @property
    def new_position(self) -> int:
        for update in self.updates:
            if update.id == self.item_id:
                return update.position
        raise KeyError(self.item_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "kind": self.kind,
            "item_id": self.item_id,
            "new_status": self.new_status,
            "new_position": self.new_position,
            "updates": [u.to_dict() for u in self.updates],
        }


Mutation = Union[NoOp, StatusChange, Reposition, Rebalance]
