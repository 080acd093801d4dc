"""Ordered-position management for board columns.

The functions here are pure: they compute ordering keys and mutations but
never touch storage.  Persisting the result is the caller's job (see
:mod:`kanban_positions.task_engine`).
"""

from __future__ import annotations

from .calculator import (
    calculate_new_position,
    calculate_position,
    calculate_position_for_index,
)
from .config import (
    DEFAULT_CONFIG,
    DEFAULT_GAP,
    MAX_POSITION,
    MIN_POSITION,
    REBALANCE_THRESHOLD,
    PositionConfig,
)
from .errors import (
    InvalidNeighborOrder,
    OrderingError,
    PositionSpaceExhausted,
    StaleColumnError,
    UnknownItem,
)
from .model import (
    ColumnHealth,
    DropEvent,
    Mutation,
    NoOp,
    Placement,
    PositionedItem,
    PositionUpdate,
    Rebalance,
    Reposition,
    StatusChange,
)
from .rebalancer import column_health, needs_rebalancing, rebalance_positions, spread_positions
from .reconciler import drop_order, reconcile

__all__ = [
    "ColumnHealth",
    "DEFAULT_CONFIG",
    "DEFAULT_GAP",
    "DropEvent",
    "InvalidNeighborOrder",
    "MAX_POSITION",
    "MIN_POSITION",
    "Mutation",
    "NoOp",
    "OrderingError",
    "Placement",
    "PositionConfig",
    "PositionSpaceExhausted",
    "PositionUpdate",
    "PositionedItem",
    "REBALANCE_THRESHOLD",
    "Rebalance",
    "Reposition",
    "StaleColumnError",
    "StatusChange",
    "UnknownItem",
    "calculate_new_position",
    "calculate_position",
    "calculate_position_for_index",
    "column_health",
    "drop_order",
    "needs_rebalancing",
    "rebalance_positions",
    "reconcile",
    "spread_positions",
]
