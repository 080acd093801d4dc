"""Provide the public `kanban_positions` package exports."""

from __future__ import annotations

from .ordering import (
    DropEvent,
    PositionedItem,
    calculate_new_position,
    needs_rebalancing,
    rebalance_positions,
    reconcile,
)

__all__ = [
    "DropEvent",
    "PositionedItem",
    "calculate_new_position",
    "needs_rebalancing",
    "rebalance_positions",
    "reconcile",
]
