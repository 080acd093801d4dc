"""Drag reconciler: turn a drop event into a single intended mutation.

The reconciler is pure.  It reads the caller's ordered columns, asks the
position calculator for a key and decides between a point update and a
full re-spacing of the target column.  Dispatching the mutation is left
to the caller.
"""

from __future__ import annotations

from typing import Callable, Mapping, Optional, Sequence

from .calculator import calculate_position
from .config import DEFAULT_CONFIG, PositionConfig
from .errors import InvalidNeighborOrder, PositionSpaceExhausted, UnknownItem
from .model import (
    DropEvent,
    Mutation,
    NoOp,
    Placement,
    PositionedItem,
    Rebalance,
    Reposition,
    StatusChange,
)
from .rebalancer import needs_rebalancing, spread_positions

Calculator = Callable[[Optional[int], Optional[int], PositionConfig], Placement]
Columns = Mapping[str, Sequence[PositionedItem]]


def _locate(item_id: str, columns: Columns) -> tuple[str, int, PositionedItem]:
    for status, items in columns.items():
        for index, item in enumerate(items):
            if item.id == item_id:
                return status, index, item
    raise UnknownItem(item_id)


def _target_slot(drop: DropEvent, columns: Columns) -> tuple[list[PositionedItem], int]:
    remaining = [item for item in columns.get(drop.target_status, ()) if item.id != drop.item_id]
    if drop.target_index is None:
        return remaining, len(remaining)
    return remaining, max(0, min(drop.target_index, len(remaining)))


def drop_order(drop: DropEvent, columns: Columns) -> list[str]:
    """IDs of the target column in the order the drop asks for.

    The dragged item is taken out of the column and re-inserted at the
    (clamped) drop index, or at the tail when the drop carries none.  Use
    this rather than re-sorting stored positions when re-spacing after a
    degraded placement: the degraded key may tie with the next neighbor.
    """
    remaining, index = _target_slot(drop, columns)
    ids = [item.id for item in remaining]
    ids.insert(index, drop.item_id)
    return ids


def _respace(
    drop: DropEvent,
    columns: Columns,
    new_status: Optional[str],
    config: PositionConfig,
) -> Rebalance:
    return Rebalance(
        item_id=drop.item_id,
        updates=tuple(spread_positions(drop_order(drop, columns), config)),
        new_status=new_status,
    )


def reconcile(
    drop: DropEvent,
    columns: Columns,
    config: PositionConfig = DEFAULT_CONFIG,
    calculator: Calculator = calculate_position,
) -> Mutation:
    """Compute the mutation for *drop* against the current board.

    Args:
        drop: The drop event from the drag layer.
        columns: Status -> items, each list already in display order
            (position ascending, ties broken by the caller's secondary key).
        config: Range, gap and threshold settings.
        calculator: Position calculator; injectable for tests.

    Returns:
        ``NoOp`` when nothing changes, ``StatusChange`` for a drop on a
        column body, ``Reposition`` for a drop on a slot, or ``Rebalance``
        when the target column has no room left for a point update.
        ``rebalance_due`` is set on point updates that leave the target
        column degraded.

    Raises:
        UnknownItem: the dragged item is not in any column.
        InvalidNeighborOrder: the target column is not sorted by position.
    """
    source_status, source_index, current = _locate(drop.item_id, columns)
    target_status = drop.target_status
    same_column = source_status == target_status

    if drop.onto_column and same_column:
        return NoOp(drop.item_id)

    remaining, index = _target_slot(drop, columns)

    if same_column and index == source_index:
        return NoOp(drop.item_id)

    new_status = None if same_column else target_status
    prev = remaining[index - 1].position if index > 0 else None
    next_ = remaining[index].position if index < len(remaining) else None

    if prev is not None and next_ is not None and prev >= next_:
        if prev > next_:
            raise InvalidNeighborOrder(prev, next_)
        # pre-existing tie: there is no key between the two neighbors
        return _respace(drop, columns, new_status, config)

    try:
        placement = calculator(prev, next_, config)
    except PositionSpaceExhausted:
        return _respace(drop, columns, new_status, config)

    if same_column and placement.position == current.position:
        return NoOp(drop.item_id)

    after = remaining + [PositionedItem(drop.item_id, placement.position)]
    rebalance_due = placement.degraded or needs_rebalancing(after, config.rebalance_threshold)

    if drop.onto_column:
        return StatusChange(
            item_id=drop.item_id,
            new_status=target_status,
            new_position=placement.position,
            rebalance_due=rebalance_due,
        )
    return Reposition(
        item_id=drop.item_id,
        new_position=placement.position,
        new_status=new_status,
        rebalance_due=rebalance_due,
    )
