"""Position calculator.

Computes the ordering key for an item dropped between two neighbors, in the
style of LexoRank midpoints but over a signed 32-bit integer.  Keys are spaced
``gap`` apart at the ends of a column and halved on every insertion between
two fixed neighbors, so a bounded number of insertions into the same slot is
possible before the column has to be re-spaced by the rebalancer.
"""

from __future__ import annotations

from typing import Optional, Sequence

from .config import DEFAULT_CONFIG, PositionConfig
from .errors import InvalidNeighborOrder, PositionSpaceExhausted
from .model import Placement, PositionedItem


def calculate_position(
    prev: Optional[int],
    next_: Optional[int],
    config: PositionConfig = DEFAULT_CONFIG,
) -> Placement:
    """Return the placement for a slot between *prev* and *next_*.

    Args:
        prev: Position of the item before the slot, ``None`` at the head.
        next_: Position of the item after the slot, ``None`` at the tail.
        config: Range and gap settings.

    Returns:
        A :class:`Placement`.  ``degraded`` is set when the two neighbors
        are less than 2 apart (the result then collides with or sits right
        against *next_*) or when an end offset had to be squeezed to stay
        inside the key space.

    Raises:
        InvalidNeighborOrder: ``prev >= next_``.
        PositionSpaceExhausted: the neighbor already sits on the edge of
            the key space and nothing fits beyond it.
    """
    if prev is None and next_ is None:
        if config.in_range(0):
            return Placement(0)
        return Placement((config.min_position + config.max_position) // 2)

    if prev is None:
        candidate = next_ - config.gap
        if candidate >= config.min_position:
            return Placement(candidate)
        if next_ <= config.min_position:
            raise PositionSpaceExhausted(f"No room before position {next_}")
        return Placement((config.min_position + next_) // 2, degraded=True)

    if next_ is None:
        candidate = prev + config.gap
        if candidate <= config.max_position:
            return Placement(candidate)
        if prev >= config.max_position:
            raise PositionSpaceExhausted(f"No room after position {prev}")
        # round up so the result stays above prev
        return Placement((prev + config.max_position + 1) // 2, degraded=True)

    if prev >= next_:
        raise InvalidNeighborOrder(prev, next_)

    if next_ - prev < 2:
        return Placement(prev + 1, degraded=True)

    return Placement((prev + next_) // 2)


def calculate_new_position(
    prev: Optional[int],
    next_: Optional[int],
    config: PositionConfig = DEFAULT_CONFIG,
) -> int:
    """Plain-integer form of :func:`calculate_position`."""
    return calculate_position(prev, next_, config).position


def calculate_position_for_index(
    target_index: int,
    items: Sequence[PositionedItem],
    dragged_id: Optional[str] = None,
    config: PositionConfig = DEFAULT_CONFIG,
) -> Placement:
    """Placement for dropping at *target_index* of an ordered column.

    *dragged_id* is filtered out first so that moving an item within its
    own column does not count the item as its own neighbor.  Out-of-range
    indices are clamped to the head or tail.
    """
    remaining = [item for item in items if item.id != dragged_id] if dragged_id else list(items)
    index = max(0, min(target_index, len(remaining)))
    prev_item = remaining[index - 1] if index > 0 else None
    next_item = remaining[index] if index < len(remaining) else None
    return calculate_position(
        prev_item.position if prev_item is not None else None,
        next_item.position if next_item is not None else None,
        config,
    )
