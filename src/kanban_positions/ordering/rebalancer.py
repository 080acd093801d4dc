"""Rebalancer and column health predicate."""

from __future__ import annotations

from typing import Iterable, Sequence

from .config import DEFAULT_CONFIG, PositionConfig
from .errors import PositionSpaceExhausted
from .model import ColumnHealth, PositionedItem, PositionUpdate


def spread_positions(
    ids: Sequence[str],
    config: PositionConfig = DEFAULT_CONFIG,
) -> list[PositionUpdate]:
    """Spread *ids* evenly over the key space, keeping the given order."""
    count = len(ids)
    if count == 0:
        return []
    gap = (config.max_position - config.min_position) // (count + 1)
    if gap == 0:
        raise PositionSpaceExhausted(f"Cannot spread {count} items over the position range")
    return [
        PositionUpdate(id=item_id, position=config.min_position + gap * (index + 1))
        for index, item_id in enumerate(ids)
    ]


def rebalance_positions(
    items: Iterable[PositionedItem],
    config: PositionConfig = DEFAULT_CONFIG,
) -> list[PositionUpdate]:
    """Redistribute positions evenly across the legal range.

    Items are sorted by their current position.  The sort is stable, so
    items sharing a position keep the order they were passed in; callers
    that break ties on a secondary key (creation time) must pass the
    column already in that order.  An empty input returns ``[]``.
    """
    ordered = sorted(items, key=lambda item: item.position)
    return spread_positions([item.id for item in ordered], config)


def needs_rebalancing(
    items: Iterable[PositionedItem],
    threshold: int = DEFAULT_CONFIG.rebalance_threshold,
) -> bool:
    """True if any two adjacent positions are closer than *threshold*."""
    positions = sorted(item.position for item in items)
    return any(b - a < threshold for a, b in zip(positions, positions[1:]))


def column_health(
    items: Iterable[PositionedItem],
    config: PositionConfig = DEFAULT_CONFIG,
) -> ColumnHealth:
    if needs_rebalancing(items, config.rebalance_threshold):
        return ColumnHealth.DEGRADED
    return ColumnHealth.HEALTHY
