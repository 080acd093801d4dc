"""Numeric range constants for the position key space."""

from __future__ import annotations

from dataclasses import dataclass

# The backing column is a signed 32-bit integer.
MIN_POSITION = -(2**31)
MAX_POSITION = 2**31 - 1
DEFAULT_GAP = 1000
REBALANCE_THRESHOLD = 10


@dataclass(frozen=True)
class PositionConfig:
    """Tunable knobs for the calculator, rebalancer and reconciler."""

    min_position: int = MIN_POSITION
    max_position: int = MAX_POSITION
    gap: int = DEFAULT_GAP
    rebalance_threshold: int = REBALANCE_THRESHOLD

    def __post_init__(self) -> None:
        if self.min_position >= self.max_position:
            raise ValueError("min_position must be lower than max_position")
        if self.gap < 1:
            raise ValueError("gap must be a positive integer")
        if self.rebalance_threshold < 1:
            raise ValueError("rebalance_threshold must be a positive integer")

    def in_range(self, position: int) -> bool:
        return self.min_position <= position <= self.max_position


DEFAULT_CONFIG = PositionConfig()
