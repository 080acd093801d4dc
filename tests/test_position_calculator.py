"""Tests for the position calculator (ordering/calculator.py)."""

from __future__ import annotations

import pytest

from kanban_positions.ordering import (
    DEFAULT_GAP,
    MAX_POSITION,
    MIN_POSITION,
    InvalidNeighborOrder,
    PositionConfig,
    PositionedItem,
    PositionSpaceExhausted,
    calculate_new_position,
    calculate_position,
    calculate_position_for_index,
    needs_rebalancing,
)


class TestCalculateNewPosition:
    def test_empty_column(self) -> None:
        assert calculate_new_position(None, None) == 0

    def test_insert_at_head(self) -> None:
        assert calculate_new_position(None, 500) == 500 - DEFAULT_GAP
        assert calculate_new_position(None, 0) == -1000

    def test_insert_at_tail(self) -> None:
        assert calculate_new_position(1000, None) == 2000
        assert calculate_new_position(-2500, None) == -1500

    def test_midpoint(self) -> None:
        assert calculate_new_position(2000, 3000) == 2500
        assert calculate_new_position(1000, 1002) == 1001

    def test_midpoint_floors_negative_values(self) -> None:
        # -3 + 0 = -3 -> floor(-1.5) = -2
        assert calculate_new_position(-3, 0) == -2

    def test_result_strictly_between_neighbors(self) -> None:
        pairs = [
            (0, 2),
            (0, 3),
            (-10, 10),
            (-7, -1),
            (MIN_POSITION, MAX_POSITION),
            (MIN_POSITION, MIN_POSITION + 2),
            (MAX_POSITION - 2, MAX_POSITION),
        ]
        for prev, next_ in pairs:
            result = calculate_new_position(prev, next_)
            assert prev < result < next_, (prev, next_, result)

    def test_too_small_gap_returns_prev_plus_one(self) -> None:
        assert calculate_new_position(1000, 1001) == 1001
        assert calculate_new_position(-5, -4) == -4

    def test_custom_gap(self) -> None:
        config = PositionConfig(gap=10)
        assert calculate_new_position(None, 100, config) == 90
        assert calculate_new_position(100, None, config) == 110


class TestCalculatePosition:
    def test_healthy_placement_not_degraded(self) -> None:
        placement = calculate_position(2000, 3000)
        assert placement.position == 2500
        assert placement.degraded is False

    def test_too_small_gap_is_degraded(self) -> None:
        placement = calculate_position(1000, 1001)
        assert placement.position == 1001
        assert placement.degraded is True

    def test_neighbors_out_of_order_raise(self) -> None:
        with pytest.raises(InvalidNeighborOrder):
            calculate_position(5, 5)
        with pytest.raises(InvalidNeighborOrder, match="prev=6 next=5"):
            calculate_position(6, 5)

    def test_head_offset_clamped_near_min(self) -> None:
        placement = calculate_position(None, MIN_POSITION + 10)
        assert placement.position == MIN_POSITION + 5
        assert placement.degraded is True

    def test_tail_offset_clamped_near_max(self) -> None:
        placement = calculate_position(MAX_POSITION - 10, None)
        assert placement.position == MAX_POSITION - 5
        assert placement.degraded is True

    def test_tail_one_below_max(self) -> None:
        placement = calculate_position(MAX_POSITION - 1, None)
        assert placement.position == MAX_POSITION

    def test_no_room_at_the_edges(self) -> None:
        with pytest.raises(PositionSpaceExhausted):
            calculate_position(None, MIN_POSITION)
        with pytest.raises(PositionSpaceExhausted):
            calculate_position(MAX_POSITION, None)

    def test_repeated_insertion_degrades_then_needs_rebalancing(self) -> None:
        prev, next_ = 1000, 2000
        steps = 0
        placement = calculate_position(prev, next_)
        while not placement.degraded:
            assert prev < placement.position < next_
            next_ = placement.position
            placement = calculate_position(prev, next_)
            steps += 1
            assert steps < 20
        # 2000 -> 1500 -> ... -> 1001, then no integer is left in between
        assert next_ == 1001
        assert placement.position == prev + 1
        assert needs_rebalancing([PositionedItem("A", prev), PositionedItem("B", next_)])


class TestCalculatePositionForIndex:
    @pytest.fixture
    def column(self) -> list[PositionedItem]:
        return [
            PositionedItem("a", 1000),
            PositionedItem("b", 2000),
            PositionedItem("c", 3000),
        ]

    def test_between_neighbors(self, column: list[PositionedItem]) -> None:
        assert calculate_position_for_index(2, column).position == 2500

    def test_dragged_item_excluded(self, column: list[PositionedItem]) -> None:
        # without "a" the head neighbor is "b"
        assert calculate_position_for_index(0, column, dragged_id="a").position == 1000

    def test_index_clamped_to_tail(self, column: list[PositionedItem]) -> None:
        assert calculate_position_for_index(10, column).position == 4000

    def test_negative_index_clamped_to_head(self, column: list[PositionedItem]) -> None:
        assert calculate_position_for_index(-3, column).position == 0

    def test_empty_column(self) -> None:
        assert calculate_position_for_index(0, []).position == 0
