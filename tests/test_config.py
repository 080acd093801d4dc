"""Tests for board configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from kanban_positions.config import (
    get_auto_rebalance,
    get_ordering_config,
    get_position_config,
    load_board_config,
)
from kanban_positions.ordering import DEFAULT_CONFIG, MAX_POSITION, MIN_POSITION


def _write_config(project_dir: Path, text: str) -> None:
    state = project_dir / ".kanban"
    state.mkdir(parents=True, exist_ok=True)
    (state / "config.yaml").write_text(text, encoding="utf-8")


@pytest.fixture(autouse=True)
def _clear_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("KANBAN_POSITIONS_AUTO_REBALANCE", raising=False)


def test_missing_config(tmp_path: Path) -> None:
    assert load_board_config(tmp_path) == ({}, None)


def test_load_ordering_block(tmp_path: Path) -> None:
    _write_config(tmp_path, "ordering:\n  gap: 64\n  rebalance_threshold: 4\n  auto_rebalance: false\n")
    config, err = load_board_config(tmp_path)
    assert err is None
    assert get_ordering_config(config) == {"gap": 64, "rebalance_threshold": 4, "auto_rebalance": False}

    position_config = get_position_config(config)
    assert position_config.gap == 64
    assert position_config.rebalance_threshold == 4
    assert position_config.min_position == MIN_POSITION
    assert position_config.max_position == MAX_POSITION
    assert get_auto_rebalance(config) is False


def test_invalid_yaml_reports_error(tmp_path: Path) -> None:
    _write_config(tmp_path, "ordering: [unclosed\n")
    config, err = load_board_config(tmp_path)
    assert config == {}
    assert err is not None
    assert "YAMLError" in err


def test_invalid_values_fall_back_to_defaults() -> None:
    config = {"ordering": {"gap": -5, "rebalance_threshold": "ten"}}
    assert get_position_config(config) == DEFAULT_CONFIG


def test_non_mapping_ordering_block() -> None:
    assert get_ordering_config({"ordering": [1, 2]}) == {}
    assert get_position_config({"ordering": "nope"}) == DEFAULT_CONFIG


def test_auto_rebalance_defaults_to_true() -> None:
    assert get_auto_rebalance({}) is True


def test_env_overrides_auto_rebalance(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("KANBAN_POSITIONS_AUTO_REBALANCE", "0")
    assert get_auto_rebalance({"ordering": {"auto_rebalance": True}}) is False
    monkeypatch.setenv("KANBAN_POSITIONS_AUTO_REBALANCE", "yes")
    assert get_auto_rebalance({"ordering": {"auto_rebalance": False}}) is True
    monkeypatch.setenv("KANBAN_POSITIONS_AUTO_REBALANCE", "maybe")
    assert get_auto_rebalance({"ordering": {"auto_rebalance": False}}) is False
