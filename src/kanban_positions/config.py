"""Load optional board configuration from `.kanban/config.yaml`."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from loguru import logger

from .constants import AUTO_REBALANCE_ENV_VAR, CONFIG_FILE, STATE_DIR_NAME
from .io_utils import _load_data_with_error
from .ordering.config import DEFAULT_CONFIG, PositionConfig

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


def load_board_config(project_dir: Path) -> tuple[dict[str, Any], str | None]:
    """Load the optional board config file.

    Args:
        project_dir: Project root directory.

    Returns:
        A tuple of `(config, error_message)`. If the file is missing, returns `({}, None)`.
    """
    project_dir = project_dir.resolve()
    path = project_dir / STATE_DIR_NAME / CONFIG_FILE
    if not path.exists():
        return {}, None
    data, err = _load_data_with_error(path, {})
    if err:
        return {}, err
    return data, None


def _get_nested(config: dict[str, Any], *keys: str) -> Any:
    cur: Any = config
    for key in keys:
        if not isinstance(cur, dict):
            return None
        cur = cur.get(key)
    return cur


def get_ordering_config(config: dict[str, Any]) -> dict[str, Any]:
    """Extract the `ordering` block from the board config.

    Args:
        config: Board configuration dictionary.

    Returns:
        The `ordering` mapping, or an empty dict if not present.
    """
    raw = _get_nested(config, "ordering")
    return raw if isinstance(raw, dict) else {}


def _positive_int(value: Any, default: int, name: str) -> int:
    if value is None:
        return default
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        logger.warning("Ignoring invalid ordering.{} value: {!r}", name, value)
        return default
    return value


def get_position_config(config: dict[str, Any]) -> PositionConfig:
    """Build a :class:`PositionConfig` from the `ordering` block.

    The key range is fixed by the storage column and cannot be overridden.
    Invalid values fall back to the defaults.
    """
    block = get_ordering_config(config)
    return PositionConfig(
        gap=_positive_int(block.get("gap"), DEFAULT_CONFIG.gap, "gap"),
        rebalance_threshold=_positive_int(
            block.get("rebalance_threshold"),
            DEFAULT_CONFIG.rebalance_threshold,
            "rebalance_threshold",
        ),
    )


def get_auto_rebalance(config: dict[str, Any]) -> bool:
    """Whether degraded columns are re-spaced on write.

    The `KANBAN_POSITIONS_AUTO_REBALANCE` env var wins over the config file.
    Defaults to True.
    """
    env = os.environ.get(AUTO_REBALANCE_ENV_VAR)
    if env is not None:
        lowered = env.strip().lower()
        if lowered in _TRUTHY:
            return True
        if lowered in _FALSY:
            return False
        logger.warning("Ignoring invalid {} value: {!r}", AUTO_REBALANCE_ENV_VAR, env)
    raw = get_ordering_config(config).get("auto_rebalance")
    if isinstance(raw, bool):
        return raw
    return True
