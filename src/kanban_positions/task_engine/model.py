"""Task model for the board.

A task is the record the ordering core annotates: the core only ever reads
and writes ``position``; everything else here belongs to the board.
"""

from __future__ import annotations

import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from ..ordering.config import MAX_POSITION, MIN_POSITION
from ..ordering.model import PositionedItem


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class TaskStatus(str, Enum):
    """Board-level status used for Kanban columns."""

    TODO = "todo"
    IN_PROGRESS = "inprogress"
    IN_REVIEW = "inreview"
    DONE = "done"
    CANCELLED = "cancelled"


BOARD_STATUSES: tuple[TaskStatus, ...] = tuple(TaskStatus)


# ---------------------------------------------------------------------------
# Helper
# ---------------------------------------------------------------------------

def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _generate_id() -> str:
    """Short human-friendly task ID: ``task-<8hex>``."""
    return f"task-{uuid.uuid4().hex[:8]}"


# ---------------------------------------------------------------------------
# Task dataclass
# ---------------------------------------------------------------------------

@dataclass
class Task:
    """A card on the board.

    Within a column, tasks sort by ``position`` ascending and then by
    ``created_at`` descending (newer first) for equal positions.
    """

    id: str = field(default_factory=_generate_id)
    title: str = ""
    description: str = ""
    status: TaskStatus = TaskStatus.TODO
    position: int = 0
    labels: list[str] = field(default_factory=list)

    created_by: Optional[str] = None
    created_at: str = field(default_factory=_now_iso)
    updated_at: str = field(default_factory=_now_iso)
    completed_at: Optional[str] = None

    metadata: dict[str, Any] = field(default_factory=dict)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    @classmethod
    def validate_dict(cls, data: dict[str, Any]) -> list[str]:
        """Lightweight validation of a task dict.

        Returns a list of error strings (empty = valid).
        """
        errors: list[str] = []
        if not isinstance(data, dict):
            return ["Expected a dict"]
        if not data.get("title"):
            errors.append("'title' is required and must be non-empty")
        status = data.get("status")
        if status is not None:
            valid_statuses = {e.value for e in TaskStatus}
            if status not in valid_statuses:
                errors.append(f"'status' must be one of {sorted(valid_statuses)}, got '{status}'")
        position = data.get("position")
        if position is not None:
            if isinstance(position, bool) or not isinstance(position, int):
                errors.append("'position' must be an integer")
            elif not MIN_POSITION <= position <= MAX_POSITION:
                errors.append(f"'position' must be within [{MIN_POSITION}, {MAX_POSITION}]")
        labels = data.get("labels")
        if labels is not None and not isinstance(labels, list):
            errors.append("'labels' must be an array")
        return errors

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dict for YAML/JSON persistence."""
        data: dict[str, Any] = {}
        for k, v in asdict(self).items():
            if isinstance(v, Enum):
                data[k] = v.value
            else:
                data[k] = v
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Task":
        """Deserialize from a plain dict, coercing the status gracefully."""
        d = dict(data)
        raw_status = d.pop("status", None)
        try:
            status = TaskStatus(str(raw_status)) if raw_status is not None else TaskStatus.TODO
        except ValueError:
            status = TaskStatus.TODO

        return cls(
            id=str(d.pop("id", None) or _generate_id()),
            title=str(d.pop("title", "") or ""),
            description=str(d.pop("description", "") or ""),
            status=status,
            position=int(d.pop("position", 0) or 0),
            labels=list(d.pop("labels", []) or []),
            created_by=d.pop("created_by", None),
            created_at=str(d.pop("created_at", None) or _now_iso()),
            updated_at=str(d.pop("updated_at", None) or _now_iso()),
            completed_at=d.pop("completed_at", None),
            metadata=dict(d.pop("metadata", {}) or {}),
        )

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def touch(self) -> None:
        """Bump ``updated_at`` to now."""
        self.updated_at = _now_iso()

    def transition(self, new_status: TaskStatus) -> None:
        """Move to *new_status* with timestamp bookkeeping."""
        self.status = new_status
        if new_status == TaskStatus.DONE:
            self.completed_at = _now_iso()
        elif self.completed_at is not None:
            self.completed_at = None
        self.touch()

    def as_positioned(self) -> PositionedItem:
        return PositionedItem(id=self.id, position=self.position)


def board_sort_key(task: Task) -> tuple[int, float]:
    """Display order: position ascending, then newest first."""
    try:
        created = datetime.fromisoformat(task.created_at).timestamp()
    except ValueError:
        created = 0.0
    return (task.position, -created)
