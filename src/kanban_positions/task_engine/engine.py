"""Task engine: board CRUD and drag-and-drop ordering on top of the store.

This is the write path around the pure ordering core: it reads the ordered
columns, asks :func:`~kanban_positions.ordering.reconcile` for a mutation and
persists it.  When a move leaves a column degraded and ``auto_rebalance`` is
on, the column is re-spaced in the same store transaction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from ..constants import ARTIFACTS_DIR, EVENTS_FILE
from ..io_utils import _append_jsonl, _read_jsonl_tail
from ..ordering import (
    DEFAULT_CONFIG,
    ColumnHealth,
    DropEvent,
    Mutation,
    NoOp,
    PositionConfig,
    PositionSpaceExhausted,
    PositionUpdate,
    Rebalance,
    calculate_position,
    column_health,
    drop_order,
    reconcile,
    rebalance_positions,
    spread_positions,
)
from .model import BOARD_STATUSES, Task, TaskStatus
from .store import TaskStore, _TaskTx

logger = logging.getLogger(__name__)


@dataclass
class MoveResult:
    """Outcome of :meth:`TaskEngine.move_task`."""

    mutation: Mutation
    task: Task
    rebalanced: bool = False
    column_version: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "mutation": self.mutation.to_dict(),
            "task": self.task.to_dict(),
            "rebalanced": self.rebalanced,
            "column_version": self.column_version,
        }


def _parse_status(value: str) -> TaskStatus:
    try:
        return TaskStatus(value)
    except ValueError:
        raise ValueError(
            f"Unknown status '{value}'. Valid statuses: {[s.value for s in BOARD_STATUSES]}"
        ) from None


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

class TaskEngine:
    """Manage tasks and their ordering on the board.

    Parameters
    ----------
    state_dir:
        Path to the ``.kanban/`` directory.
    position_config:
        Gap and threshold settings for the ordering core.
    auto_rebalance:
        Re-space a column on write as soon as a move leaves it degraded.
    """

    def __init__(
        self,
        state_dir: Path,
        position_config: PositionConfig = DEFAULT_CONFIG,
        auto_rebalance: bool = True,
    ) -> None:
        self.store = TaskStore(state_dir)
        self.position_config = position_config
        self.auto_rebalance = auto_rebalance
        self._events_path = state_dir / ARTIFACTS_DIR / EVENTS_FILE

    def _emit_event(self, event_type: str, task_id: str, status: str, **details: Any) -> None:
        """Append a board event.  Failures are logged, never raised."""
        payload: dict[str, Any] = {
            "ts": datetime.now(timezone.utc).isoformat(),
            "type": event_type,
            "task_id": task_id,
            "status": status,
        }
        if details:
            payload["details"] = details
        try:
            _append_jsonl(self._events_path, payload)
        except OSError:
            logger.exception("Failed to append board event %s for %s", event_type, task_id)

    def get_recent_events(self, limit: int = 100) -> list[dict[str, Any]]:
        return _read_jsonl_tail(self._events_path, limit)

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def create_task(
        self,
        title: str,
        description: str = "",
        status: str = "todo",
        labels: Optional[list[str]] = None,
        created_by: Optional[str] = None,
        metadata: Optional[dict[str, Any]] = None,
    ) -> Task:
        """Create a task at the tail of its column and persist it."""
        target = _parse_status(status)
        task = Task(
            title=title,
            description=description,
            status=target,
            labels=labels or [],
            created_by=created_by,
            metadata=metadata or {},
        )
        errors = Task.validate_dict(task.to_dict())
        if errors:
            raise ValueError("; ".join(errors))

        with self.store.transaction() as tx:
            column = tx.column(target)
            last = column[-1].position if column else None
            try:
                placement = calculate_position(last, None, self.position_config)
            except PositionSpaceExhausted:
                task.position = last or 0
                tx.add(task)
                tx.apply_positions(spread_positions([t.id for t in column] + [task.id], self.position_config))
                logger.info("Re-spaced column %s to fit new task %s", target.value, task.id)
            else:
                task.position = placement.position
                tx.add(task)
                if placement.degraded and self.auto_rebalance:
                    self._rebalance_in_tx(tx, target)
            self._emit_event("task.created", task.id, target.value, position=task.position)

        logger.info("Created task %s in %s at %d", task.id, target.value, task.position)
        return task

    def get_task(self, task_id: str) -> Optional[Task]:
        return self.store.get_one(task_id)

    def list_tasks(
        self,
        *,
        status: Optional[str] = None,
        label: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[Task]:
        with self.store.transaction() as tx:
            return tx.find(status=status, label=label, search=search)

    def update_task(self, task_id: str, changes: dict[str, Any]) -> Optional[Task]:
        """Apply content updates.  Status and position only change by moving."""
        with self.store.transaction() as tx:
            task = tx.update(task_id, changes)
            if task is not None:
                self._emit_event("task.updated", task.id, task.status.value, fields=sorted(changes))
            return task

    def delete_task(self, task_id: str) -> bool:
        """Soft-delete a task (move it to the cancelled column)."""
        with self.store.transaction() as tx:
            task = tx.get(task_id)
            if task is None:
                return False
            tx.remove(task_id)
            self._emit_event("task.deleted", task_id, task.status.value)
            return True

    # ------------------------------------------------------------------
    # Board view
    # ------------------------------------------------------------------

    def get_board(self) -> dict[str, list[dict[str, Any]]]:
        """Return tasks grouped by column, each column in display order."""
        with self.store.transaction() as tx:
            return {s.value: [t.to_dict() for t in tx.column(s)] for s in BOARD_STATUSES}

    def get_column_versions(self) -> dict[str, int]:
        versions = self.store.column_versions()
        return {s.value: versions.get(s.value, 0) for s in BOARD_STATUSES}

    def get_column_health(self, status: str) -> ColumnHealth:
        target = _parse_status(status)
        with self.store.transaction() as tx:
            items = [t.as_positioned() for t in tx.column(target)]
        return column_health(items, self.position_config)

    def get_board_health(self) -> dict[str, str]:
        return {s.value: self.get_column_health(s.value).value for s in BOARD_STATUSES}

    # ------------------------------------------------------------------
    # Ordering
    # ------------------------------------------------------------------

    def move_task(
        self,
        drop: DropEvent,
        expected_version: Optional[int] = None,
        expected_source_version: Optional[int] = None,
    ) -> Optional[MoveResult]:
        """Apply a drop event.

        *expected_version* is the target column version the caller based
        the drop on; *expected_source_version* is the version of the column
        the task leaves and is only checked when the task changes column.
        When either is given and outdated, :class:`StaleColumnError` is
        raised and nothing is written.  Returns None if the task is missing.
        """
        target = _parse_status(drop.target_status)
        with self.store.transaction() as tx:
            task = tx.get(drop.item_id)
            if task is None:
                return None
            tx.check_version(target, expected_version)
            if task.status != target:
                tx.check_version(task.status, expected_source_version)

            columns = {s.value: [t.as_positioned() for t in tx.column(s)] for s in BOARD_STATUSES}
            mutation = reconcile(drop, columns, self.position_config)
            if isinstance(mutation, NoOp):
                return MoveResult(mutation=mutation, task=task, column_version=tx.column_version(target))

            rebalanced = False
            if isinstance(mutation, Rebalance):
                tx.set_placement(task.id, target, mutation.new_position)
                tx.apply_positions(mutation.updates)
                rebalanced = True
            else:
                tx.set_placement(task.id, target, mutation.new_position)
                if mutation.rebalance_due and self.auto_rebalance:
                    # a degraded key can tie with the next neighbor, so keep the dropped order
                    self._rebalance_in_tx(tx, target, order=drop_order(drop, columns))
                    rebalanced = True

            self._emit_event(
                "task.moved",
                task.id,
                target.value,
                kind=mutation.kind,
                position=task.position,
                rebalanced=rebalanced,
            )
            logger.info(
                "Moved task %s to %s at %d (%s%s)",
                task.id,
                target.value,
                task.position,
                mutation.kind,
                ", rebalanced" if rebalanced else "",
            )
            return MoveResult(
                mutation=mutation,
                task=task,
                rebalanced=rebalanced,
                column_version=tx.column_version(target),
            )

    def rebalance_column(self, status: str, expected_version: Optional[int] = None) -> list[PositionUpdate]:
        """Re-space one column evenly and persist it in a single write."""
        target = _parse_status(status)
        with self.store.transaction() as tx:
            tx.check_version(target, expected_version)
            return self._rebalance_in_tx(tx, target)

    def _rebalance_in_tx(
        self,
        tx: _TaskTx,
        status: TaskStatus,
        order: Optional[list[str]] = None,
    ) -> list[PositionUpdate]:
        if order is None:
            # the column is already in display order, so ties keep newest-first
            updates = rebalance_positions([t.as_positioned() for t in tx.column(status)], self.position_config)
        else:
            updates = spread_positions(order, self.position_config)
        if updates:
            tx.apply_positions(updates)
            self._emit_event("column.rebalanced", "", status.value, count=len(updates))
            logger.info("Rebalanced column %s (%d tasks)", status.value, len(updates))
        return updates
