"""File-based task store with thread-safe locking.

Stores tasks in a single YAML file (``tasks.yaml``) inside the project's
``.kanban/`` directory.  All reads and writes go through :func:`transaction`
which acquires an exclusive file lock, so a bulk position write lands
atomically.

Each column carries a monotonic version number that is bumped whenever a
write touches the column.  Callers may compare it against the version they
read to detect that someone else reordered the column in between.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterable, Iterator, Optional

import yaml

from ..constants import TASKS_FILE, TASKS_LOCK_FILE
from ..io_utils import FileLock
from ..ordering.errors import StaleColumnError
from ..ordering.model import PositionUpdate
from .model import Task, TaskStatus, board_sort_key

Dumper = getattr(yaml, "CSafeDumper", yaml.SafeDumper)
Loader = getattr(yaml, "CSafeLoader", yaml.SafeLoader)

logger = logging.getLogger(__name__)

STORE_VERSION = 1


# ---------------------------------------------------------------------------
# Low-level I/O
# ---------------------------------------------------------------------------

def _load_raw(path: Path) -> tuple[list[dict[str, Any]], dict[str, int]]:
    """Load the raw task list and column versions, empty if missing."""
    if not path.exists():
        return [], {}
    data = yaml.load(path.read_text(encoding="utf-8"), Loader=Loader)
    if not isinstance(data, dict):
        return [], {}
    tasks = data.get("tasks")
    versions = data.get("column_versions")
    return (
        list(tasks) if isinstance(tasks, list) else [],
        {str(k): int(v) for k, v in versions.items()} if isinstance(versions, dict) else {},
    )


def _save_raw(path: Path, tasks: list[dict[str, Any]], versions: dict[str, int]) -> None:
    """Atomically write the store to *path* (write-tmp-then-rename)."""
    payload = {"version": STORE_VERSION, "column_versions": versions, "tasks": tasks}
    parent = path.parent
    parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(dir=str(parent), suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            yaml.dump(payload, fh, Dumper=Dumper, default_flow_style=False, sort_keys=False)
        shutil.move(tmp, str(path))
    except BaseException:
        Path(tmp).unlink(missing_ok=True)
        raise


# ---------------------------------------------------------------------------
# TaskStore
# ---------------------------------------------------------------------------

class TaskStore:
    """Thread-safe, file-backed store for :class:`Task` objects.

    Parameters
    ----------
    state_dir:
        Path to the ``.kanban/`` directory for the project.
    """

    def __init__(self, state_dir: Path) -> None:
        self._state_dir = state_dir
        self._store_path = state_dir / TASKS_FILE
        self._lock = FileLock(state_dir / TASKS_LOCK_FILE)

    @contextmanager
    def transaction(self) -> Iterator[_TaskTx]:
        """Acquire the lock, load tasks, yield a transaction, and save on exit.

        Usage::

            with store.transaction() as tx:
                tx.set_placement("task-abc123", TaskStatus.DONE, 2500)
                # automatically saved on exit
        """
        with self._lock:
            raw, versions = _load_raw(self._store_path)
            tx = _TaskTx([Task.from_dict(d) for d in raw], versions)
            yield tx
            if tx.dirty:
                _save_raw(self._store_path, [t.to_dict() for t in tx.tasks], tx.versions)

    def get_one(self, task_id: str) -> Optional[Task]:
        with self.transaction() as tx:
            return tx.get(task_id)

    def column_versions(self) -> dict[str, int]:
        with self.transaction() as tx:
            return dict(tx.versions)


class _TaskTx:
    """In-memory transaction over a list of tasks.

    Mutations are collected and flushed back to disk when the ``transaction``
    context-manager exits.
    """

    def __init__(self, tasks: list[Task], versions: dict[str, int]) -> None:
        self.tasks = tasks
        self.versions = versions
        self.dirty = False
        self._index: dict[str, int] = {t.id: i for i, t in enumerate(tasks)}

    # -- lookups ------------------------------------------------------------

    def get(self, task_id: str) -> Optional[Task]:
        idx = self._index.get(task_id)
        return self.tasks[idx] if idx is not None else None

    def column(self, status: TaskStatus) -> list[Task]:
        """Tasks of one column in display order."""
        return sorted((t for t in self.tasks if t.status == status), key=board_sort_key)

    def find(
        self,
        *,
        status: Optional[str] = None,
        label: Optional[str] = None,
        search: Optional[str] = None,
    ) -> list[Task]:
        out: list[Task] = []
        for t in self.tasks:
            if status and t.status.value != status:
                continue
            if label and label not in t.labels:
                continue
            if search:
                q = search.lower()
                if q not in t.title.lower() and q not in t.description.lower() and q not in t.id.lower():
                    continue
            out.append(t)
        return out

    # -- column versions ----------------------------------------------------

    def column_version(self, status: TaskStatus) -> int:
        return self.versions.get(status.value, 0)

    def check_version(self, status: TaskStatus, expected: Optional[int]) -> None:
        """Raise :class:`StaleColumnError` if *expected* is set and outdated."""
        if expected is None:
            return
        actual = self.column_version(status)
        if actual != expected:
            raise StaleColumnError(status.value, expected, actual)

    def _bump(self, *statuses: TaskStatus) -> None:
        for status in set(statuses):
            self.versions[status.value] = self.column_version(status) + 1

    # -- mutations ----------------------------------------------------------

    def add(self, task: Task) -> Task:
        if task.id in self._index:
            raise ValueError(f"Task {task.id} already exists")
        self._index[task.id] = len(self.tasks)
        self.tasks.append(task)
        self._bump(task.status)
        self.dirty = True
        return task

    def update(self, task_id: str, changes: dict[str, Any]) -> Optional[Task]:
        """Apply content changes.  Ordering fields go through :meth:`set_placement`."""
        task = self.get(task_id)
        if task is None:
            return None
        for key, value in changes.items():
            if key in ("status", "position", "id"):
                raise ValueError(f"'{key}' cannot be changed via update")
            if hasattr(task, key):
                setattr(task, key, value)
        task.touch()
        self.dirty = True
        return task

    def set_placement(self, task_id: str, status: TaskStatus, position: int) -> Optional[Task]:
        """Write a single task's ``{status, position}`` pair."""
        task = self.get(task_id)
        if task is None:
            return None
        old_status = task.status
        if status != old_status:
            task.transition(status)
        task.position = position
        task.touch()
        self._bump(old_status, status)
        self.dirty = True
        return task

    def apply_positions(self, updates: Iterable[PositionUpdate]) -> list[Task]:
        """Write a bulk set of ``{id, position}`` pairs.

        Unknown IDs raise before anything is changed, so the batch is
        all-or-nothing.
        """
        updates = list(updates)
        missing = [u.id for u in updates if u.id not in self._index]
        if missing:
            raise ValueError(f"Unknown task IDs in position update: {missing}")
        touched: list[Task] = []
        for update in updates:
            task = self.tasks[self._index[update.id]]
            task.position = update.position
            task.touch()
            touched.append(task)
        if touched:
            self._bump(*(t.status for t in touched))
            self.dirty = True
        return touched

    def remove(self, task_id: str) -> bool:
        """Soft-delete: move to the cancelled column."""
        task = self.get(task_id)
        if task is None:
            return False
        old_status = task.status
        task.transition(TaskStatus.CANCELLED)
        self._bump(old_status, TaskStatus.CANCELLED)
        logger.debug("Cancelled task %s (was %s)", task_id, old_status.value)
        self.dirty = True
        return True
