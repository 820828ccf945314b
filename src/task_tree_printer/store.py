"""In-memory task table with parent/child links and sibling ordering."""

import logging
import sqlite3
import threading
from dataclasses import asdict, dataclass
from typing import List, Optional

from . import tree
from .errors import TaskNotFoundError, TaskValidationError

logger = logging.getLogger(__name__)

_UNSET = object()

# SQLite INTEGER columns hold signed 64-bit values
_MAX_INT = 2 ** 63 - 1

SCHEMA = """
CREATE TABLE IF NOT EXISTS tasks (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    parent_id INTEGER,
    order_index INTEGER NOT NULL DEFAULT 0,
    created_at DATETIME DEFAULT CURRENT_TIMESTAMP,
    FOREIGN KEY (parent_id) REFERENCES tasks(id) ON DELETE CASCADE
);

CREATE INDEX IF NOT EXISTS idx_tasks_parent_id ON tasks(parent_id);
"""

SAMPLE_TASKS = [
    ("Clean the house", [
        ("Clean bedroom", [
            ("Make bed", []),
            ("Vacuum floor", []),
            ("Organize closet", []),
        ]),
        ("Clean kitchen", [
            ("Wash dishes", []),
            ("Wipe counters", []),
            ("Mop floor", []),
        ]),
        ("Clean bathroom", []),
    ]),
    ("Work tasks", []),
    ("Exercise routine", [
        ("Warm up", []),
        ("Cardio", []),
        ("Strength training", []),
        ("Cool down", []),
    ]),
]


@dataclass
class Task:
    id: int
    name: str
    parent_id: Optional[int]
    order_index: int
    created_at: str

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "Task":
        return cls(
            id=row["id"],
            name=row["name"],
            parent_id=row["parent_id"],
            order_index=row["order_index"],
            created_at=row["created_at"],
        )

    def to_dict(self) -> dict:
        return asdict(self)


def _clean_name(name) -> str:
    if not isinstance(name, str) or not name.strip():
        raise TaskValidationError("Task name is required")
    return name.strip()


def _clean_int(value, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or not -_MAX_INT <= value <= _MAX_INT:
        raise TaskValidationError(f"{field} must be an integer")
    return value


def _clean_parent_id(parent_id) -> Optional[int]:
    if parent_id is None:
        return None
    return _clean_int(parent_id, "parent_id") or None


class TaskStore:
    """
    SQLite ``:memory:`` task store. Data is reset on restart.

    One connection is shared and every public method holds ``self._lock``,
    so each call is atomic with respect to the others. Deleting a task
    cascades to its descendants through the foreign key.
    """

    def __init__(self, db_path: str = ":memory:") -> None:
        self._lock = threading.RLock()
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA foreign_keys = ON")
        self._conn.executescript(SCHEMA)
        logger.info("TaskStore ready db=%s total=%s", db_path, self.count_tasks())

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    # ---- reads ----

    def count_tasks(self) -> int:
        with self._lock:
            row = self._conn.execute("SELECT COUNT(*) AS n FROM tasks").fetchone()
        return int(row["n"])

    def get_task(self, task_id: int) -> Task:
        with self._lock:
            row = self._conn.execute("SELECT * FROM tasks WHERE id = ?", (task_id,)).fetchone()
        if row is None:
            raise TaskNotFoundError(task_id)
        return Task.from_row(row)

    def get_children(self, parent_id: Optional[int] = None) -> List[Task]:
        """Direct children of ``parent_id`` (roots when None), in sibling order."""
        with self._lock:
            rows = self._conn.execute(
                "SELECT * FROM tasks WHERE parent_id IS ? ORDER BY order_index, id",
                (parent_id,),
            ).fetchall()
        return [Task.from_row(r) for r in rows]

    def all_tasks(self) -> List[Task]:
        with self._lock:
            rows = self._conn.execute(
                "SELECT * FROM tasks ORDER BY order_index, id"
            ).fetchall()
        return [Task.from_row(r) for r in rows]

    def get_descendants(self, task_id: int) -> List[Task]:
        return tree.get_descendants(self, task_id)

    # ---- writes ----

    def create_task(self, name: str, parent_id: Optional[int] = None) -> Task:
        """Insert a task as the last child of ``parent_id``."""
        name = _clean_name(name)
        parent_id = _clean_parent_id(parent_id)
        with self._lock, self._conn:
            if parent_id is not None:
                self._require_parent(parent_id)
            # next order index is computed inside the INSERT itself
            cur = self._conn.execute(
                """
                INSERT INTO tasks (name, parent_id, order_index)
                SELECT ?, ?, COALESCE(MAX(order_index), -1) + 1
                FROM tasks WHERE parent_id IS ?
                """,
                (name, parent_id, parent_id),
            )
            task_id = cur.lastrowid
        task = self.get_task(task_id)
        logger.info("Created task id=%s parent=%s order=%s", task.id, task.parent_id, task.order_index)
        return task

    def update_task(self, task_id: int, name=_UNSET, parent_id=_UNSET, order_index=_UNSET) -> Task:
        """Apply a partial update; fields left unset are not touched."""
        self.get_task(task_id)
        updates = []
        values = []

        if name is not _UNSET:
            updates.append("name = ?")
            values.append(_clean_name(name))

        if order_index is not _UNSET:
            updates.append("order_index = ?")
            values.append(_clean_int(order_index, "order_index"))

        if parent_id is not _UNSET:
            parent_id = _clean_parent_id(parent_id)

        with self._lock, self._conn:
            if parent_id is not _UNSET:
                if parent_id is not None:
                    self._require_parent(parent_id)
                    self._check_no_cycle(task_id, parent_id)
                updates.append("parent_id = ?")
                values.append(parent_id)

            if updates:
                values.append(task_id)
                self._conn.execute(f"UPDATE tasks SET {', '.join(updates)} WHERE id = ?", values)

        return self.get_task(task_id)

    def delete_task(self, task_id: int) -> None:
        """Delete a task and, by cascade, all of its descendants."""
        with self._lock, self._conn:
            self.get_task(task_id)
            self._conn.execute("DELETE FROM tasks WHERE id = ?", (task_id,))
        logger.info("Deleted task id=%s remaining=%s", task_id, self.count_tasks())

    def seed_sample_tasks(self) -> None:
        def insert(items, parent_id):
            for name, children in items:
                task = self.create_task(name, parent_id)
                insert(children, task.id)

        insert(SAMPLE_TASKS, None)
        logger.info("Seeded sample tasks total=%s", self.count_tasks())

    # ---- helpers ----

    def _require_parent(self, parent_id: int) -> None:
        row = self._conn.execute("SELECT id FROM tasks WHERE id = ?", (parent_id,)).fetchone()
        if row is None:
            raise TaskValidationError(f"Parent task {parent_id} does not exist")

    def _check_no_cycle(self, task_id: int, new_parent_id: int) -> None:
        current = new_parent_id
        while current is not None:
            if current == task_id:
                raise TaskValidationError("A task cannot be moved under itself or its own subtasks")
            row = self._conn.execute("SELECT parent_id FROM tasks WHERE id = ?", (current,)).fetchone()
            current = row["parent_id"] if row else None
