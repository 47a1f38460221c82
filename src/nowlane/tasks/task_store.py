# src/nowlane/tasks/task_store.py

from __future__ import annotations

import contextlib
import logging
import sqlite3
import time
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from .task_models import Lane, ReminderType, Subtask, Task, UnsortedTask

logger = logging.getLogger(__name__)

_UNSET: Any = object()


class TaskStore:
    """
    SQLite task store.

    The schema is intentionally simple and migration-safe:
    - create tables if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "tasks.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        try:
            total = self.count_tasks()
        except Exception:
            total = -1
        logger.info("TaskStore ready db=%s total=%s", self._db_path, total)

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()

            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    notes TEXT,
                    lane TEXT NOT NULL DEFAULT 'later',
                    created_at REAL NOT NULL,
                    due_at REAL,
                    completed_at REAL,
                    assigned_to TEXT,
                    reminder_type TEXT NOT NULL DEFAULT 'soft',
                    focus_minutes INTEGER NOT NULL DEFAULT 0,
                    is_overdue INTEGER NOT NULL DEFAULT 0
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS subtasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    task_id INTEGER NOT NULL REFERENCES tasks(id) ON DELETE CASCADE,
                    title TEXT NOT NULL,
                    completed INTEGER NOT NULL DEFAULT 0
                )
                """
            )
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS unsorted_tasks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL,
                    created_at REAL NOT NULL
                )
                """
            )

            # Migrations (safe): add missing columns.
            cur.execute("PRAGMA table_info(tasks)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE tasks ADD COLUMN {name} {decl}")
                logger.info("TaskStore migration: added column %s", name)

            add_col("notes", "TEXT")
            add_col("due_at", "REAL")
            add_col("completed_at", "REAL")
            add_col("assigned_to", "TEXT")
            add_col("reminder_type", "TEXT NOT NULL DEFAULT 'soft'")
            add_col("focus_minutes", "INTEGER NOT NULL DEFAULT 0")
            add_col("is_overdue", "INTEGER NOT NULL DEFAULT 0")

            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_lane_open ON tasks(lane, completed_at)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_tasks_due ON tasks(completed_at, due_at)")
            cur.execute("CREATE INDEX IF NOT EXISTS idx_subtasks_task ON subtasks(task_id)")

            conn.commit()
        finally:
            conn.close()

    @staticmethod
    def _clean_title(title: str | None) -> str:
        return (title or "").strip()

    def _load_subtasks(self, conn: sqlite3.Connection, task_ids: list[int]) -> dict[int, list[Subtask]]:
        out: dict[int, list[Subtask]] = {tid: [] for tid in task_ids}
        if not task_ids:
            return out
        placeholders = ",".join("?" for _ in task_ids)
        cur = conn.execute(
            f"SELECT * FROM subtasks WHERE task_id IN ({placeholders}) ORDER BY id ASC",
            task_ids,
        )
        for row in cur.fetchall():
            out.setdefault(int(row["task_id"]), []).append(
                Subtask(id=int(row["id"]), title=str(row["title"]), completed=bool(row["completed"]))
            )
        return out

    @staticmethod
    def _row_to_task(row: sqlite3.Row, subtasks: list[Subtask] | None = None) -> Task:
        return Task(
            id=int(row["id"]),
            title=str(row["title"] or ""),
            lane=Lane.from_db(row["lane"]),
            created_at=float(row["created_at"] or 0.0),
            due_at=float(row["due_at"]) if row["due_at"] is not None else None,
            notes=row["notes"],
            completed_at=float(row["completed_at"]) if row["completed_at"] is not None else None,
            assigned_to=row["assigned_to"],
            subtasks=list(subtasks or []),
            reminder_type=ReminderType.from_db(row["reminder_type"]),
            focus_minutes=int(row["focus_minutes"] or 0),
            is_overdue=bool(row["is_overdue"]),
        )

    def _select_tasks(self, where: str, params: Iterable[Any] = (), order: str = "created_at DESC, id DESC") -> list[Task]:
        conn = self._get_conn()
        try:
            cur = conn.execute(f"SELECT * FROM tasks WHERE {where} ORDER BY {order}", tuple(params))
            rows = cur.fetchall()
            subtasks = self._load_subtasks(conn, [int(r["id"]) for r in rows])
            return [self._row_to_task(r, subtasks.get(int(r["id"]))) for r in rows]
        finally:
            conn.close()

    # ---- public API: tasks ----

    def count_tasks(self) -> int:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute("SELECT COUNT(*) FROM tasks")
            (n,) = cur.fetchone()
            return int(n)
        finally:
            conn.close()

    def add_task(
        self,
        *,
        title: str,
        lane: Lane,
        due_at: float | None = None,
        notes: str | None = None,
        assigned_to: str | None = None,
        reminder_type: ReminderType = ReminderType.SOFT,
        created_at: float | None = None,
    ) -> int:
        title = self._clean_title(title)
        if not title:
            raise ValueError("title is required")

        now = time.time() if created_at is None else float(created_at)

        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                INSERT INTO tasks(
                    title, notes, lane, created_at, due_at,
                    assigned_to, reminder_type, focus_minutes, is_overdue
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, 0, 0)
                """,
                (
                    title,
                    notes,
                    Lane(lane).value,
                    now,
                    due_at,
                    assigned_to,
                    ReminderType(reminder_type).value,
                ),
            )
            conn.commit()
            rowid = cur.lastrowid
            if rowid is None:
                raise RuntimeError("SQLite did not return lastrowid for tasks insert")
            task_id = int(rowid)
            logger.debug("Task added id=%s lane=%s due_at=%s", task_id, lane, due_at)
            return task_id
        finally:
            conn.close()

    def get_task(self, task_id: int) -> Task | None:
        tasks = self._select_tasks("id = ?", (int(task_id),))
        return tasks[0] if tasks else None

    def list_tasks_by_lane(self, lane: Lane) -> list[Task]:
        """Open tasks in a lane, newest first."""
        return self._select_tasks("lane = ? AND completed_at IS NULL", (Lane(lane).value,))

    def list_open_tasks(self) -> list[Task]:
        return self._select_tasks("completed_at IS NULL", order="COALESCE(due_at, created_at) ASC, id ASC")

    def list_completed_tasks(self) -> list[Task]:
        return self._select_tasks("completed_at IS NOT NULL", order="completed_at DESC, id DESC")

    def complete_task(self, task_id: int, *, now_ts: float | None = None) -> bool:
        """Mark a task completed. Returns False if it is missing or already completed."""
        if now_ts is None:
            now_ts = time.time()
        conn = self._get_conn()
        try:
            cur = conn.execute(
                "UPDATE tasks SET completed_at = ? WHERE id = ? AND completed_at IS NULL",
                (float(now_ts), int(task_id)),
            )
            conn.commit()
            return cur.rowcount == 1
        finally:
            conn.close()

    def delete_task(self, task_id: int) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM tasks WHERE id = ?", (int(task_id),))
            conn.commit()
        finally:
            conn.close()

    def move_task(self, task_id: int, lane: Lane, due_at: float | None) -> bool:
        """Manual move: new lane, new due timestamp, overdue flag cleared."""
        conn = self._get_conn()
        try:
            cur = conn.execute(
                "UPDATE tasks SET lane = ?, due_at = ?, is_overdue = 0 WHERE id = ?",
                (Lane(lane).value, due_at, int(task_id)),
            )
            conn.commit()
            return cur.rowcount == 1
        finally:
            conn.close()

    def update_task_fields(
        self,
        task_id: int,
        *,
        title: str | None = None,
        notes: Any = _UNSET,
        lane: Lane | None = None,
        due_at: float | None = None,
        is_overdue: bool | None = None,
        assigned_to: Any = _UNSET,
        reminder_type: ReminderType | None = None,
    ) -> None:
        fields: list[str] = []
        params: list[Any] = []

        if title is not None:
            clean = self._clean_title(title)
            if not clean:
                raise ValueError("title is required")
            fields.append("title = ?")
            params.append(clean)

        if notes is not _UNSET:
            fields.append("notes = ?")
            params.append(notes)

        if lane is not None:
            fields.append("lane = ?")
            params.append(Lane(lane).value)

        if due_at is not None:
            fields.append("due_at = ?")
            params.append(float(due_at))

        if is_overdue is not None:
            fields.append("is_overdue = ?")
            params.append(1 if is_overdue else 0)

        if assigned_to is not _UNSET:
            fields.append("assigned_to = ?")
            params.append(assigned_to)

        if reminder_type is not None:
            fields.append("reminder_type = ?")
            params.append(ReminderType(reminder_type).value)

        if not fields:
            return

        params.append(int(task_id))
        sql = f"UPDATE tasks SET {', '.join(fields)} WHERE id = ?"

        conn = self._get_conn()
        try:
            conn.execute(sql, params)
            conn.commit()
        finally:
            conn.close()

    def add_focus_time(self, task_id: int, minutes: int) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                "UPDATE tasks SET focus_minutes = focus_minutes + ? WHERE id = ?",
                (max(0, int(minutes)), int(task_id)),
            )
            conn.commit()
        finally:
            conn.close()

    # ---- public API: subtasks ----

    def add_subtask(self, task_id: int, title: str) -> int | None:
        """Append a subtask. Blank titles are ignored (returns None)."""
        title = self._clean_title(title)
        if not title:
            return None
        conn = self._get_conn()
        try:
            cur = conn.execute(
                "INSERT INTO subtasks(task_id, title, completed) VALUES (?, ?, 0)",
                (int(task_id), title),
            )
            conn.commit()
            return int(cur.lastrowid) if cur.lastrowid is not None else None
        finally:
            conn.close()

    def toggle_subtask(self, task_id: int, subtask_id: int) -> bool | None:
        """
        Flip a subtask's completed flag.

        Returns the new flag, or None if the subtask does not belong to the task.
        """
        conn = self._get_conn()
        try:
            cur = conn.execute(
                "SELECT completed FROM subtasks WHERE id = ? AND task_id = ?",
                (int(subtask_id), int(task_id)),
            )
            row = cur.fetchone()
            if row is None:
                return None
            new_flag = not bool(row["completed"])
            conn.execute(
                "UPDATE subtasks SET completed = ? WHERE id = ?",
                (1 if new_flag else 0, int(subtask_id)),
            )
            conn.commit()
            return new_flag
        finally:
            conn.close()

    def delete_subtask(self, task_id: int, subtask_id: int) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                "DELETE FROM subtasks WHERE id = ? AND task_id = ?",
                (int(subtask_id), int(task_id)),
            )
            conn.commit()
        finally:
            conn.close()

    # ---- public API: unsorted inbox ----

    def add_unsorted_task(self, title: str) -> int | None:
        ids = self.add_unsorted_tasks([title])
        return ids[0] if ids else None

    def add_unsorted_tasks(self, titles: Iterable[str]) -> list[int]:
        """Bulk quick-dump; blank titles are dropped."""
        clean = [t for t in (self._clean_title(x) for x in titles) if t]
        if not clean:
            return []
        now = time.time()
        ids: list[int] = []
        conn = self._get_conn()
        try:
            for title in clean:
                cur = conn.execute(
                    "INSERT INTO unsorted_tasks(title, created_at) VALUES (?, ?)",
                    (title, now),
                )
                if cur.lastrowid is not None:
                    ids.append(int(cur.lastrowid))
            conn.commit()
            return ids
        finally:
            conn.close()

    def get_unsorted_task(self, unsorted_id: int) -> UnsortedTask | None:
        conn = self._get_conn()
        try:
            cur = conn.execute("SELECT * FROM unsorted_tasks WHERE id = ?", (int(unsorted_id),))
            row = cur.fetchone()
            if row is None:
                return None
            return UnsortedTask(id=int(row["id"]), title=str(row["title"]), created_at=float(row["created_at"]))
        finally:
            conn.close()

    def list_unsorted_tasks(self) -> list[UnsortedTask]:
        conn = self._get_conn()
        try:
            cur = conn.execute("SELECT * FROM unsorted_tasks ORDER BY id ASC")
            return [
                UnsortedTask(id=int(r["id"]), title=str(r["title"]), created_at=float(r["created_at"]))
                for r in cur.fetchall()
            ]
        finally:
            conn.close()

    def remove_unsorted_task(self, unsorted_id: int) -> None:
        conn = self._get_conn()
        try:
            conn.execute("DELETE FROM unsorted_tasks WHERE id = ?", (int(unsorted_id),))
            conn.commit()
        finally:
            conn.close()
