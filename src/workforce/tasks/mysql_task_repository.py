from __future__ import annotations

from collections import defaultdict
from typing import Dict, List, Optional, Sequence

from ..core.enums import ProgressStatus, TaskPriority, TaskStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import AssigneeProgress, NewTask, Task, TaskFilter
from .repository import TaskRepository

_TASK_COLUMNS = """
    t.task_id, t.title, t.description, t.start_date, t.due_date, t.estimated_days,
    t.priority, t.status, t.notes, t.created_by,
    t.completion_requested_by, t.completion_requested_at,
    t.approved_by, t.approved_at, t.completed_date,
    t.rejection_reason, t.rejected_by, t.rejected_at,
    t.created_at, t.updated_at
"""


def _opt_int(value) -> Optional[int]:
    return int(value) if value is not None else None


class MySQLTaskRepository(TaskRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, task_id: int) -> Optional[Task]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_TASK_COLUMNS} FROM tasks t WHERE t.task_id=%s", (int(task_id),))
            row = fetchone(cur)
            if not row:
                return None
            return self._hydrate(cur, [row])[0]

    def create(self, task: NewTask) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO tasks(
                    title, description, start_date, due_date, estimated_days,
                    priority, status, notes, created_by
                )
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    task.title,
                    task.description,
                    task.start_date,
                    task.due_date,
                    int(task.estimated_days),
                    task.priority.value,
                    TaskStatus.PENDING.value,
                    task.notes,
                    task.created_by,
                ),
            )
            task_id = int(cur.lastrowid)
            self._write_children(cur, task_id, task.progress, task.tags)
            return task_id

    def save(self, task: Task) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE tasks
                SET title=%s, description=%s, start_date=%s, due_date=%s, estimated_days=%s,
                    priority=%s, status=%s, notes=%s,
                    completion_requested_by=%s, completion_requested_at=%s,
                    approved_by=%s, approved_at=%s, completed_date=%s,
                    rejection_reason=%s, rejected_by=%s, rejected_at=%s
                WHERE task_id=%s
                """,
                (
                    task.title,
                    task.description,
                    task.start_date,
                    task.due_date,
                    int(task.estimated_days),
                    task.priority.value,
                    task.status.value,
                    task.notes,
                    task.completion_requested_by,
                    task.completion_requested_at,
                    task.approved_by,
                    task.approved_at,
                    task.completed_date,
                    task.rejection_reason,
                    task.rejected_by,
                    task.rejected_at,
                    task.task_id,
                ),
            )
            if cur.rowcount <= 0:
                return False

            cur.execute("DELETE FROM task_assignees WHERE task_id=%s", (task.task_id,))
            cur.execute("DELETE FROM task_tags WHERE task_id=%s", (task.task_id,))
            self._write_children(cur, task.task_id, task.progress, task.tags)
            return True

    def delete_by_id(self, task_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM task_assignees WHERE task_id=%s", (int(task_id),))
            cur.execute("DELETE FROM task_tags WHERE task_id=%s", (int(task_id),))
            cur.execute("DELETE FROM tasks WHERE task_id=%s", (int(task_id),))
            return cur.rowcount > 0

    def find(self, flt: TaskFilter, *, limit: int) -> Sequence[Task]:
        clauses: list[str] = []
        params: list[object] = []

        if flt.status is not None:
            clauses.append("t.status=%s")
            params.append(flt.status.value)
        if flt.priority is not None:
            clauses.append("t.priority=%s")
            params.append(flt.priority.value)
        if flt.assignee is not None:
            clauses.append("EXISTS (SELECT 1 FROM task_assignees ta WHERE ta.task_id=t.task_id AND ta.user_id=%s)")
            params.append(int(flt.assignee))

        where = f"WHERE {' AND '.join(clauses)}" if clauses else ""
        params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_TASK_COLUMNS}
                FROM tasks t
                {where}
                ORDER BY t.created_at DESC, t.task_id DESC
                LIMIT %s
                """,
                tuple(params),
            )
            return self._hydrate(cur, fetchall(cur))

    def find_pending_approval(self, *, limit: int) -> Sequence[Task]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"""
                SELECT {_TASK_COLUMNS}
                FROM tasks t
                WHERE t.status=%s
                ORDER BY t.completion_requested_at DESC, t.task_id DESC
                LIMIT %s
                """,
                (TaskStatus.COMPLETION_REQUESTED.value, int(limit)),
            )
            return self._hydrate(cur, fetchall(cur))

    # ----- internals ------------------------------------------------------

    @staticmethod
    def _write_children(cur, task_id: int, progress: Sequence[AssigneeProgress], tags: Sequence[str]) -> None:
        if progress:
            cur.executemany(
                """
                INSERT INTO task_assignees(task_id, user_id, position, status, notes, completion_requested_at)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                [
                    (task_id, p.user_id, pos, p.status.value, p.notes, p.completion_requested_at)
                    for pos, p in enumerate(progress)
                ],
            )
        if tags:
            cur.executemany(
                "INSERT INTO task_tags(task_id, position, tag) VALUES(%s,%s,%s)",
                [(task_id, pos, tag) for pos, tag in enumerate(tags)],
            )

    @staticmethod
    def _hydrate(cur, rows: List[dict]) -> List[Task]:
        if not rows:
            return []

        ids = [int(r["task_id"]) for r in rows]
        placeholders, params = in_clause(ids)

        cur.execute(
            f"""
            SELECT task_id, user_id, status, notes, completion_requested_at
            FROM task_assignees
            WHERE task_id IN ({placeholders})
            ORDER BY task_id, position
            """,
            params,
        )
        progress: Dict[int, List[AssigneeProgress]] = defaultdict(list)
        for r in fetchall(cur):
            progress[int(r["task_id"])].append(
                AssigneeProgress(
                    user_id=int(r["user_id"]),
                    status=ProgressStatus(r["status"]),
                    notes=r.get("notes"),
                    completion_requested_at=r.get("completion_requested_at"),
                )
            )

        cur.execute(
            f"SELECT task_id, tag FROM task_tags WHERE task_id IN ({placeholders}) ORDER BY task_id, position",
            params,
        )
        tags: Dict[int, List[str]] = defaultdict(list)
        for r in fetchall(cur):
            tags[int(r["task_id"])].append(r["tag"])

        out: List[Task] = []
        for r in rows:
            tid = int(r["task_id"])
            entries = tuple(progress.get(tid, []))
            out.append(
                Task(
                    task_id=tid,
                    title=r["title"],
                    description=r["description"],
                    start_date=r.get("start_date"),
                    due_date=r["due_date"],
                    estimated_days=int(r.get("estimated_days") or 1),
                    priority=TaskPriority(r["priority"]),
                    status=TaskStatus(r["status"]),
                    notes=r.get("notes"),
                    created_by=int(r["created_by"]),
                    assignees=tuple(p.user_id for p in entries),
                    progress=entries,
                    tags=tuple(tags.get(tid, [])),
                    completion_requested_by=_opt_int(r.get("completion_requested_by")),
                    completion_requested_at=r.get("completion_requested_at"),
                    approved_by=_opt_int(r.get("approved_by")),
                    approved_at=r.get("approved_at"),
                    completed_date=r.get("completed_date"),
                    rejection_reason=r.get("rejection_reason"),
                    rejected_by=_opt_int(r.get("rejected_by")),
                    rejected_at=r.get("rejected_at"),
                    created_at=r.get("created_at"),
                    updated_at=r.get("updated_at"),
                )
            )
        return out
