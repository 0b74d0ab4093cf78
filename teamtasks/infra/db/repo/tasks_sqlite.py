# teamtasks/infra/db/repo/tasks_sqlite.py
from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Sequence

import aiosqlite

from teamtasks.domain.common.time import from_iso, to_iso
from teamtasks.domain.tasks.models import Task, TaskPatch, TaskPriority, TaskStatus
from teamtasks.domain.tasks.ports import TaskRepository
from teamtasks.infra.db.connection import Database, Statement

_TASK_COLUMNS = "t.id, t.title, t.description, t.status, t.priority, t.assigned_by, t.due_date, t.created_at, t.updated_at"

# tasks the user created or is assigned to
_VISIBLE_TO = (
    "(t.assigned_by = ? OR EXISTS ("
    "SELECT 1 FROM task_assignees a WHERE a.task_id = t.id AND a.user_id = ?))"
)


def _row_to_task(row: aiosqlite.Row, assignees: Sequence[str]) -> Task:
    return Task(
        id=row["id"],
        title=row["title"],
        description=row["description"],
        status=TaskStatus(row["status"]),
        priority=TaskPriority(row["priority"]),
        assigned_to=tuple(assignees),
        assigned_by=row["assigned_by"],
        due_date=from_iso(row["due_date"]) if row["due_date"] else None,
        created_at=from_iso(row["created_at"]),
        updated_at=from_iso(row["updated_at"]),
    )


def _scope(user_id: Optional[str]) -> tuple[str, list[Any]]:
    if user_id is None:
        return "1=1", []
    return _VISIBLE_TO, [user_id, user_id]


def _assignee_inserts(task_id: str, user_ids: Sequence[str]) -> list[Statement]:
    # guarded so a concurrently deleted task does not trip the foreign key
    return [
        (
            """
            INSERT INTO task_assignees(task_id, user_id, position)
            SELECT ?, ?, ? WHERE EXISTS (SELECT 1 FROM tasks WHERE id = ?);
            """,
            (task_id, user_id, position, task_id),
        )
        for position, user_id in enumerate(user_ids)
    ]


class TaskSqliteRepo(TaskRepository):
    def __init__(self, db: Database) -> None:
        self._db = db

    async def get(self, task_id: str) -> Optional[Task]:
        row = await self._db.fetchone(f"SELECT {_TASK_COLUMNS} FROM tasks t WHERE t.id = ?;", (task_id,))
        if not row:
            return None
        assignees = await self._assignees_for([task_id])
        return _row_to_task(row, assignees.get(task_id, []))

    async def get_many(self, task_ids: Sequence[str]) -> dict[str, Task]:
        if not task_ids:
            return {}
        marks = ",".join("?" for _ in task_ids)
        rows = await self._db.fetchall(
            f"SELECT {_TASK_COLUMNS} FROM tasks t WHERE t.id IN ({marks});",
            tuple(task_ids),
        )
        assignees = await self._assignees_for([r["id"] for r in rows])
        return {r["id"]: _row_to_task(r, assignees.get(r["id"], [])) for r in rows}

    async def insert(self, task: Task) -> None:
        statements: list[Statement] = [
            (
                """
                INSERT INTO tasks(
                  id, title, description, status, priority,
                  assigned_by, due_date, created_at, updated_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?);
                """,
                (
                    task.id,
                    task.title,
                    task.description,
                    task.status.value,
                    task.priority.value,
                    task.assigned_by,
                    to_iso(task.due_date) if task.due_date else None,
                    to_iso(task.created_at),
                    to_iso(task.updated_at),
                ),
            )
        ]
        statements.extend(_assignee_inserts(task.id, task.assigned_to))
        await self._db.execute_all(statements)

    async def update_fields(self, task_id: str, patch: TaskPatch, updated_at: datetime) -> bool:
        sets = ["updated_at = ?"]
        params: list[Any] = [to_iso(updated_at)]
        if patch.title is not None:
            sets.append("title = ?")
            params.append(patch.title)
        if patch.description is not None:
            sets.append("description = ?")
            params.append(patch.description)
        if patch.status is not None:
            sets.append("status = ?")
            params.append(patch.status.value)
        if patch.priority is not None:
            sets.append("priority = ?")
            params.append(patch.priority.value)
        if patch.due_date is not None:
            sets.append("due_date = ?")
            params.append(to_iso(patch.due_date))
        elif patch.clear_due_date:
            sets.append("due_date = NULL")
        params.append(task_id)

        statements: list[Statement] = [(f"UPDATE tasks SET {', '.join(sets)} WHERE id = ?;", tuple(params))]
        if patch.assigned_to is not None:
            statements.append(("DELETE FROM task_assignees WHERE task_id = ?;", (task_id,)))
            statements.extend(_assignee_inserts(task_id, patch.assigned_to))

        counts = await self._db.execute_all(statements)
        return counts[0] > 0

    async def delete(self, task_id: str) -> bool:
        # assignee rows go with the task (ON DELETE CASCADE)
        return await self._db.execute("DELETE FROM tasks WHERE id = ?;", (task_id,)) > 0

    async def list_visible(self, user_id: Optional[str]) -> Sequence[Task]:
        where, params = _scope(user_id)
        rows = await self._db.fetchall(
            f"""
            SELECT {_TASK_COLUMNS}
            FROM tasks t
            WHERE {where}
            ORDER BY t.created_at DESC, t.rowid DESC;
            """,
            tuple(params),
        )
        assignees = await self._assignees_for([r["id"] for r in rows])
        return [_row_to_task(r, assignees.get(r["id"], [])) for r in rows]

    async def count_by_status(self, user_id: Optional[str]) -> dict[TaskStatus, int]:
        where, params = _scope(user_id)
        rows = await self._db.fetchall(
            f"""
            SELECT t.status AS status, COUNT(*) AS n
            FROM tasks t
            WHERE {where}
            GROUP BY t.status;
            """,
            tuple(params),
        )
        out = {s: 0 for s in TaskStatus}
        for r in rows:
            out[TaskStatus(r["status"])] = int(r["n"])
        return out

    async def count_overdue(self, user_id: Optional[str], now: datetime) -> int:
        where, params = _scope(user_id)
        row = await self._db.fetchone(
            f"""
            SELECT COUNT(*) AS n
            FROM tasks t
            WHERE {where}
              AND t.status != ?
              AND t.due_date IS NOT NULL
              AND t.due_date < ?;
            """,
            (*params, TaskStatus.DONE.value, to_iso(now)),
        )
        return int(row["n"]) if row else 0

    async def _assignees_for(self, task_ids: Sequence[str]) -> dict[str, list[str]]:
        if not task_ids:
            return {}
        marks = ",".join("?" for _ in task_ids)
        rows = await self._db.fetchall(
            f"""
            SELECT task_id, user_id
            FROM task_assignees
            WHERE task_id IN ({marks})
            ORDER BY task_id, position;
            """,
            tuple(task_ids),
        )
        out: dict[str, list[str]] = {}
        for r in rows:
            out.setdefault(r["task_id"], []).append(r["user_id"])
        return out
