"""JSON shapes shared by HTTP responses and push payloads."""
from __future__ import annotations

from typing import Any, Optional

from teamtasks.domain.common.time import to_iso
from teamtasks.domain.tasks.models import TaskDetails, TaskStats, TaskStatus
from teamtasks.domain.users.models import User, UserSummary

TASK_DELETED_MESSAGE = "Task has been deleted"


def user_summary_payload(summary: UserSummary) -> dict[str, Any]:
    return {"id": summary.id, "name": summary.name, "email": summary.email}


def task_payload(details: TaskDetails) -> dict[str, Any]:
    task = details.task
    creator: Optional[dict[str, Any]]
    if details.creator is not None:
        creator = user_summary_payload(details.creator)
    else:
        # creator record is gone, keep the id
        creator = {"id": task.assigned_by}
    return {
        "id": task.id,
        "title": task.title,
        "description": task.description,
        "status": task.status.value,
        "priority": task.priority.value,
        "assignedTo": [user_summary_payload(a) for a in details.assignees],
        "assignedBy": creator,
        "dueDate": to_iso(task.due_date) if task.due_date else None,
        "createdAt": to_iso(task.created_at),
        "updatedAt": to_iso(task.updated_at),
    }


def deleted_payload(task_id: str) -> dict[str, Any]:
    return {"taskId": task_id, "message": TASK_DELETED_MESSAGE}


def stats_payload(stats: TaskStats) -> dict[str, Any]:
    return {
        "total": stats.total,
        "overdue": stats.overdue,
        "byStatus": {s.value: stats.by_status.get(s, 0) for s in TaskStatus},
    }


def user_payload(user: User) -> dict[str, Any]:
    return {
        "id": user.id,
        "name": user.name,
        "email": user.email,
        "role": user.role.value,
        "isActive": user.is_active,
        "createdAt": to_iso(user.created_at),
    }
