from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional

from teamtasks.domain.users.models import UserSummary


class TaskStatus(str, Enum):
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    REVIEW = "review"
    DONE = "done"


class TaskPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class TaskField(str, Enum):
    """Mutable task fields, named as they appear on the wire."""
    TITLE = "title"
    DESCRIPTION = "description"
    STATUS = "status"
    PRIORITY = "priority"
    ASSIGNED_TO = "assignedTo"
    DUE_DATE = "dueDate"


class TaskEvent(str, Enum):
    CREATED = "taskCreated"
    ASSIGNED = "taskAssigned"
    UPDATED = "taskUpdated"
    DELETED = "taskDeleted"


DEFAULT_STATUS = TaskStatus.TODO
DEFAULT_PRIORITY = TaskPriority.MEDIUM


@dataclass(frozen=True)
class Task:
    id: str
    title: str
    description: str
    status: TaskStatus
    priority: TaskPriority
    assigned_to: tuple[str, ...]
    assigned_by: str
    due_date: Optional[datetime]
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class TaskPatch:
    """
    A set of field values coming from one request.

    Only the fields present in the request are set. `due_date` can be
    cleared, so its presence is tracked separately in `clear_due_date`.
    Keys the request sent without a usable value (null or unknown names)
    are kept in `extra_keys`; they change nothing but still count as sent.
    """
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[TaskStatus] = None
    priority: Optional[TaskPriority] = None
    assigned_to: Optional[tuple[str, ...]] = None
    due_date: Optional[datetime] = None
    clear_due_date: bool = False
    extra_keys: frozenset[str] = frozenset()

    @property
    def fields(self) -> frozenset[TaskField]:
        present = set()
        if self.title is not None:
            present.add(TaskField.TITLE)
        if self.description is not None:
            present.add(TaskField.DESCRIPTION)
        if self.status is not None:
            present.add(TaskField.STATUS)
        if self.priority is not None:
            present.add(TaskField.PRIORITY)
        if self.assigned_to is not None:
            present.add(TaskField.ASSIGNED_TO)
        if self.due_date is not None or self.clear_due_date:
            present.add(TaskField.DUE_DATE)
        return frozenset(present)

    @property
    def requested(self) -> frozenset[str]:
        """Wire names of every key the request carried."""
        return frozenset(f.value for f in self.fields) | self.extra_keys


@dataclass(frozen=True)
class TaskDetails:
    """Task with assignee and creator identities resolved, for responses only."""
    task: Task
    assignees: tuple[UserSummary, ...]
    creator: Optional[UserSummary]


@dataclass(frozen=True)
class TaskStats:
    total: int
    overdue: int
    by_status: dict[TaskStatus, int] = field(default_factory=dict)


@dataclass(frozen=True)
class Notification:
    target_user_id: str
    event: TaskEvent
    payload: dict[str, Any]
