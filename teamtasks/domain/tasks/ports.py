from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Optional, Sequence

from teamtasks.domain.tasks.models import Notification, Task, TaskPatch, TaskStatus


class Clock(ABC):
    @abstractmethod
    def now(self) -> datetime: ...


class IdGenerator(ABC):
    @abstractmethod
    def new_id(self) -> str: ...


class TaskRepository(ABC):
    @abstractmethod
    async def get(self, task_id: str) -> Optional[Task]: ...

    @abstractmethod
    async def get_many(self, task_ids: Sequence[str]) -> dict[str, Task]: ...

    @abstractmethod
    async def insert(self, task: Task) -> None: ...

    @abstractmethod
    async def update_fields(self, task_id: str, patch: TaskPatch, updated_at: datetime) -> bool:
        """Write only the fields present in `patch`. False if no such task."""

    @abstractmethod
    async def delete(self, task_id: str) -> bool: ...

    @abstractmethod
    async def list_visible(self, user_id: Optional[str]) -> Sequence[Task]:
        """All tasks when user_id is None, otherwise those assigned to or created by the user."""

    @abstractmethod
    async def count_by_status(self, user_id: Optional[str]) -> dict[TaskStatus, int]: ...

    @abstractmethod
    async def count_overdue(self, user_id: Optional[str], now: datetime) -> int: ...


class Notifier(ABC):
    @abstractmethod
    def deliver(self, notification: Notification) -> None:
        """Best-effort push. Must not block or raise into the caller."""
