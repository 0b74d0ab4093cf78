from __future__ import annotations

import logging
from typing import Iterable, Optional, Sequence

from teamtasks.domain.common.errors import AuthorizationError, NotFoundError, ValidationError
from teamtasks.domain.tasks.models import (
    DEFAULT_PRIORITY,
    DEFAULT_STATUS,
    Notification,
    Task,
    TaskDetails,
    TaskEvent,
    TaskPatch,
    TaskStats,
)
from teamtasks.domain.tasks.policy import can_delete, can_read, can_write
from teamtasks.domain.tasks.ports import Clock, IdGenerator, Notifier, TaskRepository
from teamtasks.domain.tasks.rules import validate_new_task
from teamtasks.domain.tasks.views import deleted_payload, task_payload
from teamtasks.domain.users.models import User, summarize
from teamtasks.domain.users.ports import UserDirectory

logger = logging.getLogger(__name__)


class _Outbox:
    """Ordered notifications for one call; a (user, event) pair is kept once."""

    def __init__(self, payload: dict) -> None:
        self._payload = payload
        self._seen: set[tuple[str, TaskEvent]] = set()
        self.items: list[Notification] = []

    def add(self, user_id: str, event: TaskEvent) -> None:
        key = (user_id, event)
        if key in self._seen:
            return
        self._seen.add(key)
        self.items.append(Notification(target_user_id=user_id, event=event, payload=self._payload))

    def add_all(self, user_ids: Iterable[str], event: TaskEvent) -> None:
        for user_id in user_ids:
            self.add(user_id, event)


class TaskService:
    """
    Task lifecycle: validation, permissions, persistence and notifications.
    No aiohttp. No sqlite.
    """

    def __init__(
        self,
        repo: TaskRepository,
        users: UserDirectory,
        notifier: Notifier,
        clock: Clock,
        ids: IdGenerator,
    ) -> None:
        self._repo = repo
        self._users = users
        self._notifier = notifier
        self._clock = clock
        self._ids = ids

    async def create(self, creator: User, patch: TaskPatch) -> TaskDetails:
        validate_new_task(patch)
        await self._ensure_assignable(patch.assigned_to or ())

        now = self._clock.now()
        task = Task(
            id=self._ids.new_id(),
            title=patch.title or "",
            description=patch.description or "",
            status=patch.status or DEFAULT_STATUS,
            priority=patch.priority or DEFAULT_PRIORITY,
            assigned_to=tuple(patch.assigned_to or ()),
            assigned_by=creator.id,
            due_date=patch.due_date,
            created_at=now,
            updated_at=now,
        )
        await self._repo.insert(task)
        logger.info("Task created: task_id=%s by=%s assignees=%s", task.id, creator.id, list(task.assigned_to))

        details = await self._details(task)
        outbox = _Outbox(task_payload(details))
        outbox.add_all(task.assigned_to, TaskEvent.ASSIGNED)
        outbox.add(creator.id, TaskEvent.CREATED)
        self._dispatch(outbox.items)
        return details

    async def get(self, requester: User, task_id: str) -> TaskDetails:
        task = await self._load(task_id)
        if not can_read(requester, task):
            raise AuthorizationError("Access denied")
        return await self._details(task)

    async def update(self, requester: User, task_id: str, patch: TaskPatch) -> TaskDetails:
        if not patch.fields:
            raise ValidationError("No fields to update.")
        task = await self._load(task_id)
        if not can_write(requester, task, patch.requested):
            raise AuthorizationError("Access denied")
        if patch.assigned_to is not None:
            await self._ensure_assignable(patch.assigned_to)
        return await self._apply_update(requester, task, patch)

    async def bulk_update(self, requester: User, task_ids: Sequence[str], patch: TaskPatch) -> list[TaskDetails]:
        """
        Apply one patch to several tasks. Every task is checked before the
        first write; the writes themselves are independent.
        """
        if not task_ids:
            raise ValidationError("Task IDs array is required.")
        if not patch.fields:
            raise ValidationError("No fields to update.")

        ordered = list(dict.fromkeys(task_ids))
        found = await self._repo.get_many(ordered)
        for task_id in ordered:
            task = found.get(task_id)
            if task is None:
                raise NotFoundError(f"Task {task_id} not found")
            if not can_write(requester, task, patch.requested):
                raise AuthorizationError(f"Access denied for task {task_id}")
        if patch.assigned_to is not None:
            await self._ensure_assignable(patch.assigned_to)

        out: list[TaskDetails] = []
        for task_id in ordered:
            out.append(await self._apply_update(requester, found[task_id], patch))
        return out

    async def delete(self, requester: User, task_id: str) -> None:
        task = await self._load(task_id)
        if not can_delete(requester, task):
            raise AuthorizationError("Access denied")
        if not await self._repo.delete(task.id):
            raise NotFoundError("Task not found")
        logger.info("Task deleted: task_id=%s by=%s", task.id, requester.id)

        outbox = _Outbox(deleted_payload(task.id))
        outbox.add_all(task.assigned_to, TaskEvent.DELETED)
        outbox.add(task.assigned_by, TaskEvent.DELETED)
        if requester.is_admin:
            outbox.add(requester.id, TaskEvent.DELETED)
        self._dispatch(outbox.items)

    async def list_for(self, requester: User) -> list[TaskDetails]:
        tasks = await self._repo.list_visible(self._scope(requester))
        return await self._details_many(tasks)

    async def stats(self, requester: User) -> TaskStats:
        scope = self._scope(requester)
        by_status = await self._repo.count_by_status(scope)
        overdue = await self._repo.count_overdue(scope, self._clock.now())
        return TaskStats(total=sum(by_status.values()), overdue=overdue, by_status=by_status)

    # --- internals ---

    async def _apply_update(self, requester: User, task: Task, patch: TaskPatch) -> TaskDetails:
        before = task.assigned_to
        if not await self._repo.update_fields(task.id, patch, self._clock.now()):
            raise NotFoundError("Task not found")
        updated = await self._repo.get(task.id)
        if updated is None:
            raise NotFoundError("Task not found")
        logger.info(
            "Task updated: task_id=%s by=%s fields=%s",
            task.id,
            requester.id,
            sorted(f.value for f in patch.fields),
        )

        details = await self._details(updated)
        outbox = _Outbox(task_payload(details))
        outbox.add_all(before, TaskEvent.UPDATED)
        outbox.add_all((uid for uid in updated.assigned_to if uid not in before), TaskEvent.ASSIGNED)
        outbox.add(updated.assigned_by, TaskEvent.UPDATED)
        if requester.is_admin:
            outbox.add(requester.id, TaskEvent.UPDATED)
        self._dispatch(outbox.items)
        return details

    async def _load(self, task_id: str) -> Task:
        task = await self._repo.get(task_id)
        if task is None:
            raise NotFoundError("Task not found")
        return task

    async def _ensure_assignable(self, user_ids: Sequence[str]) -> None:
        if not user_ids:
            raise ValidationError("AssignedTo is required and must be an array of user IDs.")
        active = await self._users.active_ids(user_ids)
        if len(active) != len(set(user_ids)):
            raise ValidationError("One or more assigned users do not exist or are inactive.")

    @staticmethod
    def _scope(requester: User) -> Optional[str]:
        return None if requester.is_admin else requester.id

    async def _details(self, task: Task) -> TaskDetails:
        return (await self._details_many([task]))[0]

    async def _details_many(self, tasks: Sequence[Task]) -> list[TaskDetails]:
        wanted: set[str] = set()
        for t in tasks:
            wanted.update(t.assigned_to)
            wanted.add(t.assigned_by)
        users = await self._users.get_many(wanted) if wanted else {}

        out: list[TaskDetails] = []
        for t in tasks:
            creator = users.get(t.assigned_by)
            out.append(
                TaskDetails(
                    task=t,
                    assignees=tuple(summarize(users[uid]) for uid in t.assigned_to if uid in users),
                    creator=summarize(creator) if creator else None,
                )
            )
        return out

    def _dispatch(self, notifications: Sequence[Notification]) -> None:
        for n in notifications:
            try:
                self._notifier.deliver(n)
            except Exception as e:
                # the mutation is already persisted at this point
                logger.warning(
                    "Notification dropped: user_id=%s event=%s error=%s",
                    n.target_user_id,
                    n.event.value,
                    e,
                    exc_info=True,
                )
