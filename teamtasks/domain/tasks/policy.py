"""
Who may do what with a task.

Pure functions, no I/O. Ids are compared as plain strings.
"""
from __future__ import annotations

from typing import AbstractSet, Union

from teamtasks.domain.tasks.models import Task, TaskField
from teamtasks.domain.users.models import User

STATUS_ONLY = frozenset({TaskField.STATUS.value})


def is_creator(user: User, task: Task) -> bool:
    return user.id == task.assigned_by


def is_assignee(user: User, task: Task) -> bool:
    return user.id in task.assigned_to


def can_read(user: User, task: Task) -> bool:
    return user.is_admin or is_assignee(user, task) or is_creator(user, task)


def can_write(user: User, task: Task, keys: AbstractSet[Union[TaskField, str]]) -> bool:
    """
    `keys` is every key the request sent, as TaskField members or wire
    names. An assignee may write only when that set is exactly {status}.
    """
    # full write and assignee status write are separate grants, either one is enough
    if user.is_admin or is_creator(user, task):
        return True
    sent = frozenset(k.value if isinstance(k, TaskField) else k for k in keys)
    return sent == STATUS_ONLY and is_assignee(user, task)


def can_delete(user: User, task: Task) -> bool:
    return user.is_admin or is_creator(user, task)
