"""
Unit tests for task read/write/delete decisions.
"""
from datetime import datetime, timezone

from teamtasks.domain.tasks.models import Task, TaskField, TaskPriority, TaskStatus
from teamtasks.domain.tasks.policy import can_delete, can_read, can_write
from teamtasks.domain.users.models import Role, User

NOW = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _user(user_id: str, role: Role = Role.USER) -> User:
    return User(id=user_id, name=user_id, email=f"{user_id}@example.com", role=role, is_active=True, created_at=NOW)


def _task(assigned_to=("u1", "u2"), assigned_by="creator") -> Task:
    return Task(
        id="t1",
        title="Ship",
        description="v1",
        status=TaskStatus.TODO,
        priority=TaskPriority.MEDIUM,
        assigned_to=tuple(assigned_to),
        assigned_by=assigned_by,
        due_date=None,
        created_at=NOW,
        updated_at=NOW,
    )


ADMIN = _user("boss", Role.ADMIN)
CREATOR = _user("creator")
ASSIGNEE = _user("u1")
STRANGER = _user("nobody")

ALL_FIELDS = frozenset(TaskField)


def test_can_read_matrix():
    """Admin, assignee and creator can read; anyone else cannot."""
    task = _task()
    assert can_read(ADMIN, task)
    assert can_read(CREATOR, task)
    assert can_read(ASSIGNEE, task)
    assert not can_read(STRANGER, task)


def test_ids_compared_by_value():
    """A different User instance with the same id has the same rights."""
    task = _task()
    twin = _user("".join(["u", "1"]))
    assert twin is not ASSIGNEE
    assert can_read(twin, task)
    assert can_write(twin, task, {TaskField.STATUS})


def test_assignee_may_write_status_only():
    task = _task()
    assert can_write(ASSIGNEE, task, {TaskField.STATUS})
    assert not can_write(ASSIGNEE, task, {TaskField.STATUS, TaskField.PRIORITY})
    assert not can_write(ASSIGNEE, task, {TaskField.PRIORITY})
    assert not can_write(ASSIGNEE, task, set())


def test_assignee_status_grant_counts_every_sent_key():
    task = _task()
    assert can_write(ASSIGNEE, task, {"status"})
    assert not can_write(ASSIGNEE, task, {"status", "priority"})
    assert not can_write(ASSIGNEE, task, {"status", "_id"})
    assert can_write(CREATOR, task, {"status", "_id"})


def test_admin_and_creator_may_write_any_field_set():
    task = _task()
    for fields in ({TaskField.STATUS}, {TaskField.TITLE, TaskField.ASSIGNED_TO}, ALL_FIELDS):
        assert can_write(ADMIN, task, fields)
        assert can_write(CREATOR, task, fields)


def test_creator_not_assigned_still_has_full_write():
    """Creator grant and assignee grant combine with OR."""
    task = _task(assigned_to=("u1",), assigned_by="creator")
    assert CREATOR.id not in task.assigned_to
    assert can_write(CREATOR, task, {TaskField.STATUS})
    assert can_write(CREATOR, task, {TaskField.STATUS, TaskField.PRIORITY})


def test_creator_who_is_also_assignee_keeps_full_write():
    task = _task(assigned_to=("creator",), assigned_by="creator")
    assert can_write(CREATOR, task, ALL_FIELDS)


def test_stranger_cannot_write_even_status():
    assert not can_write(STRANGER, _task(), {TaskField.STATUS})


def test_delete_is_admin_or_creator_only():
    task = _task()
    assert can_delete(ADMIN, task)
    assert can_delete(CREATOR, task)
    assert not can_delete(ASSIGNEE, task)
    assert not can_delete(STRANGER, task)
