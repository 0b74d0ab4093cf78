from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Mapping, Optional

from teamtasks.domain.common.errors import ValidationError
from teamtasks.domain.tasks.models import TaskField, TaskPatch, TaskPriority, TaskStatus

TITLE_MAX_LEN = 200
DESCRIPTION_MAX_LEN = 5000

_FIELD_NAMES = frozenset(f.value for f in TaskField)


def validate_title(title: Any) -> str:
    if not isinstance(title, str) or not title.strip():
        raise ValidationError("Title must be a non-empty string.")
    title = title.strip()
    if len(title) > TITLE_MAX_LEN:
        raise ValidationError(f"Title is too long (max {TITLE_MAX_LEN} chars).")
    return title


def validate_description(description: Any) -> str:
    if not isinstance(description, str):
        raise ValidationError("Description must be a string.")
    description = description.strip()
    if len(description) > DESCRIPTION_MAX_LEN:
        raise ValidationError(f"Description is too long (max {DESCRIPTION_MAX_LEN} chars).")
    return description


def parse_status(value: Any) -> TaskStatus:
    try:
        return TaskStatus(value)
    except ValueError:
        allowed = ", ".join(s.value for s in TaskStatus)
        raise ValidationError(f"Invalid status. Must be one of: {allowed}.") from None


def parse_priority(value: Any) -> TaskPriority:
    try:
        return TaskPriority(value)
    except ValueError:
        allowed = ", ".join(p.value for p in TaskPriority)
        raise ValidationError(f"Invalid priority. Must be one of: {allowed}.") from None


def parse_assignees(value: Any) -> tuple[str, ...]:
    if not isinstance(value, (list, tuple)) or not value:
        raise ValidationError("AssignedTo is required and must be an array of user IDs.")
    out: list[str] = []
    for item in value:
        if not isinstance(item, str) or not item.strip():
            raise ValidationError("AssignedTo must contain user ID strings.")
        if item.strip() not in out:
            out.append(item.strip())
    return tuple(out)


def parse_due_date(value: Any) -> datetime:
    if not isinstance(value, str) or not value.strip():
        raise ValidationError("Due date must be an ISO 8601 string.")
    try:
        dt = datetime.fromisoformat(value.strip())
    except ValueError:
        raise ValidationError("Due date must be an ISO 8601 string.") from None
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def parse_task_patch(body: Mapping[str, Any]) -> TaskPatch:
    """
    Build a patch from a request body. Keys outside TaskField set no value;
    a key present with null counts as absent, except dueDate where null clears.
    Both kinds are still recorded as sent, for permission checks.
    """
    def present(f: TaskField) -> bool:
        return f.value in body and body[f.value] is not None

    due_date: Optional[datetime] = None
    clear_due_date = False
    if TaskField.DUE_DATE.value in body:
        raw = body[TaskField.DUE_DATE.value]
        if raw is None:
            clear_due_date = True
        else:
            due_date = parse_due_date(raw)

    # dueDate: null clears the date, it is not an extra key
    extra_keys = frozenset(
        key
        for key, value in body.items()
        if key not in _FIELD_NAMES or (value is None and key != TaskField.DUE_DATE.value)
    )

    return TaskPatch(
        title=validate_title(body[TaskField.TITLE.value]) if present(TaskField.TITLE) else None,
        description=(
            validate_description(body[TaskField.DESCRIPTION.value])
            if present(TaskField.DESCRIPTION)
            else None
        ),
        status=parse_status(body[TaskField.STATUS.value]) if present(TaskField.STATUS) else None,
        priority=parse_priority(body[TaskField.PRIORITY.value]) if present(TaskField.PRIORITY) else None,
        assigned_to=(
            parse_assignees(body[TaskField.ASSIGNED_TO.value])
            if present(TaskField.ASSIGNED_TO)
            else None
        ),
        due_date=due_date,
        clear_due_date=clear_due_date,
        extra_keys=extra_keys,
    )


def validate_new_task(patch: TaskPatch) -> None:
    if patch.title is None or not patch.description:
        raise ValidationError("Title and description are required.")
    if not patch.assigned_to:
        raise ValidationError("AssignedTo is required and must be an array of user IDs.")
