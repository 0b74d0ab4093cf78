from __future__ import annotations

import uuid

from teamtasks.domain.tasks.ports import IdGenerator


class UuidGenerator(IdGenerator):
    def new_id(self) -> str:
        return str(uuid.uuid4())


def is_valid_id(value: str) -> bool:
    """True for ids in the form produced by UuidGenerator."""
    try:
        return str(uuid.UUID(value)) == value.lower()
    except (ValueError, AttributeError, TypeError):
        return False
