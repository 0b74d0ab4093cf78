from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    USER = "user"


@dataclass(frozen=True)
class User:
    id: str
    name: str
    email: str
    role: Role
    is_active: bool
    created_at: datetime

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


@dataclass(frozen=True)
class UserSummary:
    """The part of a user that is embedded into task responses."""
    id: str
    name: str
    email: str


def summarize(user: User) -> UserSummary:
    return UserSummary(id=user.id, name=user.name, email=user.email)
