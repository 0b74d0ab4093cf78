from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, Optional, Sequence

from teamtasks.domain.users.models import Role, User


class UserDirectory(ABC):
    @abstractmethod
    async def get(self, user_id: str) -> Optional[User]: ...

    @abstractmethod
    async def get_many(self, user_ids: Iterable[str]) -> dict[str, User]: ...

    @abstractmethod
    async def active_ids(self, user_ids: Iterable[str]) -> set[str]: ...

    @abstractmethod
    async def list_all(self, active_only: bool = False) -> Sequence[User]: ...

    @abstractmethod
    async def set_role(self, user_id: str, role: Role, now_iso: str) -> bool: ...

    @abstractmethod
    async def set_active(self, user_id: str, is_active: bool, now_iso: str) -> bool: ...


class IdentityProvider(ABC):
    """Turns a bearer token into the user it was issued for."""

    @abstractmethod
    def issue(self, user: User) -> str: ...

    @abstractmethod
    async def resolve(self, token: str) -> User: ...
