from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from teamtasks.domain.users.models import Role, User
from teamtasks.realtime.connection import ClientConnection

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Binding:
    user_id: str
    role: Role


class ConnectionRegistry:
    """
    Live connections grouped by user id and by role.

    Only touched from the event loop thread, so no locking.
    """

    def __init__(self) -> None:
        self._bindings: dict[ClientConnection, Binding] = {}
        self._by_user: dict[str, set[ClientConnection]] = {}
        self._by_role: dict[Role, set[ClientConnection]] = {}

    def bind(self, conn: ClientConnection, user: User) -> Binding:
        if conn in self._bindings:
            self.release(conn)
        binding = Binding(user_id=user.id, role=user.role)
        self._bindings[conn] = binding
        self._by_user.setdefault(binding.user_id, set()).add(conn)
        self._by_role.setdefault(binding.role, set()).add(conn)
        logger.info("Connection bound: user_id=%s role=%s conn=%s", binding.user_id, binding.role.value, conn.label)
        return binding

    def release(self, conn: ClientConnection) -> Optional[Binding]:
        binding = self._bindings.pop(conn, None)
        if binding is None:
            return None
        self._discard(self._by_user, binding.user_id, conn)
        self._discard(self._by_role, binding.role, conn)
        logger.info("Connection released: user_id=%s conn=%s", binding.user_id, conn.label)
        return binding

    def binding(self, conn: ClientConnection) -> Optional[Binding]:
        return self._bindings.get(conn)

    def for_user(self, user_id: str) -> list[ClientConnection]:
        return list(self._by_user.get(user_id, ()))

    def for_role(self, role: Role) -> list[ClientConnection]:
        return list(self._by_role.get(role, ()))

    def __len__(self) -> int:
        return len(self._bindings)

    @staticmethod
    def _discard(groups: dict, key, conn: ClientConnection) -> None:
        members = groups.get(key)
        if not members:
            return
        members.discard(conn)
        if not members:
            del groups[key]
