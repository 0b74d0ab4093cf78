from __future__ import annotations

import logging
from typing import Any

from teamtasks.domain.tasks.models import Notification
from teamtasks.domain.tasks.ports import Notifier
from teamtasks.domain.users.models import Role
from teamtasks.realtime.registry import ConnectionRegistry

logger = logging.getLogger(__name__)


def wire_message(event: str, payload: dict[str, Any]) -> dict[str, Any]:
    return {"event": event, "data": payload}


class NotificationFanout(Notifier):
    """
    Pushes notifications to the per-user groups of a ConnectionRegistry.

    At-most-once: a user with no live connection simply misses the event.
    """

    def __init__(self, registry: ConnectionRegistry) -> None:
        self._registry = registry

    def deliver(self, notification: Notification) -> None:
        conns = self._registry.for_user(notification.target_user_id)
        if not conns:
            logger.debug(
                "No live connection for user_id=%s, dropping %s",
                notification.target_user_id,
                notification.event.value,
            )
            return
        message = wire_message(notification.event.value, notification.payload)
        for conn in conns:
            conn.push(message)

    def broadcast_to_role(self, role: Role, event: str, payload: dict[str, Any]) -> int:
        """Push to every connection bound with `role`. Returns how many accepted it."""
        message = wire_message(event, payload)
        return sum(1 for conn in self._registry.for_role(role) if conn.push(message))
