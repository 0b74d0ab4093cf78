from __future__ import annotations

from typing import Awaitable, Callable

from aiohttp import web

from teamtasks.config import Settings
from teamtasks.container import Services
from teamtasks.domain.tasks.ports import Clock
from teamtasks.domain.tasks.service import TaskService
from teamtasks.domain.users.ports import IdentityProvider, UserDirectory
from teamtasks.realtime.registry import ConnectionRegistry

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]

SETTINGS = web.RequestKey("settings", Settings)
CLOCK = web.RequestKey("clock", Clock)
USERS = web.RequestKey("users", UserDirectory)
IDENTITY = web.RequestKey("identity", IdentityProvider)
REGISTRY = web.RequestKey("registry", ConnectionRegistry)
TASK_SERVICE = web.RequestKey("task_service", TaskService)


def di_middleware(services: Services):
    """
    Inject dependencies to handlers via the request mapping.

    Handlers read them by key, e.g.
      service = request[TASK_SERVICE]
    """

    @web.middleware
    async def middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
        request[SETTINGS] = services.settings
        request[CLOCK] = services.clock
        request[USERS] = services.users
        request[IDENTITY] = services.identity
        request[REGISTRY] = services.registry
        request[TASK_SERVICE] = services.task_service

        return await handler(request)

    return middleware
