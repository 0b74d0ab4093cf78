from __future__ import annotations

import logging
from typing import Awaitable, Callable, Optional

from aiohttp import web

from teamtasks.domain.common.errors import AuthenticationError
from teamtasks.domain.users.models import User
from teamtasks.web.middlewares.di import IDENTITY

logger = logging.getLogger(__name__)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]

CURRENT_USER = web.RequestKey("user", User)

# the websocket handler authenticates during its own handshake
PUBLIC_PATHS = frozenset({"/api/health", "/ws"})


def bearer_token(request: web.Request) -> Optional[str]:
    header = request.headers.get("Authorization", "")
    if not header.startswith("Bearer"):
        return None
    parts = header.split(" ", 1)
    return parts[1].strip() if len(parts) == 2 else ""


@web.middleware
async def auth_middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
    if request.path in PUBLIC_PATHS:
        return await handler(request)

    token = bearer_token(request)
    if not token:
        raise AuthenticationError("Not authorized, no token")

    try:
        request[CURRENT_USER] = await request[IDENTITY].resolve(token)
    except AuthenticationError as e:
        logger.info("Authentication failed: path=%s reason=%s", request.path, e.message)
        raise

    return await handler(request)
