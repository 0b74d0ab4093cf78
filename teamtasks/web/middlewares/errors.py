from __future__ import annotations

import logging
from typing import Awaitable, Callable

from aiohttp import web

from teamtasks.domain.common.errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DomainError,
    InternalError,
    NotFoundError,
    ValidationError,
)

logger = logging.getLogger(__name__)

Handler = Callable[[web.Request], Awaitable[web.StreamResponse]]

STATUS_BY_ERROR: dict[type[DomainError], int] = {
    ValidationError: 400,
    AuthenticationError: 401,
    AuthorizationError: 403,
    NotFoundError: 404,
    ConflictError: 409,
    InternalError: 500,
}


def status_for(error: DomainError) -> int:
    for cls in type(error).__mro__:
        if cls in STATUS_BY_ERROR:
            return STATUS_BY_ERROR[cls]
    return 500


def error_body(message: str) -> dict:
    return {"success": False, "message": message}


def error_middleware(debug: bool = False):
    """Render every failure as JSON with a `message` field."""

    @web.middleware
    async def middleware(request: web.Request, handler: Handler) -> web.StreamResponse:
        try:
            return await handler(request)
        except DomainError as e:
            status = status_for(e)
            if status >= 500:
                logger.error("%s %s failed: %s", request.method, request.path, e.message, exc_info=True)
            return web.json_response(error_body(e.message), status=status)
        except web.HTTPException as e:
            if e.status < 400:
                raise
            return web.json_response(error_body(e.reason), status=e.status)
        except Exception as e:
            logger.error("%s %s crashed", request.method, request.path, exc_info=True)
            body = error_body("Server error")
            if debug:
                body["error"] = str(e)
            return web.json_response(body, status=500)

    return middleware
