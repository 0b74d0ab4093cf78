from __future__ import annotations

import json
from typing import Any

from aiohttp import web

from teamtasks.domain.common.errors import AuthorizationError, ValidationError
from teamtasks.domain.users.models import User
from teamtasks.infra.ids.uuid_gen import is_valid_id
from teamtasks.web.middlewares.auth import CURRENT_USER


def current_user(request: web.Request) -> User:
    return request[CURRENT_USER]


def require_admin(request: web.Request) -> User:
    user = current_user(request)
    if not user.is_admin:
        raise AuthorizationError("Access denied: admin role required")
    return user


async def read_json_object(request: web.Request) -> dict[str, Any]:
    try:
        body = await request.json()
    except json.JSONDecodeError:
        raise ValidationError("Request body must be valid JSON.") from None
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object.")
    return body


def path_id(request: web.Request, what: str = "task") -> str:
    value = request.match_info.get("id", "")
    if not value or value in ("undefined", "null"):
        raise ValidationError(f"{what.capitalize()} ID is required and must be valid")
    if not is_valid_id(value):
        raise ValidationError(f"Invalid {what} ID format")
    return value


def ok(status: int = 200, **payload: Any) -> web.Response:
    return web.json_response({"success": True, **payload}, status=status)
