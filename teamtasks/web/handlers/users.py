from __future__ import annotations

from aiohttp import web

from teamtasks.domain.common.errors import NotFoundError, ValidationError
from teamtasks.domain.common.time import to_iso
from teamtasks.domain.tasks.views import user_payload
from teamtasks.domain.users.models import Role
from teamtasks.web.handlers._common import ok, path_id, read_json_object, require_admin
from teamtasks.web.middlewares.di import CLOCK, USERS

router = web.RouteTableDef()


@router.get("/api/users")
async def list_users(request: web.Request) -> web.Response:
    require_admin(request)
    users = request[USERS]
    return ok(users=[user_payload(u) for u in await users.list_all()])


@router.get("/api/users/{id}")
async def get_user(request: web.Request) -> web.Response:
    require_admin(request)
    users = request[USERS]
    user = await users.get(path_id(request, "user"))
    if user is None:
        raise NotFoundError("User not found")
    return ok(user=user_payload(user))


@router.put("/api/users/{id}/role")
async def update_user_role(request: web.Request) -> web.Response:
    require_admin(request)
    user_id = path_id(request, "user")
    body = await read_json_object(request)
    try:
        role = Role(body.get("role"))
    except ValueError:
        raise ValidationError('Invalid role. Must be "admin" or "user"') from None

    users = request[USERS]
    if not await users.set_role(user_id, role, to_iso(request[CLOCK].now())):
        raise NotFoundError("User not found")
    return ok(user=user_payload(await users.get(user_id)))


@router.put("/api/users/{id}/status")
async def update_user_status(request: web.Request) -> web.Response:
    require_admin(request)
    user_id = path_id(request, "user")
    body = await read_json_object(request)
    is_active = body.get("isActive")
    if not isinstance(is_active, bool):
        raise ValidationError("isActive must be a boolean")

    users = request[USERS]
    if not await users.set_active(user_id, is_active, to_iso(request[CLOCK].now())):
        raise NotFoundError("User not found")
    return ok(user=user_payload(await users.get(user_id)))
