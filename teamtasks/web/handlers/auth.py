from __future__ import annotations

from aiohttp import web

from teamtasks.domain.common.time import to_iso
from teamtasks.domain.tasks.views import user_payload
from teamtasks.web.handlers._common import current_user, ok
from teamtasks.web.middlewares.di import CLOCK

router = web.RouteTableDef()


@router.get("/api/health")
async def health(request: web.Request) -> web.Response:
    return web.json_response({"status": "OK", "timestamp": to_iso(request[CLOCK].now())})


@router.get("/api/auth/me")
async def me(request: web.Request) -> web.Response:
    return ok(user=user_payload(current_user(request)))
