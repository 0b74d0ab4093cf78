from __future__ import annotations

import asyncio
import contextlib
import logging
import weakref

from aiohttp import WSCloseCode, WSMsgType, web

from teamtasks.realtime.connection import ClientConnection
from teamtasks.web.middlewares.auth import bearer_token
from teamtasks.web.middlewares.di import IDENTITY, REGISTRY, SETTINGS

logger = logging.getLogger(__name__)

router = web.RouteTableDef()

WEBSOCKETS = web.AppKey("websockets", weakref.WeakSet)

HEARTBEAT_SECONDS = 30.0


@router.get("/ws")
async def websocket(request: web.Request) -> web.StreamResponse:
    """
    Real-time channel. The token comes in the Authorization header or the
    `token` query parameter and is checked before the upgrade, so a bad
    token gets a plain 401 and never a socket.
    """
    identity = request[IDENTITY]
    registry = request[REGISTRY]
    settings = request[SETTINGS]

    token = bearer_token(request) or request.query.get("token", "")
    user = await identity.resolve(token)

    ws = web.WebSocketResponse(heartbeat=HEARTBEAT_SECONDS)
    await ws.prepare(request)

    conn = ClientConnection(ws.send_json, label=f"{user.id}/{id(ws):x}", max_queue=settings.ws_queue_size)
    writer = asyncio.create_task(conn.run())
    registry.bind(conn, user)
    request.app[WEBSOCKETS].add(ws)

    try:
        async for msg in ws:
            if msg.type == WSMsgType.TEXT:
                if msg.data.strip() == "ping":
                    await ws.send_str("pong")
            elif msg.type == WSMsgType.ERROR:
                logger.warning("WebSocket error for %s: %s", conn.label, ws.exception())
    finally:
        registry.release(conn)
        conn.close()
        writer.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await writer
        request.app[WEBSOCKETS].discard(ws)

    return ws


async def close_websockets(app: web.Application) -> None:
    for ws in set(app[WEBSOCKETS]):
        await ws.close(code=WSCloseCode.GOING_AWAY, message=b"Server shutdown")
