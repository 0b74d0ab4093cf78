from __future__ import annotations

import weakref

from aiohttp import web

from teamtasks.container import Services
from teamtasks.web.handlers.auth import router as auth_router
from teamtasks.web.handlers.tasks import router as tasks_router
from teamtasks.web.handlers.users import router as users_router
from teamtasks.web.handlers.ws import WEBSOCKETS, close_websockets, router as ws_router
from teamtasks.web.middlewares.auth import auth_middleware
from teamtasks.web.middlewares.di import di_middleware
from teamtasks.web.middlewares.errors import error_middleware


def create_app(services: Services) -> web.Application:
    # order matters: errors wrap everything, auth needs the injected identity provider
    app = web.Application(
        middlewares=[
            error_middleware(debug=services.settings.debug),
            di_middleware(services),
            auth_middleware,
        ]
    )
    app[WEBSOCKETS] = weakref.WeakSet()

    app.add_routes(auth_router)
    app.add_routes(tasks_router)
    app.add_routes(users_router)
    app.add_routes(ws_router)

    app.on_shutdown.append(close_websockets)
    return app
