from __future__ import annotations

import dataclasses
import logging
import os

from aiohttp import web

from teamtasks.config import Settings, load_settings
from teamtasks.container import build_services
from teamtasks.web.app import create_app

logger = logging.getLogger(__name__)


async def init_app(settings: Settings) -> web.Application:
    services = await build_services(settings)
    app = create_app(services)
    logger.info("Routes and real-time channel ready")
    return app


def main() -> None:
    settings = load_settings()

    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - [PID:%(process)d] - %(message)s",
    )

    # --- DB path: one place, always absolute, ensure dir exists ---
    db_path = settings.db_path
    if not db_path.is_absolute():
        db_path = db_path.resolve()
    db_path.parent.mkdir(parents=True, exist_ok=True)
    settings = dataclasses.replace(settings, db_path=db_path)

    logger.info("=" * 60)
    logger.info("teamtasks starting - PID: %s", os.getpid())
    logger.info("DB_PATH: %s", db_path)
    if settings.debug:
        logger.warning("DEBUG is on: error details are returned to clients")
    logger.info("=" * 60)

    try:
        web.run_app(init_app(settings), host=settings.host, port=settings.port)
    except Exception:
        logger.error("Server crashed - PID: %s", os.getpid(), exc_info=True)
        raise
    finally:
        logger.info("Server shutdown complete - PID: %s", os.getpid())


if __name__ == "__main__":
    main()
