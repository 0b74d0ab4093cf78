from dataclasses import dataclass
import os
from pathlib import Path

from dotenv import load_dotenv


@dataclass(frozen=True)
class Settings:
    jwt_secret: str
    db_path: Path
    host: str = "0.0.0.0"
    port: int = 5000
    token_ttl_hours: int = 168
    debug: bool = False
    log_level: str = "INFO"
    ws_queue_size: int = 100


def _flag(raw: str) -> bool:
    return raw.strip().lower() in ("1", "true", "yes", "on")


def load_settings() -> Settings:
    load_dotenv()

    jwt_secret = os.getenv("JWT_SECRET", "").strip()
    db_raw = os.getenv("DB_PATH", "data/teamtasks.db").strip()

    if not jwt_secret:
        raise RuntimeError("JWT_SECRET missing in .env")

    try:
        port = int(os.getenv("PORT", "5000").strip())
        ttl_hours = int(os.getenv("TOKEN_TTL_HOURS", "168").strip())
        ws_queue_size = int(os.getenv("WS_QUEUE_SIZE", "100").strip())
    except ValueError as e:
        raise RuntimeError(f"Invalid numeric setting in .env: {e}") from e

    # db_path may be relative; main.py resolves it against the working directory
    return Settings(
        jwt_secret=jwt_secret,
        db_path=Path(db_raw),
        host=os.getenv("HOST", "0.0.0.0").strip(),
        port=port,
        token_ttl_hours=ttl_hours,
        debug=_flag(os.getenv("DEBUG", "0")),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper(),
        ws_queue_size=ws_queue_size,
    )
