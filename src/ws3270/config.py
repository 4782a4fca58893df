"""Application configuration — reads env vars and exposes a singleton.

Loads the host endpoint URL, trace file and websocket heartbeat from
environment variables (with .env support).
.env loading priority: local .env (cwd) > $WS3270_DIR/.env (default ~/.ws3270).

Key class: Config (singleton instantiated as `config`).
"""

import os
from pathlib import Path

import structlog
from dotenv import load_dotenv

from .utils import ws3270_dir

logger = structlog.get_logger()

DEFAULT_URL = "ws://localhost:8080/api/ws"
DEFAULT_HEARTBEAT = 20.0


class Config:
    """Application configuration loaded from environment variables."""

    def __init__(self) -> None:
        self.config_dir = ws3270_dir()

        # Load .env: local (cwd) takes priority over config_dir
        # load_dotenv default override=False means first-loaded wins
        local_env = Path(".env")
        global_env = self.config_dir / ".env"
        if local_env.is_file():
            load_dotenv(local_env)
            logger.debug("Loaded env from %s", local_env.resolve())
        if global_env.is_file():
            load_dotenv(global_env)
            logger.debug("Loaded env from %s", global_env)

        self.url: str = os.getenv("WS3270_URL") or DEFAULT_URL

        trace_file = os.getenv("WS3270_TRACE_FILE", "")
        self.trace_file: Path | None = (
            Path(trace_file).expanduser() if trace_file else None
        )

        heartbeat_str = os.getenv("WS3270_HEARTBEAT", str(DEFAULT_HEARTBEAT))
        try:
            self.heartbeat = float(heartbeat_str)
        except ValueError as e:
            raise ValueError(f"WS3270_HEARTBEAT must be a number: {e}") from e
        if self.heartbeat <= 0:
            raise ValueError(
                f"WS3270_HEARTBEAT must be positive, got {heartbeat_str}"
            )

        logger.debug(
            "Config initialized: dir=%s, url=%s, trace_file=%s, heartbeat=%s",
            self.config_dir,
            self.url,
            self.trace_file,
            self.heartbeat,
        )


config = Config()
