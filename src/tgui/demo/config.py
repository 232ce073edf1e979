"""Demo bot configuration — reads env vars and exposes a singleton.

Loads TELEGRAM_BOT_TOKEN, the log level and the data table page size from
environment variables (with .env support).
.env loading priority: local .env (cwd) > $TGUI_DIR/.env (default ~/.tgui).

Key class: Config (singleton instantiated as `config`).
"""

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

TGUI_DIR_ENV = "TGUI_DIR"
DEFAULT_ITEMS_PER_PAGE = 5


def tgui_dir() -> Path:
    """Resolve config directory from TGUI_DIR env var or default ~/.tgui."""
    raw = os.environ.get(TGUI_DIR_ENV, "")
    return Path(raw) if raw else Path.home() / ".tgui"


class Config:
    """Demo configuration loaded from environment variables."""

    def __init__(self) -> None:
        self.config_dir = tgui_dir()

        # load_dotenv default override=False means first-loaded wins
        local_env = Path(".env")
        global_env = self.config_dir / ".env"
        if local_env.is_file():
            load_dotenv(local_env)
            logger.debug("Loaded env from %s", local_env.resolve())
        if global_env.is_file():
            load_dotenv(global_env)
            logger.debug("Loaded env from %s", global_env)

        self.telegram_bot_token: str = os.getenv("TELEGRAM_BOT_TOKEN") or ""
        if not self.telegram_bot_token:
            raise ValueError("TELEGRAM_BOT_TOKEN environment variable is required")

        self.log_level = os.getenv("TGUI_LOG_LEVEL", "INFO").upper()

        raw_per_page = os.getenv("TGUI_ITEMS_PER_PAGE", str(DEFAULT_ITEMS_PER_PAGE))
        try:
            self.items_per_page = int(raw_per_page)
        except ValueError as e:
            raise ValueError(
                f"TGUI_ITEMS_PER_PAGE must be an integer, got {raw_per_page!r}"
            ) from e
        if self.items_per_page <= 0:
            raise ValueError("TGUI_ITEMS_PER_PAGE must be positive")

        logger.debug(
            "Config initialized: dir=%s, token=%s..., items_per_page=%d",
            self.config_dir,
            self.telegram_bot_token[:8],
            self.items_per_page,
        )


config = Config()
