"""Demo entry point — Click CLI dispatcher and bot bootstrap.

``main()`` invokes the Click group from cli.py. ``run_bot()`` holds the
startup logic and is called by the ``run`` command after CLI flags have
been applied to the environment.
"""

import logging
import os
import sys

import colorlog


class _ShortNameFilter(logging.Filter):
    """Strip the 'tgui.' prefix, cap at 20 chars."""

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if name.startswith("tgui."):
            name = name[len("tgui.") :]
        record.short_name = name[:20]  # type: ignore[attr-defined]
        return True


def setup_logging(log_level: str) -> None:
    """Configure colored, compact logging for interactive CLI use."""
    numeric_level = getattr(logging, log_level, None)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    handler = colorlog.StreamHandler()
    handler.setFormatter(
        colorlog.ColoredFormatter(
            "%(log_color)s%(asctime)s %(levelname)-8s %(short_name)-20s %(message)s",
            datefmt="%H:%M:%S",
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "bold_red",
            },
        )
    )
    handler.addFilter(_ShortNameFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(logging.WARNING)

    logging.getLogger("tgui").setLevel(numeric_level)
    for name in ("httpx", "httpcore", "telegram.ext"):
        logging.getLogger(name).setLevel(logging.WARNING)


def run_bot() -> None:
    """Start the bot. Called by the ``run`` Click command after env is set."""
    log_level = os.environ.get("TGUI_LOG_LEVEL", "INFO").upper()
    setup_logging(log_level)

    try:
        from .config import config
    except ValueError as e:
        from .config import tgui_dir

        env_path = tgui_dir() / ".env"
        print(f"Error: {e}\n")
        print(f"Create {env_path} with the following content:\n")
        print("  TELEGRAM_BOT_TOKEN=your_bot_token_here")
        print()
        print("Get your bot token from @BotFather on Telegram.")
        sys.exit(1)

    logger = logging.getLogger(__name__)
    logger.info("Data table page size: %d", config.items_per_page)

    logger.info("Starting Telegram bot...")
    from .bot import create_bot

    application = create_bot()
    application.run_polling(allowed_updates=["message", "callback_query"])


def main() -> None:
    """Main entry point — dispatches via Click CLI group."""
    from .cli import cli

    cli()


if __name__ == "__main__":
    main()
