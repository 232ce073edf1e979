"""Click-based CLI for the demo bot.

Defines the top-level command group and the ``run`` subcommand.
Precedence: CLI flag > env var > .env > default. ``apply_args_to_env()``
sets os.environ for explicitly provided flags so Config reads them.
"""

import os
from pathlib import Path

import click

from .. import __version__

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


def _validate_positive_int(
    _ctx: click.Context, _param: click.Parameter, value: int | None
) -> int | None:
    if value is not None and value <= 0:
        raise click.BadParameter("must be positive")
    return value


class _DefaultToRun(click.Group):
    """Click group that runs the ``run`` command when invoked without a subcommand."""

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        if args and args[0] not in self.commands and not args[0].startswith("--"):
            args = ["run", *args]
        return super().parse_args(ctx, args)


@click.group(
    cls=_DefaultToRun,
    invoke_without_command=True,
    help="Example Telegram bot for the tgui widget toolkit.",
)
@click.version_option(version=__version__, prog_name="tgui-demo")
@click.pass_context
def cli(ctx: click.Context) -> None:
    if ctx.invoked_subcommand is None:
        ctx.invoke(run_cmd)


# Mapping: click option name → environment variable name
_FLAG_TO_ENV: list[tuple[str, str]] = [
    ("config_dir", "TGUI_DIR"),
    ("token", "TELEGRAM_BOT_TOKEN"),
    ("items_per_page", "TGUI_ITEMS_PER_PAGE"),
]


def apply_args_to_env(**kwargs: object) -> None:
    """Set environment variables from explicitly provided CLI flags.

    Call BEFORE Config instantiation. Flags left as None are not applied.
    """
    verbose = kwargs.get("verbose", False)
    log_level = kwargs.get("log_level")

    if verbose:
        os.environ["TGUI_LOG_LEVEL"] = "DEBUG"
    elif log_level is not None:
        os.environ["TGUI_LOG_LEVEL"] = str(log_level).upper()

    for attr, env_var in _FLAG_TO_ENV:
        value = kwargs.get(attr)
        if value is None:
            continue
        if isinstance(value, Path):
            os.environ[env_var] = str(value.expanduser().resolve())
        else:
            os.environ[env_var] = str(value)


@cli.command("run")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging.")
@click.option(
    "--log-level",
    type=click.Choice(_LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Logging level.",
)
@click.option(
    "--config-dir",
    type=click.Path(path_type=Path),
    default=None,
    help="Config directory (default: ~/.tgui).",
)
@click.option("--token", default=None, help="Telegram bot token.")
@click.option(
    "--items-per-page",
    type=int,
    default=None,
    callback=_validate_positive_int,
    help="Rows per data table page (default: 5).",
)
def run_cmd(**kwargs: object) -> None:
    """Start the demo bot with optional overrides."""
    apply_args_to_env(**kwargs)

    from .main import run_bot

    run_bot()
