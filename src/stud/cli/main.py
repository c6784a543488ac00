"""
Stud CLI - main entry point.

Sets up logging, holds the global options and mounts the command
groups. Application settings are resolved once here and handed to
commands through the Typer context object.
"""

from __future__ import annotations

import sys
import traceback
from typing import Any

import typer

from stud import __version__
from stud.cli.commands.config import app as config_app
from stud.config.models import AppSettings
from stud.utils.console import console
from stud.utils.logger import get_logger, setup_logging

app = typer.Typer(
    name="stud",
    help="🧰 stud: branch from issues, commit conventionally, submit pull requests",
    add_completion=False,
    rich_markup_mode="rich",
    no_args_is_help=True,
    context_settings={
        "help_option_names": ["-h", "--help"],
    },
)

app.add_typer(config_app, name="config")

_debug_enabled = False


def global_exception_handler(exc_type: type, exc_value: BaseException, exc_tb: Any) -> None:
    """
    Last resort handler for exceptions no command caught.

    Args:
        exc_type: Exception type
        exc_value: Exception instance
        exc_tb: Exception traceback
    """
    logger = get_logger(__name__)

    if isinstance(exc_value, KeyboardInterrupt):
        logger.info("Interrupted by user")
        console.print("\n👋 Interrupted")
        sys.exit(130)

    error_title = f"Unexpected Error: {exc_type.__name__}"
    error_message = str(exc_value) or "An unexpected error occurred"

    logger.error(f"Uncaught exception: {error_title}: {error_message}")
    console.error(f"{error_title}: {error_message}")

    if _debug_enabled:
        console.print("\n[dim]Full traceback (debug mode):[/dim]")
        traceback.print_exception(exc_type, exc_value, exc_tb)
    else:
        console.info("Run with --debug or STUD_DEBUG=1 for the full traceback", emoji=False)

    sys.exit(1)


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False, "--version", "-V", help="Show version and exit"
    ),
    debug: bool = typer.Option(
        False, "--debug", help="Enable debug output"
    ),
) -> None:
    """
    stud: a guided developer workflow over Jira, git and pull requests.
    """
    global _debug_enabled

    if version:
        console.print(f"stud version [bright]{__version__}[/bright]")
        raise typer.Exit()

    settings = AppSettings.from_env()
    if debug:
        settings.debug = True
    _debug_enabled = settings.debug

    console.configure(settings)
    setup_logging(settings)
    logger = get_logger(__name__)
    logger.debug(
        "stud started",
        version=__version__,
        command=ctx.invoked_subcommand,
    )

    ctx.obj = settings


def setup_exception_handling() -> None:
    """Install global exception handler."""
    sys.excepthook = global_exception_handler


def cli_main() -> None:
    """Console script entry point."""
    setup_exception_handling()
    app()


if __name__ == "__main__":
    cli_main()
