"""Main CLI entry point for the outline-sync command.

This module provides the Typer application with one subcommand per sync
direction:

    outline-sync download [--dir DIR] [--collections URL_ID ...]
    outline-sync upload   [--dir DIR] [--collections URL_ID ...] [--update-only]
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional

import typer

from .. import __version__
from .download_command import DownloadCommand
from .output import OutputHandler
from .upload_command import UploadCommand

app = typer.Typer(
    name="outline-sync",
    help="""Two-way sync between an Outline workspace and local Markdown files.

Set OUTLINE_API_TOKEN (and optionally OUTLINE_API_URL) in the environment
or a .env file. Collections and behavior are configured in outline-sync.yaml.""",
    add_completion=False,
    rich_markup_mode=None,
    no_args_is_help=True,
)

logger = logging.getLogger(__name__)

APP_LOGGER_NAME = "outline_sync"


def _configure_logging(verbosity: int, logdir: Optional[str] = None) -> None:
    """Configure logging based on verbosity level.

    Configures only the 'outline_sync' namespace logger to avoid affecting
    third-party libraries. The root logger is left unchanged.

    Args:
        verbosity: Verbosity level (0=WARNING, 1=INFO, 2=DEBUG)
        logdir: Optional directory for log files (creates timestamped log file)
    """
    if verbosity <= 0:
        level = logging.WARNING
    elif verbosity == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    app_logger = logging.getLogger(APP_LOGGER_NAME)
    app_logger.setLevel(level)
    app_logger.handlers.clear()

    date_format = "%Y-%m-%d %H:%M:%S"
    formatter = logging.Formatter("%(asctime)s [%(levelname)8s] %(message)s", datefmt=date_format)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    app_logger.addHandler(console_handler)

    if logdir:
        log_path = Path(logdir)
        log_path.mkdir(parents=True, exist_ok=True)

        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        log_file = log_path / f"outline-sync_{timestamp}.log"

        file_formatter = logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt=date_format
        )
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(file_formatter)
        app_logger.addHandler(file_handler)

        logger.info(f"Logging to file: {log_file}")


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"outline-sync version {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    version: bool = typer.Option(
        False,
        "--version",
        "-V",
        help="Show version and exit",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """Two-way sync between an Outline workspace and local Markdown files."""


DIR_OPTION = typer.Option(
    None, "--dir", "-d", help="Root output directory (overrides output_dir)", metavar="DIR"
)
COLLECTIONS_OPTION = typer.Option(
    None,
    "--collections",
    "-c",
    help="Collection URL ID to process (can be used multiple times)",
    metavar="URL_ID",
)
CONFIG_OPTION = typer.Option(
    None, "--config", help="Configuration file (default: outline-sync.yaml)", metavar="PATH"
)
VERBOSITY_OPTION = typer.Option(
    0, "--verbosity", "-v", help="Verbosity level: 0=summary, 1=info, 2=debug"
)
LOGDIR_OPTION = typer.Option(
    None, "--logdir", help="Directory for log files (creates timestamped log file)"
)
NO_COLOR_OPTION = typer.Option(False, "--no-color", help="Disable colored output")


@app.command()
def download(
    output_dir: Optional[str] = DIR_OPTION,
    collections: Optional[List[str]] = COLLECTIONS_OPTION,
    config: Optional[str] = CONFIG_OPTION,
    verbosity: int = VERBOSITY_OPTION,
    logdir: Optional[str] = LOGDIR_OPTION,
    no_color: bool = NO_COLOR_OPTION,
) -> None:
    """Download collections from Outline into the local tree."""
    _configure_logging(verbosity, logdir)
    output = OutputHandler(verbosity=verbosity, no_color=no_color)

    command = DownloadCommand(config_path=config, output_handler=output)
    raise typer.Exit(command.run(output_dir=output_dir, collections=collections))


@app.command()
def upload(
    output_dir: Optional[str] = DIR_OPTION,
    collections: Optional[List[str]] = COLLECTIONS_OPTION,
    update_only: bool = typer.Option(
        False, "--update-only", help="Only update documents that already exist in Outline"
    ),
    config: Optional[str] = CONFIG_OPTION,
    verbosity: int = VERBOSITY_OPTION,
    logdir: Optional[str] = LOGDIR_OPTION,
    no_color: bool = NO_COLOR_OPTION,
) -> None:
    """Upload the local tree to Outline, creating, updating and moving documents."""
    _configure_logging(verbosity, logdir)
    output = OutputHandler(verbosity=verbosity, no_color=no_color)

    command = UploadCommand(config_path=config, output_handler=output, update_only=update_only)
    raise typer.Exit(command.run(output_dir=output_dir, collections=collections))


def main() -> None:
    """Main entry point for the CLI application."""
    app()


# Allow running as: python -m outline_sync.cli.main
if __name__ == "__main__":
    main()
