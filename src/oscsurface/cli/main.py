"""Main CLI entry point."""

import logging
import logging.handlers
from pathlib import Path
from typing import Optional

import click

from oscsurface import __version__

from .commands import config, demo, serve

logger = logging.getLogger(__name__)

LOG_DIR = Path.home() / ".oscsurface" / "logs"


def resolve_log_path(debug: bool, log_file: Optional[Path]) -> Path:
    """Where log output goes for a given set of flags."""
    if log_file:
        return log_file
    if debug:
        return Path.cwd() / "oscsurface-debug.log"
    return LOG_DIR / "oscsurface.log"


def setup_logging(verbose: int, debug: bool, log_file: Optional[Path], log_level: str) -> None:
    """
    Configure logging for the application.

    Args:
        verbose: Verbosity count (0 = WARNING, 1 = INFO, 2+ = DEBUG)
        debug: If True, enable debug mode with file logging in the current directory
        log_file: Custom log file path (optional)
        log_level: Log level for file logging (DEBUG/INFO/WARNING/ERROR)
    """
    if debug or verbose >= 2:
        console_level = logging.DEBUG
    elif verbose == 1:
        console_level = logging.INFO
    else:
        console_level = logging.WARNING

    file_level = logging.DEBUG if debug else getattr(logging, log_level.upper())

    log_path = resolve_log_path(debug, log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Rotating file handler (keeps last 5 files, max 10MB each)
    file_handler = logging.handlers.RotatingFileHandler(
        log_path,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=5
    )
    file_handler.setLevel(file_level)
    file_handler.setFormatter(formatter)

    # The host has no UI of its own, so the console gets a copy too
    console_handler = logging.StreamHandler()
    console_handler.setLevel(console_level)
    console_handler.setFormatter(logging.Formatter('%(levelname)s: %(message)s'))

    root_logger = logging.getLogger()
    root_logger.setLevel(min(file_level, console_level))
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    logger.info(f"Logging configured: level={logging.getLevelName(file_level)}, file={log_path}")


@click.group()
@click.pass_context
@click.version_option(version=__version__, prog_name="oscsurface")
@click.option(
    '--config-file',
    '-c',
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help='Config file (default: ~/.oscsurface/config.json)'
)
@click.option(
    '-v', '--verbose',
    count=True,
    help='Increase verbosity (-v: INFO, -vv: DEBUG)'
)
@click.option(
    '--debug',
    is_flag=True,
    help='Enable debug mode (DEBUG level, logs to ./oscsurface-debug.log)'
)
@click.option(
    '--log-file',
    type=click.Path(path_type=Path),
    default=None,
    help='Custom log file path'
)
@click.option(
    '--log-level',
    type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR'], case_sensitive=False),
    default='INFO',
    help='Log level for file logging (default: INFO)'
)
def cli(
    ctx,
    config_file: Optional[Path],
    verbose: int,
    debug: bool,
    log_file: Optional[Path],
    log_level: str
):
    """
    oscsurface - virtual grid and arc devices for touchscreen OSC clients.

    A phone or tablet running an OSC controller app connects with
    /sys/connect and gets a slot, just like plugging in a grid or an arc.

    \b
    Examples:
      # Run the host on the default port (10111)
      oscsurface serve

      # Listen on another port with 2 slots per device type
      oscsurface serve --port 9000 --slots 2

      # Animate whatever connects
      oscsurface demo

      # Show configuration
      oscsurface config show
    """
    ctx.ensure_object(dict)
    ctx.obj["config_path"] = config_file
    ctx.obj["log_path"] = resolve_log_path(debug, log_file)

    # Subcommands that don't run the host skip file logging setup
    if ctx.invoked_subcommand in ("serve", "demo"):
        setup_logging(verbose, debug, log_file, log_level)


cli.add_command(serve)
cli.add_command(demo)
cli.add_command(config)

if __name__ == "__main__":
    cli()
