"""Serve command - runs the OSC host."""

import logging
import sys
from collections.abc import Callable
from pathlib import Path
from typing import Optional

import click

from oscsurface.devices.protocols import ClientAddress
from oscsurface.exceptions import ConfigurationError
from oscsurface.models import AppConfig
from oscsurface.orchestration import SurfaceHost
from oscsurface.protocols import SessionEvent
from oscsurface.session import Port

logger = logging.getLogger(__name__)


class ConnectionPrinter:
    """Echo slot changes to the terminal."""

    def on_session_event(self, event: SessionEvent, port: Port | None, client: ClientAddress) -> None:
        if event == SessionEvent.DEVICE_ADDED:
            click.echo(f"+ {port.category.value} {port.index}: {port.name} ({client})")
        elif event == SessionEvent.DEVICE_REMOVED:
            click.echo(f"- {port.category.value} {port.index}: {port.name} ({client})")
        elif event == SessionEvent.CONNECT_REFUSED:
            click.echo(f"! refused {client}: pool full or size too large", err=True)


def load_config(ctx: click.Context, host: Optional[str], port: Optional[int], slots: Optional[int]) -> AppConfig:
    """Load the config file and apply command-line overrides (not saved)."""
    config_path: Optional[Path] = ctx.obj.get("config_path") if ctx.obj else None
    try:
        config = AppConfig.load_or_default(config_path)
    except ConfigurationError as e:
        logger.error(f"Cannot load config: {e.technical_message}")
        click.echo(f"Error: {e.describe()}", err=True)
        ctx.exit(1)

    overrides = {}
    if host is not None:
        overrides["host"] = host
    if port is not None:
        overrides["port"] = port
    if slots is not None:
        overrides["max_slots"] = slots
    if overrides:
        config = AppConfig.model_validate({**config.model_dump(), **overrides})
    return config


def run_host(ctx: click.Context, config: AppConfig, setup: Optional[Callable[[SurfaceHost], None]] = None) -> None:
    """
    Start a host, run it until Ctrl+C, and report failures cleanly.

    Args:
        ctx: Click context (for the log path)
        config: Host configuration
        setup: Called with the started host before the loop runs
    """
    host = None
    try:
        host = SurfaceHost(config)
        host.sessions.register_observer(ConnectionPrinter())
        host.startup()

        bound = host.server.address
        click.echo(f"oscsurface listening on {bound[0]}:{bound[1]} ({config.max_slots} slot(s) per device type)")
        click.echo("Press Ctrl+C to stop\n")

        if setup is not None:
            setup(host)
        host.run()

    except KeyboardInterrupt:
        logger.info("Host interrupted by user")
        click.echo("\nShutting down...", err=True)
    except click.Abort:
        raise
    except Exception as e:
        from oscsurface.exceptions import format_error_for_display

        logger.exception("Error running host")

        user_message, recovery_hint = format_error_for_display(e)

        click.echo("\n" + "=" * 70, err=True)
        click.echo(f"ERROR: {user_message}", err=True)
        click.echo("=" * 70, err=True)

        if recovery_hint:
            click.echo(f"\n{recovery_hint}", err=True)

        log_path = ctx.obj.get("log_path") if ctx.obj else None
        if log_path:
            click.echo(f"\nFor details, check the log file: {log_path}", err=True)
        click.echo("For logging options, run: oscsurface --help", err=True)
        sys.exit(1)
    finally:
        if host is not None:
            host.shutdown()


@click.command()
@click.option('--host', 'bind_host', type=str, default=None, help='Bind address (default from config)')
@click.option('--port', '-p', type=click.IntRange(1, 65535), default=None, help='UDP port (default from config)')
@click.option('--slots', '-n', type=click.IntRange(1, 16), default=None, help='Slots per device type')
@click.pass_context
def serve(ctx, bind_host: Optional[str], port: Optional[int], slots: Optional[int]):
    """
    Run the OSC host.

    Remote clients connect with /sys/connect and are given a grid or arc
    slot. Nothing draws on them; use this with your own application or
    to test a client's connection handling.
    """
    config = load_config(ctx, bind_host, port, slots)
    run_host(ctx, config)
