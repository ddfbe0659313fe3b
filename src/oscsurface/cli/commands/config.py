"""
Config command group.

Commands:
    - config show [--field FIELD]   # Display configuration
    - config path                   # Print the config file location
    - config validate               # Validate the config file
    - config reset                  # Reset to defaults (asks first)
"""

import json
from pathlib import Path
from typing import Optional

import click

from oscsurface.models import DEFAULT_CONFIG_PATH, AppConfig
from oscsurface.utils import PydanticPersistence


def _config_path(ctx: click.Context) -> Path:
    path = ctx.obj.get("config_path") if ctx.obj else None
    return path or DEFAULT_CONFIG_PATH


@click.group(name="config")
def config():
    """View and manage oscsurface settings."""
    pass


@config.command(name="show")
@click.option('--field', '-f', type=str, default=None, help='Show one field (dotted, e.g. surface.cols)')
@click.pass_context
def show_config(ctx, field: Optional[str]):
    """Display the current configuration."""
    path = _config_path(ctx)
    if path.exists():
        error = PydanticPersistence.validate_json(path, AppConfig)
        if error:
            click.echo(f"Config file is invalid: {error}", err=True)
            click.echo("Showing defaults instead.\n", err=True)
            app_config = AppConfig()
        else:
            app_config = PydanticPersistence.load_json(path, AppConfig)
    else:
        app_config = AppConfig()

    data = app_config.model_dump(mode="json")
    if field:
        value = data
        for part in field.split("."):
            if not isinstance(value, dict) or part not in value:
                raise click.BadParameter(f"Unknown field '{field}'", param_hint="--field")
            value = value[part]
        click.echo(json.dumps(value) if isinstance(value, dict) else str(value))
        return

    click.echo(f"Config file: {path}{'' if path.exists() else ' (not created yet, showing defaults)'}\n")
    click.echo(json.dumps(data, indent=2))


@config.command(name="path")
@click.pass_context
def config_path(ctx):
    """Print the config file location."""
    click.echo(str(_config_path(ctx)))


@config.command(name="validate")
@click.pass_context
def validate_config(ctx):
    """Check the config file against the schema."""
    path = _config_path(ctx)
    error = PydanticPersistence.validate_json(path, AppConfig)
    if error is None:
        click.echo(f"[OK] {path}")
        return
    click.echo(f"[FAIL] {path}: {error}", err=True)
    ctx.exit(1)


@config.command(name="reset")
@click.option('--yes', '-y', is_flag=True, help='Do not ask for confirmation')
@click.pass_context
def reset_config(ctx, yes: bool):
    """Overwrite the config file with defaults (a .bak backup is kept)."""
    path = _config_path(ctx)
    if not yes and path.exists():
        click.confirm(f"Reset {path} to defaults?", abort=True)
    PydanticPersistence.save_json(AppConfig(), path)
    click.echo(f"Reset {path} to defaults")
