"""Configuration management commands for task recovery."""

import click

from task_recovery.cli.helpers import get_project_context, handle_service_errors
from ...models.config import RecoveryConfig
from ...utils.config_manager import ConfigManager

SETTABLE_KEYS = tuple(RecoveryConfig.model_fields)


@click.group()
def config():
    """Manage recovery configuration"""
    pass


@config.command()
@handle_service_errors
def show():
    """Display current recovery configuration"""
    _, data_dir = get_project_context()
    config_manager = ConfigManager(data_dir)

    click.echo("Recovery Configuration:")
    click.echo(config_manager.load_config().model_dump_json(indent=2))


@config.command(name='set')
@click.argument('key', type=click.Choice(SETTABLE_KEYS))
@click.argument('value')
@handle_service_errors
def set_value(key, value):
    """Set a configuration value ('none' clears the remote)"""
    _, data_dir = get_project_context()
    config_manager = ConfigManager(data_dir)

    if key == 'remote' and value.lower() == 'none':
        value = None
    config_manager.update_config(**{key: value})
    click.echo(f"Set {key} to {value}")


@config.command()
@handle_service_errors
def reset():
    """Reset recovery configuration to defaults"""
    _, data_dir = get_project_context()
    config_manager = ConfigManager(data_dir)

    config_manager.save_config(RecoveryConfig())
    click.echo("Configuration reset to defaults")
