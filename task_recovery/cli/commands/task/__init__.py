"""Task command group and sub-commands."""

import click

from .list_tasks import list
from .show import show
from .delete import delete
from .spawn import spawn

__all__ = [
    'task',
    'list',
    'show',
    'delete',
    'spawn',
]


@click.group()
def task():
    """Manage task records"""
    pass


# Register all sub-commands
task.add_command(list)
task.add_command(show)
task.add_command(delete)
task.add_command(spawn)
