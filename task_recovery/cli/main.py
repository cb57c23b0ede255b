"""Main CLI entry point for task recovery."""

import logging
from pathlib import Path

import click

from .commands.status import status
from .commands.recover import recover
from .commands.config import config
from .commands.task import task
from .commands.notes import notes


@click.group()
@click.option('--repo', type=click.Path(exists=True, file_okay=False, path_type=Path),
              envvar='TASK_RECOVERY_REPO',
              help='Repository to operate on (defaults to the current directory)')
@click.option('--verbose', '-v', is_flag=True, help='Enable debug logging')
@click.pass_context
def cli(ctx, repo, verbose):
    """Task recovery - track delegated tasks and recover them after a crash"""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )
    ctx.ensure_object(dict)
    ctx.obj['repo'] = repo


# Register commands
cli.add_command(status)
cli.add_command(recover)
cli.add_command(config)
cli.add_command(task)
cli.add_command(notes)


if __name__ == '__main__':
    cli()
