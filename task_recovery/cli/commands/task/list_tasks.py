"""List tasks command."""

import click

from task_recovery.cli.helpers import format_task_table, get_project_context, get_store, handle_service_errors
from ....models.task import TaskStatus


@click.command()
@click.option('--status', type=click.Choice([s.value for s in TaskStatus]),
              help='Filter by task status')
@handle_service_errors
def list(status):
    """List all task records, oldest first"""
    project_root, _ = get_project_context()
    store = get_store()

    tasks = [t for t in store.list() if not status or t.status.value == status]
    if not tasks:
        click.echo(f"No tasks found for project '{project_root.name}'")
        return

    click.echo(f"Tasks for project '{project_root.name}':")
    click.echo(format_task_table(tasks))
