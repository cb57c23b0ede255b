"""Delete task command."""

import click

from task_recovery.cli.helpers import get_session, get_store, handle_service_errors, resolve_task_id
from ....core.constants import CURRENT_TASK_KEY


@click.command()
@click.argument('task_id')
@click.confirmation_option(prompt='Are you sure you want to delete this task record?')
@handle_service_errors
def delete(task_id):
    """Delete a task record (the git branch is left alone)"""
    store = get_store()
    record = resolve_task_id(store, task_id)

    store.delete(record.id)

    session = get_session()
    if session.get(CURRENT_TASK_KEY) == record.id:
        session.clear(CURRENT_TASK_KEY)

    click.echo(f"✅ Task {record.id} deleted successfully")
    if record.branch_name:
        click.echo(f"   Branch {record.branch_name} was kept")
