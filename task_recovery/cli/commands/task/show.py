"""Show task command."""

import click

from task_recovery.cli.helpers import get_store, handle_service_errors, resolve_task_id


@click.command()
@click.argument('task_id')
@click.option('--notes/--no-notes', default=True, help='Show the audit notes')
@handle_service_errors
def show(task_id, notes):
    """Show detailed information about a task"""
    store = get_store()
    record = resolve_task_id(store, task_id)

    click.echo("\n" + "=" * 80)
    click.echo(f"Task Details: {record.id}")
    click.echo("=" * 80)

    click.echo("\nBasic Information:")
    click.echo(f"   ID: {record.id}")
    click.echo(f"   Status: {click.style(record.status.value.upper(), fg='yellow')}")
    click.echo(f"   Model: {record.model}")
    click.echo(f"   Created: {record.created_at.strftime('%Y-%m-%d %H:%M:%S')}")
    click.echo(f"   Updated: {record.updated_at.strftime('%Y-%m-%d %H:%M:%S')}")
    click.echo(f"   Depth: {record.depth}")
    if record.parent_id:
        click.echo(f"   Parent: {record.parent_id}")

    click.echo("\nGit:")
    click.echo(f"   Branch: {record.branch_name or '-'}")
    click.echo(f"   Last good commit: {record.last_good_commit or '-'}")
    click.echo(f"   Review request: {record.review_ref or '-'}")

    click.echo("\nPrompt:")
    for line in record.prompt.split('\n'):
        click.echo(f"   {line}")

    if notes and record.notes:
        click.echo("\nNotes:")
        for note in record.notes:
            click.echo(f"   [{note.timestamp.strftime('%Y-%m-%d %H:%M:%S')}] {note.text}")
