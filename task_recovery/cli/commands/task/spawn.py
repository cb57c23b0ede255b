"""Spawn task command."""

import click

from task_recovery.cli.helpers import get_spawner, handle_service_errors


@click.command()
@click.option('--prompt', '-p', required=True, help='Task description')
@click.option('--model', '-m', default='sonnet', show_default=True, help='Model that will run the task')
@click.option('--parent-task', help='Parent task ID for a nested task')
@click.option('--branch-aware', is_flag=True, help='Create and check out a dedicated task branch')
@handle_service_errors
def spawn(prompt, model, parent_task, branch_aware):
    """Register a new task and make it the session's current task"""
    spawner = get_spawner()
    record = spawner.spawn(prompt, model, parent_id=parent_task, branch_aware=branch_aware)

    click.echo(f"✅ Task spawned: {record.id}")
    click.echo(f"   Model: {record.model}")
    click.echo(f"   Depth: {record.depth}")
    click.echo(f"   Last good commit: {record.last_good_commit}")
    if record.branch_name:
        click.echo(f"   Branch: {record.branch_name}")
