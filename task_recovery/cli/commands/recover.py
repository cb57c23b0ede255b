"""Recovery command."""

import sys

import click
import questionary
from rich.console import Console
from rich.markup import escape

from task_recovery.cli.helpers import (
    get_current_task,
    get_executor,
    get_session,
    handle_service_errors,
    resolve_task_id,
)
from ...core.executor import ACTIONS, DESTRUCTIVE_ACTIONS
from ...models.recovery import ActionResult, ProcedureResult


def _print_step(console: Console, step: ActionResult) -> None:
    if step.changed:
        console.print(f"[green]✓ {step.action}[/green]: {escape(step.message)}")
    else:
        console.print(f"[dim]- {step.action}[/dim]: {escape(step.message)}")


@click.command()
@click.argument('action', required=False, type=click.Choice(ACTIONS))
@click.option('--task-id', help='Task to recover (defaults to the current session task)')
@click.option('--commit', help='Target commit for reset_to_commit (defaults to the last good commit)')
@click.option('--yes', '-y', is_flag=True, help='Do not ask before destructive actions')
@handle_service_errors
def recover(action, task_id, commit, yes):
    """Run a recovery action or procedure against a task"""
    console = Console()
    store, executor = get_executor()

    if task_id:
        record = resolve_task_id(store, task_id)
    else:
        record = get_current_task(store, get_session())

    if not action:
        if not sys.stdin.isatty():
            raise click.UsageError("Missing argument 'ACTION'.")
        action = questionary.select(
            f"Recovery action for {record.id}:",
            choices=list(ACTIONS),
        ).ask()
        if action is None:
            console.print("[yellow]No action selected[/yellow]")
            return

    if commit and action != 'reset_to_commit':
        raise click.UsageError("--commit only applies to reset_to_commit")

    if action in DESTRUCTIVE_ACTIONS and not yes:
        click.confirm(f"Run {action} on task {record.id}? This cannot be undone", abort=True)

    kwargs = {'commit': commit} if action == 'reset_to_commit' else {}
    result = executor.run(action, record, **kwargs)

    if isinstance(result, ProcedureResult):
        for step in result.steps:
            _print_step(console, step)
        if not result.ok:
            console.print(f"[red]✗ {escape(str(result.failure))}[/red]")
            if result.retained_stash:
                console.print(
                    f"[yellow]Changes kept in {escape(result.retained_stash)}; "
                    f"restore them with 'git stash pop'[/yellow]"
                )
            sys.exit(1)
        console.print(f"[green]{result.procedure} completed for {record.id}[/green]")
    else:
        _print_step(console, result)
