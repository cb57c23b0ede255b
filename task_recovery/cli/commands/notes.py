"""Shared note commands."""

import click
from rich.console import Console
from rich.table import Table

from task_recovery.cli.helpers import get_note_store, handle_service_errors
from ...models.notes import NoteStatus


@click.group()
def notes():
    """Manage cross-session notes"""
    pass


@notes.command()
@click.option('--from', 'source', required=True, help='Who is writing the note')
@click.option('--hint', required=True, help='Short summary for quick scanning')
@click.option('--content', required=True, help='Full note text')
@handle_service_errors
def add(source, hint, content):
    """Add a note"""
    entry = get_note_store().add(source, hint, content)
    click.echo(f"Added note {entry.id}")


@notes.command(name='list')
@click.option('--all', 'include_all', is_flag=True, help='Include done and discarded notes')
@handle_service_errors
def list_notes(include_all):
    """List notes"""
    console = Console()
    entries = get_note_store().list(include_all=include_all)
    if not entries:
        console.print("[yellow]No notes.[/yellow]")
        return

    table = Table(title="Shared Notes")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Status", style="green")
    table.add_column("From", style="white")
    table.add_column("Hint", style="white")
    for entry in entries:
        table.add_row(str(entry.id), entry.status.value, entry.source, entry.hint)
    console.print(table)


@notes.command()
@click.argument('note_id', type=int)
@handle_service_errors
def show(note_id):
    """Show a note"""
    entry = get_note_store().get(note_id)
    click.echo(f"ID: {entry.id}")
    click.echo(f"From: {entry.source}")
    click.echo(f"Status: {entry.status.value}")
    click.echo(f"Timestamp: {entry.timestamp}")
    click.echo(f"Hint: {entry.hint}")
    click.echo(f"\n{entry.content}")


@notes.command()
@click.argument('note_id', type=int)
@click.option('--hint', help='New hint')
@click.option('--content', help='New content')
@handle_service_errors
def update(note_id, hint, content):
    """Change a note's hint or content"""
    get_note_store().update(note_id, hint=hint, content=content)
    click.echo(f"Updated note {note_id}")


@notes.command()
@click.argument('note_id', type=int)
@handle_service_errors
def done(note_id):
    """Mark a note as done"""
    get_note_store().mark(note_id, NoteStatus.DONE)
    click.echo(f"Marked note {note_id} as done")


@notes.command()
@click.argument('note_id', type=int)
@handle_service_errors
def discard(note_id):
    """Mark a note as discarded"""
    get_note_store().mark(note_id, NoteStatus.DISCARD)
    click.echo(f"Marked note {note_id} as discarded")


@notes.command()
@handle_service_errors
def compact():
    """Remove done and discarded notes (a backup is kept)"""
    removed = get_note_store().compact()
    click.echo(f"Removed {removed} note(s)")
