"""
Note Commands.

List, add, edit, delete and watch the signed-in user's notes.
Every command goes through NoteListController, so the CLI sees exactly
what the sync layer sees.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import TypeVar

import typer
from rich.console import Console
from rich.table import Table

from notetogether.auth import get_authenticator
from notetogether.core.config import get_app_config
from notetogether.core.concurrency import shutdown_pools
from notetogether.core.exceptions import AuthenticationError, NotFoundError, NotSignedInError, StoreError
from notetogether.stores import create_note_store
from notetogether.sync import NoteListController, SyncState

app = typer.Typer(help="Note commands")
console = Console()

T = TypeVar("T")

RETRY_MESSAGE = "Could not reach the note store. Check your connection and try again."


def _require_user() -> str:
    """Id of the signed-in user, renewing an expired ID token first."""
    auth = get_authenticator()
    session = auth.session
    if session is not None and session.is_expired:
        try:
            result = asyncio.run(auth.refresh())
        except AuthenticationError as e:
            raise NotSignedInError(e.message) from e
        if not result.success:
            raise NotSignedInError(f"Session expired ({result.error}). Run: cli.py auth login")
    user_id = auth.current_user()
    if user_id is None:
        raise NotSignedInError("Not signed in. Run: cli.py auth login")
    return user_id


def _run(fn: Callable[[NoteListController], Awaitable[T]]) -> T:
    """Run `fn` against a controller for the signed-in user, mapping store errors."""

    async def main(controller: NoteListController) -> T:
        try:
            return await fn(controller)
        finally:
            controller.deactivate()
            await shutdown_pools()

    try:
        controller = NoteListController(create_note_store(_require_user()))
        return asyncio.run(main(controller))
    except NotSignedInError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(1)
    except StoreError as e:
        console.print(f"[red]{RETRY_MESSAGE}[/red]")
        console.print(f"[dim]{e.message}[/dim]")
        raise typer.Exit(1)


async def _synced(controller: NoteListController) -> NoteListController:
    """Activate and wait until the first snapshot (or error) has landed."""
    ready = asyncio.Event()
    unobserve = controller.observe(lambda _: ready.set())
    try:
        controller.activate()
        async with asyncio.timeout(get_app_config().store.write_timeout):
            await ready.wait()
    except TimeoutError:
        console.print("[yellow]Timed out waiting for notes.[/yellow]")
    finally:
        unobserve()

    if controller.state is SyncState.ERROR and controller.last_error is not None:
        console.print(f"[yellow]{controller.last_error.message}[/yellow]")
    return controller


def render_notes(controller: NoteListController) -> Table:
    """Build the notes table: id, title and a bounded body preview."""
    display = get_app_config().application.display
    table = Table(title=f"Notes ({len(controller.notes)})", show_header=True)
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Title", style="bold")
    table.add_column("Body")

    for note in controller.notes:
        table.add_row(
            note.id,
            note.title[: display.title_max_length],
            note.preview(display.body_preview_length),
        )

    if controller.state is SyncState.ERROR:
        table.caption = "[yellow]offline: showing last synced notes[/yellow]"
    return table


@app.command("list")
def list_notes() -> None:
    """
    Show all notes.

    Examples:
        cli.py notes list
    """

    async def show(controller: NoteListController) -> None:
        console.print(render_notes(await _synced(controller)))

    _run(show)


@app.command()
def add(
    title: str = typer.Option("", "--title", "-t", help="Note title"),
    body: str = typer.Option("", "--body", "-b", help="Note body"),
) -> None:
    """
    Create a note.

    Examples:
        cli.py notes add -t Shopping -b "Milk, eggs"
    """

    async def create(controller: NoteListController) -> str:
        return await controller.commit(controller.request_create(title, body))

    note_id = _run(create)
    console.print(f"[green]Created note {note_id}[/green]")


@app.command()
def edit(
    note_id: str = typer.Argument(..., help="Id of the note to edit"),
    title: str | None = typer.Option(None, "--title", "-t", help="New title"),
    body: str | None = typer.Option(None, "--body", "-b", help="New body"),
) -> None:
    """
    Change a note's title and/or body.

    Examples:
        cli.py notes edit n1 -b "Milk, eggs, bread"
    """

    async def save(controller: NoteListController) -> bool:
        session = (await _synced(controller)).request_edit(note_id)
        if session is None:
            return False
        session.update(title=title, body=body)
        if not session.is_dirty:
            console.print("Nothing to change.")
            return True
        try:
            await controller.commit(session)
        except NotFoundError:
            return False
        console.print(f"[green]Saved note {note_id}[/green]")
        return True

    if not _run(save):
        console.print(f"[red]Note {note_id} no longer exists.[/red]")
        raise typer.Exit(1)


@app.command()
def delete(
    note_id: str = typer.Argument(..., help="Id of the note to delete"),
) -> None:
    """
    Delete a note after confirmation.

    Examples:
        cli.py notes delete n1
    """

    async def remove(controller: NoteListController) -> bool:
        session = (await _synced(controller)).request_edit(note_id)
        if session is None:
            console.print(f"[red]Note {note_id} no longer exists.[/red]")
            raise typer.Exit(1)

        session.request_delete()
        if not typer.confirm(f"Delete note {note_id} ({session.title!r})?", default=False):
            session.cancel_delete()
            return False
        await controller.delete_confirmed(session)
        return True

    if _run(remove):
        console.print(f"[green]Deleted note {note_id}[/green]")
    else:
        console.print("Aborted.")


@app.command()
def watch() -> None:
    """
    Print the notes table on every change until interrupted.

    Examples:
        cli.py notes watch
    """

    async def follow(controller: NoteListController) -> None:
        controller.observe(lambda c: console.print(render_notes(c)))
        controller.activate()
        await asyncio.Event().wait()

    try:
        _run(follow)
    except KeyboardInterrupt:
        console.print("\n[dim]Stopped watching.[/dim]")
