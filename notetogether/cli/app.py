"""
CLI Application.

Command-line client for NoteTogether.
Built with Typer for type-safe commands and Rich for formatted output.

Usage:
    cli.py --help

    # Account
    cli.py auth login -e ana@example.com
    cli.py auth signup -e ana@example.com
    cli.py auth google -t <google-id-token>
    cli.py auth whoami
    cli.py auth logout

    # Notes
    cli.py notes list
    cli.py notes add -t Shopping -b "Milk, eggs"
    cli.py notes edit n1 -b "Milk, eggs, bread"
    cli.py notes delete n1
    cli.py notes watch

Options:
    --verbose, -v     Enable verbose output
    --debug, -d       Enable debug mode (detailed logging)
"""

import typer
from rich.console import Console

from notetogether.cli.commands import auth_app, notes_app
from notetogether.core.config import validate_project_root
from notetogether.core.logging import setup_logging

app = typer.Typer(
    name="notetogether",
    help="NoteTogether CLI - Personal notes synchronized in real time.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()

app.add_typer(auth_app, name="auth")
app.add_typer(notes_app, name="notes")


@app.callback()
def main(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Enable verbose output (INFO level logging)",
    ),
    debug: bool = typer.Option(
        False,
        "--debug",
        "-d",
        help="Enable debug mode (DEBUG level logging)",
    ),
) -> None:
    """
    NoteTogether CLI.

    Sign in, then list, add, edit, delete or watch your notes.
    """
    validate_project_root()

    if debug:
        setup_logging(level="DEBUG", format_type="console")
        console.print("[dim]Debug mode enabled[/dim]")
    elif verbose:
        setup_logging(level="INFO", format_type="console")
    else:
        setup_logging()


if __name__ == "__main__":
    app()
