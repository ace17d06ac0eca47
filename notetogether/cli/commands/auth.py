"""
Auth Commands.

Sign in, sign up, sign out and show the current user.
"""

import asyncio

import typer
from rich.console import Console

from notetogether.auth import get_authenticator
from notetogether.core.exceptions import AuthenticationError
from notetogether.models.auth import AuthResult

app = typer.Typer(help="Account commands")
console = Console()


def _report(result: AuthResult) -> None:
    """Print the outcome of a sign-in call; exit non-zero on failure."""
    if result.success and result.session is not None:
        who = result.session.email or result.session.user_id
        console.print(f"[green]Signed in as {who}[/green]")
        return
    console.print(f"[red]{result.error}[/red]")
    raise typer.Exit(1)


def _run(coro) -> AuthResult:
    try:
        return asyncio.run(coro)
    except AuthenticationError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(1)


@app.command()
def login(
    email: str = typer.Option(..., "--email", "-e", prompt=True, help="Account email"),
    password: str = typer.Option(..., "--password", "-p", prompt=True, hide_input=True, help="Account password"),
) -> None:
    """
    Sign in with email and password.

    Examples:
        cli.py auth login -e ana@example.com
    """
    _report(_run(get_authenticator().sign_in(email, password)))


@app.command()
def signup(
    email: str = typer.Option(..., "--email", "-e", prompt=True, help="Account email"),
    password: str = typer.Option(
        ..., "--password", "-p", prompt=True, hide_input=True, confirmation_prompt=True,
        help="Account password",
    ),
) -> None:
    """Create an account and sign in to it."""
    _report(_run(get_authenticator().sign_up(email, password)))


@app.command()
def google(
    token: str = typer.Option(..., "--token", "-t", help="Google ID token"),
) -> None:
    """Sign in with a Google ID token."""
    _report(_run(get_authenticator().sign_in_with_google_token(token)))


@app.command()
def logout() -> None:
    """Forget the signed-in session."""
    get_authenticator().sign_out()
    console.print("Signed out.")


@app.command()
def whoami() -> None:
    """Show the signed-in user."""
    session = get_authenticator().session
    if session is None:
        console.print("[yellow]Not signed in.[/yellow]")
        raise typer.Exit(1)
    status = " [yellow](token expired)[/yellow]" if session.is_expired else ""
    console.print(f"{session.email or '-'} ({session.user_id}){status}")
