"""
CLI Command Groups.

- auth: Sign in / sign up / sign out
- notes: List, add, edit, delete and watch notes
"""

from notetogether.cli.commands.auth import app as auth_app
from notetogether.cli.commands.notes import app as notes_app

__all__ = ["auth_app", "notes_app"]
