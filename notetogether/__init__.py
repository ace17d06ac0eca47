"""
NoteTogether.

- core/: Configuration, logging, exceptions, resilience, concurrency
- models/: NoteRecord and auth session models
- stores/: Remote note store contract, Firestore and in-memory stores
- sync/: Note list controller and edit sessions
- auth/: Firebase sign-in and session cache
- cli/: Command-line client (Typer + Rich)
"""
