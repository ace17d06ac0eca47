"""
Note Synchronization.

The local, observable note list reconciled from store snapshots, and the
editing sessions that feed changes back to the store.
"""

from notetogether.sync.controller import NoteListController, SyncState
from notetogether.sync.session import NoteEditSession

__all__ = ["NoteEditSession", "NoteListController", "SyncState"]
