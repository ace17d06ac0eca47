"""
Note List Controller.

Bridges one store subscription to an observable, in-memory note list and
turns user intents (create, edit, delete) into store calls.

Every snapshot from the store is authoritative and total: the local list
is replaced wholesale, never patched. Writes are not applied locally; their
effect becomes visible when the store echoes them back in a later snapshot.

State machine:
    INACTIVE ──activate──▶ SUBSCRIBING ──snapshot──▶ SYNCED
    SUBSCRIBING | SYNCED | ERROR ──snapshot──▶ SYNCED
    any active state ──error──▶ ERROR (last good list kept)
    any active state ──deactivate──▶ INACTIVE (list cleared)

Usage:
    controller = NoteListController(store)
    unobserve = controller.observe(lambda c: render(c.notes))
    controller.activate()

    session = controller.request_create("Shopping", "Milk, eggs")
    note_id = await controller.commit(session)

    controller.deactivate()
"""

from collections.abc import Callable
from enum import Enum

from notetogether.core.exceptions import (
    ApplicationError,
    NotFoundError,
    SubscriptionError,
)
from notetogether.core.logging import get_logger, log_with_source
from notetogether.models.note import NoteRecord
from notetogether.stores.base import RemoteNoteStore, Snapshot, Subscription
from notetogether.sync.session import NoteEditSession

logger = get_logger(__name__)


class SyncState(str, Enum):
    """Lifecycle of the controller's subscription."""

    INACTIVE = "inactive"
    SUBSCRIBING = "subscribing"
    SYNCED = "synced"
    ERROR = "error"


Listener = Callable[["NoteListController"], None]


class NoteListController:
    """
    Owns the local note list for one user's collection.

    The list has a single writer (snapshot application on the owning event
    loop) and any number of readers. Snapshot and error callbacks are
    guarded by a generation counter as well as by the subscription itself,
    so nothing from a torn-down subscription reaches the list.
    """

    def __init__(self, store: RemoteNoteStore) -> None:
        self._store = store
        self._state = SyncState.INACTIVE
        self._notes: Snapshot = ()
        self._last_error: ApplicationError | None = None
        self._subscription: Subscription | None = None
        self._generation = 0
        self._pending_writes = 0
        self._listeners: list[Listener] = []

    # -------------------------------------------------------------- state

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def notes(self) -> Snapshot:
        """Records from the last applied snapshot, in store order."""
        return self._notes

    @property
    def last_error(self) -> ApplicationError | None:
        return self._last_error

    @property
    def pending_writes(self) -> int:
        """Writes awaiting the store's reply (drives an "in flight" indicator)."""
        return self._pending_writes

    @property
    def is_active(self) -> bool:
        return self._state is not SyncState.INACTIVE

    def get(self, note_id: str) -> NoteRecord | None:
        """Find a record in the current list by id."""
        for note in self._notes:
            if note.id == note_id:
                return note
        return None

    def observe(self, listener: Listener) -> Callable[[], None]:
        """
        Register a change listener.

        Listeners are called with the controller after each applied
        snapshot, subscription error and teardown.

        Returns:
            A callable that removes the listener
        """
        self._listeners.append(listener)

        def unobserve() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unobserve

    # ---------------------------------------------------------- lifecycle

    def activate(self) -> None:
        """
        Subscribe to the store. No-op if already active.

        Raises:
            StoreError: If the store refuses the subscription (state stays INACTIVE)
        """
        if self.is_active:
            logger.debug("Activate ignored, already active", extra={"state": self._state.value})
            return

        self._generation += 1
        generation = self._generation

        def on_snapshot(records: Snapshot) -> None:
            if generation == self._generation:
                self._apply_snapshot(records)

        def on_error(error: ApplicationError) -> None:
            if generation == self._generation:
                self._enter_error(error)

        self._set_state(SyncState.SUBSCRIBING)
        try:
            self._subscription = self._store.subscribe(on_snapshot, on_error)
        except ApplicationError:
            self._generation += 1
            self._set_state(SyncState.INACTIVE)
            raise

    def deactivate(self) -> None:
        """Cancel the subscription and clear the list. No-op if inactive."""
        if not self.is_active:
            return

        self._generation += 1
        subscription, self._subscription = self._subscription, None
        if subscription is not None:
            subscription.cancel()

        self._notes = ()
        self._last_error = None
        self._set_state(SyncState.INACTIVE)
        self._notify()

    def _apply_snapshot(self, records: Snapshot) -> None:
        ids = [record.id for record in records]
        if len(ids) != len(set(ids)) or None in ids:
            self._enter_error(SubscriptionError("Snapshot contains missing or duplicate note ids"))
            return

        self._notes = tuple(records)
        self._last_error = None
        self._set_state(SyncState.SYNCED)
        log_with_source(logger, "sync", "debug", "Snapshot applied", count=len(self._notes))
        self._notify()

    def _enter_error(self, error: ApplicationError) -> None:
        self._last_error = error
        self._set_state(SyncState.ERROR)
        log_with_source(
            logger, "sync", "warning", "Subscription error, keeping last snapshot",
            error=error.message, code=error.code, count=len(self._notes),
        )
        self._notify()

    def _set_state(self, state: SyncState) -> None:
        if state is not self._state:
            log_with_source(
                logger, "sync", "info", "Sync state changed",
                old_state=self._state.value, new_state=state.value,
            )
            self._state = state

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # ------------------------------------------------------------ intents

    def request_create(self, title: str = "", body: str = "") -> NoteEditSession:
        """Start a session for a new note."""
        session = NoteEditSession.start(None)
        session.update(title=title, body=body)
        return session

    def request_edit(self, note_id: str) -> NoteEditSession | None:
        """Start a session seeded from the local record, or None if it is gone."""
        note = self.get(note_id)
        if note is None:
            logger.debug("Edit requested for missing note", extra={"note_id": note_id})
            return None
        return NoteEditSession.start(note)

    async def commit(self, session: NoteEditSession) -> str:
        """
        Send the session's candidate to the store.

        New notes are added (the store assigns the id); existing notes are
        replaced by id. The local list is left alone until the next snapshot.

        Returns:
            The id of the saved note

        Raises:
            StoreError: On connectivity/permission failure
            NotFoundError: If an existing note was deleted in the meantime
        """
        candidate = session.commit_candidate()
        self._pending_writes += 1
        try:
            if candidate.id is None:
                note_id = await self._store.add(candidate)
                log_with_source(logger, "sync", "info", "Note created", note_id=note_id)
            else:
                note_id = candidate.id
                await self._store.update(note_id, candidate)
                log_with_source(logger, "sync", "info", "Note saved", note_id=note_id)
        except ApplicationError as e:
            log_with_source(
                logger, "sync", "error", "Commit failed",
                note_id=candidate.id, error=e.message, code=e.code,
            )
            raise
        finally:
            self._pending_writes -= 1
        return note_id

    async def request_delete(self, note_id: str) -> None:
        """
        Ask the store to delete a note. Deleting a note that is already gone
        is not an error.

        Raises:
            StoreError: On connectivity/permission failure
        """
        self._pending_writes += 1
        try:
            await self._store.delete(note_id)
        except NotFoundError:
            logger.debug("Delete of missing note ignored", extra={"note_id": note_id})
        except ApplicationError as e:
            log_with_source(
                logger, "sync", "error", "Delete failed",
                note_id=note_id, error=e.message, code=e.code,
            )
            raise
        finally:
            self._pending_writes -= 1
        log_with_source(logger, "sync", "info", "Note delete requested", note_id=note_id)

    async def delete_confirmed(self, session: NoteEditSession) -> str:
        """
        Delete the session's note through its confirmation gate.

        Returns:
            The id that was deleted

        Raises:
            ValidationError: If the gate was not armed or the note is unsaved
            StoreError: On connectivity/permission failure
        """
        note_id = session.confirm_delete()
        await self.request_delete(note_id)
        return note_id
