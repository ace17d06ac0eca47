"""
Note Store Contract.

The interface every remote note store implements, and the cancellable
subscription handle stores hand back from `subscribe`.

A store instance is scoped to one user's collection. Subscribers receive
the complete current set of records on every change (never a diff), and
at least once right after subscribing.
"""

import threading
from collections.abc import Callable
from typing import Protocol, runtime_checkable

from notetogether.core.exceptions import ApplicationError
from notetogether.core.logging import get_logger
from notetogether.models.note import NoteRecord

logger = get_logger(__name__)

Snapshot = tuple[NoteRecord, ...]
SnapshotCallback = Callable[[Snapshot], None]
ErrorCallback = Callable[[ApplicationError], None]


class Subscription:
    """
    Handle for one registered snapshot listener.

    Stores never call the listener callbacks directly; they go through
    `deliver_snapshot` / `deliver_error`, which check the cancelled flag
    under a lock at delivery time. After `cancel()` returns, no callback
    fires again, including deliveries that were already queued.

    The lock is re-entrant so a callback may cancel its own subscription.
    """

    def __init__(
        self,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
        name: str = "notes",
    ) -> None:
        self._on_snapshot = on_snapshot
        self._on_error = on_error
        self._name = name
        self._lock = threading.RLock()
        self._cancelled = False
        self._teardown: Callable[[], None] | None = None

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def set_teardown(self, teardown: Callable[[], None]) -> None:
        """Register the store-side cleanup to run on cancel (e.g. closing a watch)."""
        run_now = False
        with self._lock:
            if self._cancelled:
                run_now = True
            else:
                self._teardown = teardown
        if run_now:
            teardown()

    def cancel(self) -> None:
        """Stop all further callbacks. Idempotent and safe from any thread."""
        with self._lock:
            if self._cancelled:
                return
            self._cancelled = True
            teardown, self._teardown = self._teardown, None

        logger.debug("Subscription cancelled", extra={"subscription": self._name})
        if teardown is not None:
            teardown()

    def deliver_snapshot(self, records: Snapshot) -> bool:
        """Invoke the snapshot callback unless cancelled. Returns whether it fired."""
        with self._lock:
            if self._cancelled:
                return False
            self._on_snapshot(records)
            return True

    def deliver_error(self, error: ApplicationError) -> bool:
        """Invoke the error callback unless cancelled. Returns whether it fired."""
        with self._lock:
            if self._cancelled:
                return False
            self._on_error(error)
            return True


@runtime_checkable
class RemoteNoteStore(Protocol):
    """Durable per-user note storage with push-based change notification."""

    async def add(self, record: NoteRecord) -> str:
        """
        Persist title/body as a new note.

        Returns:
            The store-generated id

        Raises:
            StoreError: On connectivity/permission failure
        """
        ...

    async def update(self, note_id: str, record: NoteRecord) -> None:
        """
        Replace the note at `note_id` wholesale.

        Raises:
            NotFoundError: If `note_id` does not exist
            StoreError: On connectivity/permission failure
        """
        ...

    async def delete(self, note_id: str) -> None:
        """
        Remove the note. Deleting a missing id is not an error.

        Raises:
            StoreError: On connectivity/permission failure
        """
        ...

    def subscribe(
        self,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
    ) -> Subscription:
        """
        Register a listener for whole-collection snapshots.

        Must be called from the event loop that should receive callbacks.

        Raises:
            StoreError: If the listener cannot be registered
        """
        ...
