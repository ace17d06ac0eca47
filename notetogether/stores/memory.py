"""
In-Memory Note Store.

A process-local implementation of the store contract. Collections live in
an `InMemoryDatabase`; several `InMemoryNoteStore` instances sharing one
database behave like several devices signed in to the same account, so
one client's writes show up in the other's snapshots.

Snapshots are delivered asynchronously on the subscriber's event loop,
never inline with the write that caused them.

Usage:
    database = InMemoryDatabase()
    phone = InMemoryNoteStore("user-1", database)
    laptop = InMemoryNoteStore("user-1", database)

    subscription = phone.subscribe(on_snapshot, on_error)
    note_id = await laptop.add(NoteRecord(title="Shopping"))
"""

import asyncio
from dataclasses import dataclass, field

from notetogether.core.concurrency import call_on_loop
from notetogether.core.exceptions import (
    ApplicationError,
    NotFoundError,
    StoreError,
    SubscriptionError,
)
from notetogether.core.logging import get_logger, log_with_source
from notetogether.models.note import NoteRecord
from notetogether.stores.base import (
    ErrorCallback,
    Snapshot,
    SnapshotCallback,
    Subscription,
)

logger = get_logger(__name__)

DEFAULT_COLLECTION_ROOT = "notes"
DEFAULT_USER_COLLECTION = "user_notes"


@dataclass
class _Collection:
    documents: dict[str, dict[str, str]] = field(default_factory=dict)
    next_id: int = 1
    listeners: list[tuple[Subscription, asyncio.AbstractEventLoop]] = field(default_factory=list)

    def snapshot(self) -> Snapshot:
        return tuple(
            NoteRecord.from_document(note_id, data)
            for note_id, data in self.documents.items()
        )


class InMemoryDatabase:
    """Shared backing storage for in-memory stores, keyed by collection path."""

    def __init__(self) -> None:
        self._collections: dict[str, _Collection] = {}

    def collection(self, path: str) -> _Collection:
        if path not in self._collections:
            self._collections[path] = _Collection()
        return self._collections[path]

    def documents(self, path: str) -> dict[str, dict[str, str]]:
        """Copy of the raw documents at `path` (for inspection)."""
        return {k: dict(v) for k, v in self.collection(path).documents.items()}


class InMemoryNoteStore:
    """
    Store contract over an InMemoryDatabase, scoped to one user.

    Ids are assigned per collection as ``n1``, ``n2``, ... in creation
    order; snapshot order is insertion order.
    """

    def __init__(
        self,
        user_id: str,
        database: InMemoryDatabase | None = None,
        collection_root: str = DEFAULT_COLLECTION_ROOT,
        user_collection: str = DEFAULT_USER_COLLECTION,
    ) -> None:
        self.user_id = user_id
        self.path = f"{collection_root}/{user_id}/{user_collection}"
        self._database = database or InMemoryDatabase()
        self._offline = False
        self._subscriptions: list[Subscription] = []

    @property
    def database(self) -> InMemoryDatabase:
        return self._database

    def set_offline(self, offline: bool) -> None:
        """Simulate losing (or regaining) connectivity for this client."""
        self._offline = offline
        logger.debug("Store connectivity changed", extra={"path": self.path, "offline": offline})

    def emit_error(self, error: ApplicationError | None = None) -> None:
        """Push a transport error to this client's live subscriptions."""
        error = error or SubscriptionError("Listen stream interrupted")
        collection = self._database.collection(self.path)
        for subscription, loop in list(collection.listeners):
            if subscription in self._subscriptions:
                call_on_loop(loop, subscription.deliver_error, error)

    def _check_online(self, operation: str) -> None:
        if self._offline:
            log_with_source(logger, "store", "error", "Store unreachable", operation=operation, path=self.path)
            raise StoreError(f"Cannot {operation}: store unreachable")

    async def add(self, record: NoteRecord) -> str:
        """Persist a new note and return its generated id."""
        self._check_online("add note")
        await asyncio.sleep(0)

        collection = self._database.collection(self.path)
        note_id = f"n{collection.next_id}"
        collection.next_id += 1
        collection.documents[note_id] = record.to_document()

        log_with_source(logger, "store", "info", "Note added", note_id=note_id, path=self.path)
        self._notify(collection)
        return note_id

    async def update(self, note_id: str, record: NoteRecord) -> None:
        """Replace an existing note wholesale."""
        self._check_online("update note")
        await asyncio.sleep(0)

        collection = self._database.collection(self.path)
        if note_id not in collection.documents:
            raise NotFoundError(f"Note {note_id} not found")
        collection.documents[note_id] = record.to_document()

        log_with_source(logger, "store", "info", "Note updated", note_id=note_id, path=self.path)
        self._notify(collection)

    async def delete(self, note_id: str) -> None:
        """Remove a note; a missing id is a no-op and notifies nobody."""
        self._check_online("delete note")
        await asyncio.sleep(0)

        collection = self._database.collection(self.path)
        if collection.documents.pop(note_id, None) is None:
            logger.debug("Delete of missing note ignored", extra={"note_id": note_id})
            return

        log_with_source(logger, "store", "info", "Note deleted", note_id=note_id, path=self.path)
        self._notify(collection)

    def subscribe(
        self,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
    ) -> Subscription:
        """Register a listener; the current state is queued for delivery immediately."""
        self._check_online("subscribe")
        loop = asyncio.get_running_loop()
        collection = self._database.collection(self.path)

        subscription = Subscription(on_snapshot, on_error, name=self.path)
        entry = (subscription, loop)
        collection.listeners.append(entry)
        self._subscriptions.append(subscription)

        def teardown() -> None:
            if entry in collection.listeners:
                collection.listeners.remove(entry)
            if subscription in self._subscriptions:
                self._subscriptions.remove(subscription)

        subscription.set_teardown(teardown)
        call_on_loop(loop, subscription.deliver_snapshot, collection.snapshot())
        return subscription

    def _notify(self, collection: _Collection) -> None:
        snapshot = collection.snapshot()
        for subscription, loop in list(collection.listeners):
            call_on_loop(loop, subscription.deliver_snapshot, snapshot)
