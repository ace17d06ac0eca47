"""
Firestore Note Store.

Store contract backed by Cloud Firestore through the Firebase Admin SDK.
Each user's notes live in ``notes/{userId}/user_notes``; each document is
keyed by the note id and holds only ``title`` and ``body``.

SDK calls are blocking, so writes run in the shared I/O pool behind the
resilience stack (circuit breaker → retry → timeout). Snapshot listeners
fire on SDK threads and are handed back to the subscribing event loop.

Usage:
    from notetogether.stores.firestore import FirestoreNoteStore, get_firestore_client

    store = FirestoreNoteStore(get_firestore_client(), user_id)
"""

import asyncio
from collections.abc import Callable
from typing import Any

import aiobreaker
import firebase_admin
from firebase_admin import credentials, firestore
from google.api_core import exceptions as google_exceptions
from google.auth import exceptions as google_auth_exceptions
from pydantic import ValidationError as PydanticValidationError

from notetogether.core.concurrency import call_on_loop, run_blocking
from notetogether.core.config import get_app_config, get_settings
from notetogether.core.config_schema import StoreSchema
from notetogether.core.exceptions import NotFoundError, StoreError, SubscriptionError
from notetogether.core.logging import get_logger, log_with_source
from notetogether.core.resilience import call_with_resilience, create_circuit_breaker
from notetogether.models.note import NoteRecord
from notetogether.stores.base import ErrorCallback, SnapshotCallback, Subscription

logger = get_logger(__name__)

TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (
    google_exceptions.ServiceUnavailable,
    google_exceptions.DeadlineExceeded,
    google_exceptions.InternalServerError,
    google_exceptions.ResourceExhausted,
    google_exceptions.Aborted,
)

_client: Any = None


def get_firestore_client() -> Any:
    """Get the shared Firestore client (lazy initialization).

    Uses the service-account file from GOOGLE_APPLICATION_CREDENTIALS in
    config/.env when set, application default credentials otherwise.

    Raises:
        StoreError: If no usable credentials or project can be found
    """
    global _client
    if _client is None:
        credentials_path = get_settings().google_application_credentials
        try:
            cred = (
                credentials.Certificate(credentials_path)
                if credentials_path
                else credentials.ApplicationDefault()
            )
            try:
                app = firebase_admin.get_app()
            except ValueError:
                app = firebase_admin.initialize_app(cred)
            _client = firestore.client(app)
        except (ValueError, OSError, google_auth_exceptions.GoogleAuthError) as e:
            log_with_source(logger, "store", "error", "Firestore credentials unavailable", error=str(e))
            raise StoreError(f"Firestore credentials unavailable: {e}") from e
        logger.info("Firestore client created", extra={"project": app.project_id})
    return _client


class FirestoreNoteStore:
    """Store contract over one user's Firestore note collection."""

    def __init__(
        self,
        client: Any,
        user_id: str,
        config: StoreSchema | None = None,
        breaker: aiobreaker.CircuitBreaker | None = None,
    ) -> None:
        self._config = config or get_app_config().store
        self.user_id = user_id
        self.path = f"{self._config.collection_root}/{user_id}/{self._config.user_collection}"
        self._collection = (
            client.collection(self._config.collection_root)
            .document(user_id)
            .collection(self._config.user_collection)
        )
        self._breaker = breaker or create_circuit_breaker(
            "firestore",
            fail_max=self._config.circuit_breaker.fail_max,
            timeout_duration=self._config.circuit_breaker.timeout_duration,
            exclude=[google_exceptions.NotFound],
        )

    async def _write(self, operation: str, fn: Callable[..., Any], *args: Any) -> Any:
        """Run one blocking SDK write through the resilience stack.

        Raises:
            NotFoundError: If the SDK reports the document missing
            StoreError: For every other failure, including an open breaker
        """
        retry = self._config.retry
        try:
            return await call_with_resilience(
                self._breaker,
                lambda: run_blocking(fn, *args),
                transient=TRANSIENT_ERRORS,
                max_attempts=retry.max_attempts,
                backoff_multiplier=retry.backoff_multiplier,
                backoff_max=retry.backoff_max,
                timeout=self._config.write_timeout,
            )
        except google_exceptions.NotFound as e:
            raise NotFoundError(f"Note not found during {operation}") from e
        except aiobreaker.CircuitBreakerError as e:
            log_with_source(logger, "store", "error", "Store circuit open", operation=operation)
            raise StoreError(f"Cannot {operation}: store temporarily unavailable") from e
        except (google_exceptions.GoogleAPIError, TimeoutError) as e:
            log_with_source(
                logger, "store", "error", "Store write failed",
                operation=operation, path=self.path, error=str(e),
            )
            raise StoreError(f"Cannot {operation}: {e}") from e

    async def add(self, record: NoteRecord) -> str:
        """Create a document under a client-generated id.

        The id is fixed before the first attempt, so a retried create (after
        a lost reply or a timeout) finds the document already written and
        counts as success instead of producing a second note.
        """
        doc_ref = self._collection.document()
        data = record.to_document()
        attempts = 0

        def create() -> None:
            nonlocal attempts
            attempts += 1
            first_attempt = attempts == 1
            try:
                doc_ref.create(data)
            except google_exceptions.AlreadyExists:
                if first_attempt:
                    raise
                logger.debug("Create already applied by earlier attempt", extra={"note_id": doc_ref.id})

        await self._write("add note", create)
        log_with_source(logger, "store", "info", "Note added", note_id=doc_ref.id, path=self.path)
        return doc_ref.id

    async def update(self, note_id: str, record: NoteRecord) -> None:
        """Overwrite title and body; fails if the document does not exist."""
        document = self._collection.document(note_id)
        await self._write("update note", document.update, record.to_document())
        log_with_source(logger, "store", "info", "Note updated", note_id=note_id, path=self.path)

    async def delete(self, note_id: str) -> None:
        """Delete the document. Firestore treats a missing document as success."""
        document = self._collection.document(note_id)
        await self._write("delete note", document.delete)
        log_with_source(logger, "store", "info", "Note deleted", note_id=note_id, path=self.path)

    def subscribe(
        self,
        on_snapshot: SnapshotCallback,
        on_error: ErrorCallback,
    ) -> Subscription:
        """Attach a Firestore listener whose callbacks land on the current loop.

        The SDK watch stream has no error callback. It reconnects on its own
        after transient failures; if it gives up on a non-retryable error it
        closes without notice, and `on_error` is not called. Subscribers then
        keep the last snapshot until they subscribe again. `on_error` only
        reports documents that cannot be read as notes.

        Raises:
            StoreError: If the listener cannot be registered
        """
        loop = asyncio.get_running_loop()
        subscription = Subscription(on_snapshot, on_error, name=self.path)

        def handle_snapshot(documents: list[Any], changes: Any, read_time: Any) -> None:
            try:
                records = tuple(
                    NoteRecord.from_document(document.id, document.to_dict())
                    for document in documents
                )
            except PydanticValidationError as e:
                logger.warning(
                    "Unreadable note document in snapshot",
                    extra={"path": self.path, "error": str(e)},
                )
                call_on_loop(
                    loop,
                    subscription.deliver_error,
                    SubscriptionError(f"Unreadable note in {self.path}"),
                )
                return
            call_on_loop(loop, subscription.deliver_snapshot, records)

        try:
            watch = self._collection.on_snapshot(handle_snapshot)
        except google_exceptions.GoogleAPIError as e:
            log_with_source(logger, "store", "error", "Subscribe failed", path=self.path, error=str(e))
            raise StoreError(f"Cannot subscribe to {self.path}: {e}") from e

        subscription.set_teardown(watch.unsubscribe)
        log_with_source(logger, "store", "debug", "Listener attached", path=self.path)
        return subscription
