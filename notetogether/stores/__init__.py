"""
Note Stores.

Implementations of the remote note store contract, and the factory that
picks one according to config/settings/store.yaml.
"""

from notetogether.core.config import get_app_config
from notetogether.core.logging import get_logger
from notetogether.stores.base import RemoteNoteStore, Subscription
from notetogether.stores.memory import InMemoryDatabase, InMemoryNoteStore

logger = get_logger(__name__)

_memory_database: InMemoryDatabase | None = None


def get_memory_database() -> InMemoryDatabase:
    """Process-wide database backing the `memory` store backend."""
    global _memory_database
    if _memory_database is None:
        _memory_database = InMemoryDatabase()
    return _memory_database


def create_note_store(user_id: str) -> RemoteNoteStore:
    """
    Create the configured note store for one user.

    Args:
        user_id: Owner of the note collection

    Returns:
        A store scoped to ``{collection_root}/{user_id}/{user_collection}``
    """
    config = get_app_config().store
    logger.debug("Creating note store", extra={"backend": config.backend, "user_id": user_id})

    if config.backend == "memory":
        return InMemoryNoteStore(
            user_id,
            get_memory_database(),
            collection_root=config.collection_root,
            user_collection=config.user_collection,
        )

    from notetogether.stores.firestore import FirestoreNoteStore, get_firestore_client

    return FirestoreNoteStore(get_firestore_client(), user_id, config=config)


__all__ = [
    "InMemoryDatabase",
    "InMemoryNoteStore",
    "RemoteNoteStore",
    "Subscription",
    "create_note_store",
    "get_memory_database",
]
