"""
Root Pytest Fixtures.

Shared fixtures available to all test types.

Stores:
    Tests use the in-memory store. Several InMemoryNoteStore instances on
    one InMemoryDatabase act like several devices on the same account.

Delivery:
    Snapshots are delivered on the event loop, never inline with the write.
    Await `settle()` to let queued deliveries run before asserting.
"""

import asyncio
from collections.abc import Awaitable, Callable

import pytest

from notetogether.core.config import get_app_config, get_settings
from notetogether.models.note import NoteRecord
from notetogether.stores.memory import InMemoryDatabase, InMemoryNoteStore


@pytest.fixture(autouse=True)
def _clear_config_cache():
    """Each test sees freshly loaded configuration."""
    get_settings.cache_clear()
    get_app_config.cache_clear()
    yield
    get_settings.cache_clear()
    get_app_config.cache_clear()


@pytest.fixture
def settle() -> Callable[[], Awaitable[None]]:
    """
    Let callbacks queued with call_soon run.

    Usage:
        await store.add(NoteRecord(title="a"))
        await settle()
    """

    async def _settle(rounds: int = 5) -> None:
        for _ in range(rounds):
            await asyncio.sleep(0)

    return _settle


@pytest.fixture
def database() -> InMemoryDatabase:
    """Fresh shared backing storage."""
    return InMemoryDatabase()


@pytest.fixture
def store(database: InMemoryDatabase) -> InMemoryNoteStore:
    """In-memory store for user-1."""
    return InMemoryNoteStore("user-1", database)


@pytest.fixture
def other_device(database: InMemoryDatabase) -> InMemoryNoteStore:
    """A second client signed in as user-1, sharing the same database."""
    return InMemoryNoteStore("user-1", database)


@pytest.fixture
def sample_note() -> NoteRecord:
    return NoteRecord(id="n1", title="Shopping", body="Milk, eggs")
