"""
Integration Test Fixtures.

Fixtures for integration tests - controllers wired to real in-memory
stores, with two devices sharing one account where a scenario needs a
second actor.
"""

import pytest

from notetogether.stores.memory import InMemoryNoteStore
from notetogether.sync.controller import NoteListController


@pytest.fixture
def phone(store: InMemoryNoteStore) -> NoteListController:
    """Controller on the first device."""
    controller = NoteListController(store)
    yield controller
    controller.deactivate()


@pytest.fixture
def laptop(other_device: InMemoryNoteStore) -> NoteListController:
    """Controller on a second device signed in to the same account."""
    controller = NoteListController(other_device)
    yield controller
    controller.deactivate()
