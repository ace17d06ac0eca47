"""
Unit Test Fixtures.

Fixtures for unit tests - all external dependencies are mocked.
Unit tests never talk to Firestore or the identity provider.
"""

from typing import Any
from unittest.mock import MagicMock

import pytest

from notetogether.core.config_schema import (
    StoreCircuitBreakerSchema,
    StoreRetrySchema,
    StoreSchema,
)


# =============================================================================
# Store Config Fixtures
# =============================================================================


@pytest.fixture
def store_config() -> StoreSchema:
    """
    Store settings with zero backoff so retry tests run instantly.
    """
    return StoreSchema(
        backend="firestore",
        collection_root="notes",
        user_collection="user_notes",
        write_timeout=5,
        retry=StoreRetrySchema(max_attempts=3, backoff_multiplier=0, backoff_max=0),
        circuit_breaker=StoreCircuitBreakerSchema(fail_max=5, timeout_duration=30),
    )


# =============================================================================
# Firestore Mock Fixtures
# =============================================================================


@pytest.fixture
def mock_collection() -> MagicMock:
    """
    Mock of ``client.collection("notes").document(uid).collection("user_notes")``.

    Usage:
        def test_add(mock_firestore_client, mock_collection):
            mock_collection.document.return_value.id = "abc"
    """
    collection = MagicMock()
    collection.document.return_value.id = "generated-id"
    collection.on_snapshot = MagicMock(return_value=MagicMock())
    return collection


@pytest.fixture
def mock_firestore_client(mock_collection: MagicMock) -> MagicMock:
    """Mock Firestore client whose user collection is `mock_collection`."""
    client = MagicMock()
    client.collection.return_value.document.return_value.collection.return_value = mock_collection
    return client


def make_document(note_id: str, data: dict[str, Any] | None) -> MagicMock:
    """Mock DocumentSnapshot as handed to on_snapshot callbacks."""
    document = MagicMock()
    document.id = note_id
    document.to_dict.return_value = data
    return document


@pytest.fixture
def document_factory():
    """Build mock DocumentSnapshots: document_factory("n1", {"title": "a"})."""
    return make_document

