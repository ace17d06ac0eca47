"""
Unit Tests for NoteListController.

Lifecycle and snapshot handling are driven through a recording store that
exposes the raw callbacks, so deliveries can be replayed in any order.
Write paths use the in-memory store.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

from notetogether.core.exceptions import (
    NotFoundError,
    StoreError,
    SubscriptionError,
    ValidationError,
)
from notetogether.models.note import NoteRecord
from notetogether.stores.base import Subscription
from notetogether.sync.controller import NoteListController, SyncState


class RecordingStore:
    """Store double that hands every subscription back to the test."""

    def __init__(self) -> None:
        self.callbacks: list[tuple] = []
        self.subscriptions: list[Subscription] = []
        self.add = AsyncMock(return_value="new-id")
        self.update = AsyncMock()
        self.delete = AsyncMock()
        self.fail_subscribe: Exception | None = None

    def subscribe(self, on_snapshot, on_error) -> Subscription:
        if self.fail_subscribe is not None:
            raise self.fail_subscribe
        self.callbacks.append((on_snapshot, on_error))
        subscription = Subscription(on_snapshot, on_error)
        self.subscriptions.append(subscription)
        return subscription

    def push(self, *records: NoteRecord, index: int = -1) -> None:
        """Deliver a snapshot straight to the raw callback (bypasses cancel checks)."""
        self.callbacks[index][0](tuple(records))

    def fail(self, error=None, index: int = -1) -> None:
        self.callbacks[index][1](error or SubscriptionError("stream lost"))


@pytest.fixture
def recording_store() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def controller(recording_store) -> NoteListController:
    return NoteListController(recording_store)


A = NoteRecord(id="a", title="Shopping", body="Milk")
B = NoteRecord(id="b", title="Todo", body="Call Bo")


# =============================================================================
# Lifecycle
# =============================================================================


class TestLifecycle:
    def test_starts_inactive_and_empty(self, controller):
        assert controller.state is SyncState.INACTIVE
        assert controller.notes == ()
        assert not controller.is_active

    def test_activate_subscribes(self, controller, recording_store):
        controller.activate()
        assert controller.state is SyncState.SUBSCRIBING
        assert len(recording_store.callbacks) == 1

    def test_activate_twice_is_noop(self, controller, recording_store):
        controller.activate()
        controller.activate()
        assert len(recording_store.callbacks) == 1

    def test_first_snapshot_synchronizes(self, controller, recording_store):
        controller.activate()
        recording_store.push(A, B)

        assert controller.state is SyncState.SYNCED
        assert controller.notes == (A, B)

    def test_empty_snapshot_synchronizes(self, controller, recording_store):
        controller.activate()
        recording_store.push()
        assert controller.state is SyncState.SYNCED
        assert controller.notes == ()

    def test_deactivate_cancels_and_clears(self, controller, recording_store):
        controller.activate()
        recording_store.push(A)

        controller.deactivate()

        assert controller.state is SyncState.INACTIVE
        assert controller.notes == ()
        assert recording_store.subscriptions[0].cancelled

    def test_deactivate_when_inactive_is_noop(self, controller):
        listener = MagicMock()
        controller.observe(listener)
        controller.deactivate()
        listener.assert_not_called()

    def test_reactivate_subscribes_again(self, controller, recording_store):
        controller.activate()
        controller.deactivate()
        controller.activate()
        recording_store.push(B)

        assert len(recording_store.callbacks) == 2
        assert controller.notes == (B,)

    def test_subscribe_failure_leaves_inactive(self, controller, recording_store):
        recording_store.fail_subscribe = StoreError("offline")

        with pytest.raises(StoreError):
            controller.activate()

        assert controller.state is SyncState.INACTIVE


# =============================================================================
# Snapshots
# =============================================================================


class TestSnapshots:
    def test_snapshot_replaces_list_wholesale(self, controller, recording_store):
        """Records missing from a snapshot disappear; nothing is merged."""
        controller.activate()
        recording_store.push(A, B)
        recording_store.push(B)

        assert controller.notes == (B,)

    def test_order_follows_store(self, controller, recording_store):
        controller.activate()
        recording_store.push(B, A)
        assert [n.id for n in controller.notes] == ["b", "a"]

    def test_duplicate_ids_are_rejected(self, controller, recording_store):
        controller.activate()
        recording_store.push(A)
        recording_store.push(B, B.model_copy(update={"title": "dup"}))

        assert controller.state is SyncState.ERROR
        assert isinstance(controller.last_error, SubscriptionError)
        assert controller.notes == (A,)

    def test_missing_id_is_rejected(self, controller, recording_store):
        controller.activate()
        recording_store.push(NoteRecord(title="no id"))
        assert controller.state is SyncState.ERROR
        assert controller.notes == ()

    def test_get_by_id(self, controller, recording_store):
        controller.activate()
        recording_store.push(A, B)
        assert controller.get("b") == B
        assert controller.get("zzz") is None


class TestErrors:
    def test_error_keeps_last_good_list(self, controller, recording_store):
        controller.activate()
        recording_store.push(A, B)

        recording_store.fail()

        assert controller.state is SyncState.ERROR
        assert controller.notes == (A, B)
        assert isinstance(controller.last_error, SubscriptionError)

    def test_error_before_first_snapshot(self, controller, recording_store):
        controller.activate()
        recording_store.fail()
        assert controller.state is SyncState.ERROR
        assert controller.notes == ()

    def test_snapshot_recovers_from_error(self, controller, recording_store):
        controller.activate()
        recording_store.push(A)
        recording_store.fail()
        recording_store.push(A, B)

        assert controller.state is SyncState.SYNCED
        assert controller.last_error is None
        assert controller.notes == (A, B)


class TestCancellation:
    """Nothing from a torn-down subscription may reach the list."""

    def test_stale_snapshot_after_deactivate_is_ignored(self, controller, recording_store):
        controller.activate()
        controller.deactivate()

        recording_store.push(A, index=0)

        assert controller.state is SyncState.INACTIVE
        assert controller.notes == ()

    def test_stale_error_after_deactivate_is_ignored(self, controller, recording_store):
        controller.activate()
        controller.deactivate()
        recording_store.fail(index=0)
        assert controller.state is SyncState.INACTIVE

    def test_old_subscription_cannot_touch_new_one(self, controller, recording_store):
        controller.activate()
        controller.deactivate()
        controller.activate()
        recording_store.push(B, index=1)

        recording_store.push(A, index=0)
        recording_store.fail(index=0)

        assert controller.state is SyncState.SYNCED
        assert controller.notes == (B,)

    @pytest.mark.asyncio
    async def test_queued_delivery_dropped_after_deactivate(self, store, settle):
        note_id = await store.add(NoteRecord(title="a"))
        controller = NoteListController(store)
        listener = MagicMock()
        controller.observe(listener)

        controller.activate()
        controller.deactivate()
        listener.reset_mock()
        await settle()

        listener.assert_not_called()
        assert controller.notes == ()
        assert note_id == "n1"


class TestObservers:
    def test_listener_called_on_each_change(self, controller, recording_store):
        listener = MagicMock()
        controller.observe(listener)

        controller.activate()
        recording_store.push(A)
        recording_store.fail()
        controller.deactivate()

        assert listener.call_count == 3
        listener.assert_called_with(controller)

    def test_unobserve(self, controller, recording_store):
        listener = MagicMock()
        unobserve = controller.observe(listener)
        unobserve()
        unobserve()

        controller.activate()
        recording_store.push(A)

        listener.assert_not_called()

    def test_listener_sees_new_state(self, controller, recording_store):
        seen = []
        controller.observe(lambda c: seen.append((c.state, c.notes)))
        controller.activate()
        recording_store.push(A)
        assert seen == [(SyncState.SYNCED, (A,))]


# =============================================================================
# Intents
# =============================================================================


class TestCommit:
    @pytest.mark.asyncio
    async def test_new_note_is_added(self, controller, recording_store):
        session = controller.request_create("Shopping", "Milk, eggs")

        note_id = await controller.commit(session)

        assert note_id == "new-id"
        recording_store.add.assert_awaited_once_with(NoteRecord(title="Shopping", body="Milk, eggs"))
        recording_store.update.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_existing_note_is_updated(self, controller, recording_store):
        controller.activate()
        recording_store.push(A)
        session = controller.request_edit("a")
        session.update(body="Milk, eggs, bread")

        note_id = await controller.commit(session)

        assert note_id == "a"
        recording_store.update.assert_awaited_once_with(
            "a", NoteRecord(id="a", title="Shopping", body="Milk, eggs, bread"),
        )

    @pytest.mark.asyncio
    async def test_commit_does_not_touch_local_list(self, controller, recording_store):
        """Saved changes appear only once the store echoes them back."""
        controller.activate()
        recording_store.push(A)
        session = controller.request_edit("a")
        session.update(title="Changed")

        await controller.commit(session)

        assert controller.notes == (A,)

    @pytest.mark.asyncio
    async def test_store_error_propagates(self, controller, recording_store):
        recording_store.add.side_effect = StoreError("offline")

        with pytest.raises(StoreError):
            await controller.commit(controller.request_create("a"))

        assert controller.pending_writes == 0

    @pytest.mark.asyncio
    async def test_update_of_deleted_note_raises_not_found(self, controller, recording_store):
        controller.activate()
        recording_store.push(A)
        recording_store.update.side_effect = NotFoundError("gone")

        with pytest.raises(NotFoundError):
            await controller.commit(controller.request_edit("a"))

    @pytest.mark.asyncio
    async def test_pending_writes_counted_while_in_flight(self, controller, recording_store):
        seen = []

        async def slow_add(record):
            seen.append(controller.pending_writes)
            return "id"

        recording_store.add.side_effect = slow_add
        await controller.commit(controller.request_create("a"))

        assert seen == [1]
        assert controller.pending_writes == 0


class TestRequestEdit:
    def test_missing_note_returns_none(self, controller, recording_store):
        controller.activate()
        recording_store.push(A)
        assert controller.request_edit("b") is None

    def test_session_seeded_from_local_record(self, controller, recording_store):
        controller.activate()
        recording_store.push(A)
        session = controller.request_edit("a")
        assert session.original == A
        assert not session.is_dirty


class TestDelete:
    @pytest.mark.asyncio
    async def test_request_delete_calls_store(self, controller, recording_store):
        await controller.request_delete("a")
        recording_store.delete.assert_awaited_once_with("a")

    @pytest.mark.asyncio
    async def test_deleting_missing_note_is_not_an_error(self, controller, recording_store):
        recording_store.delete.side_effect = NotFoundError("gone")
        await controller.request_delete("a")

    @pytest.mark.asyncio
    async def test_store_error_propagates(self, controller, recording_store):
        recording_store.delete.side_effect = StoreError("offline")
        with pytest.raises(StoreError):
            await controller.request_delete("a")
        assert controller.pending_writes == 0

    @pytest.mark.asyncio
    async def test_delete_confirmed_needs_armed_gate(self, controller, recording_store):
        controller.activate()
        recording_store.push(A)
        session = controller.request_edit("a")

        with pytest.raises(ValidationError):
            await controller.delete_confirmed(session)
        recording_store.delete.assert_not_awaited()

        session.request_delete()
        assert await controller.delete_confirmed(session) == "a"
        recording_store.delete.assert_awaited_once_with("a")

    @pytest.mark.asyncio
    async def test_delete_does_not_touch_local_list(self, controller, recording_store):
        controller.activate()
        recording_store.push(A)
        await controller.request_delete("a")
        assert controller.notes == (A,)
