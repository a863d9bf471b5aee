"""Tests for push state transitions and the persisted sync state layout."""

from syndication.engine import after_delete, after_push, after_update, has_remote_copy, resolve_state
from syndication.models import SyncState, SyncStateMap, SyncStatus


def state(status: SyncStatus, remote_id=None, error=None) -> SyncState:
    return SyncState(endpoint_id=1, status=status, remote_id=remote_id, error=error)


class TestResolveState:
    """Tests for the state a push cycle starts from."""

    def test_no_record_is_new(self):
        assert resolve_state(None, None) == SyncStatus.NEW

    def test_new_error_is_new(self):
        assert resolve_state(state(SyncStatus.NEW_ERROR, error="boom"), None) == SyncStatus.NEW

    def test_missing_remote_is_new(self):
        assert resolve_state(state(SyncStatus.SUCCESS, 5), False) == SyncStatus.NEW

    def test_existing_remote_keeps_status(self):
        assert resolve_state(state(SyncStatus.SUCCESS, 5), True) == SyncStatus.SUCCESS
        assert resolve_state(state(SyncStatus.EDIT_ERROR, 5, "x"), True) == SyncStatus.EDIT_ERROR

    def test_remote_copy_requires_remote_id(self):
        assert has_remote_copy(state(SyncStatus.SUCCESS, 5))
        assert not has_remote_copy(state(SyncStatus.SUCCESS))
        assert not has_remote_copy(state(SyncStatus.NEW_ERROR, error="x"))


class TestTransitions:
    """Every transition lands in a defined state."""

    def test_push_outcomes(self):
        assert after_push(1, 7).status == SyncStatus.SUCCESS
        assert after_push(1, 7).remote_id == 7
        failed = after_push(1, error="refused")
        assert failed.status == SyncStatus.NEW_ERROR
        assert failed.remote_id is None

    def test_update_outcomes_keep_remote_id(self):
        assert after_update(1, 7).status == SyncStatus.SUCCESS
        failed = after_update(1, 7, "refused")
        assert failed.status == SyncStatus.EDIT_ERROR
        assert failed.remote_id == 7

    def test_delete_outcomes(self):
        assert after_delete(1, 7) is None
        failed = after_delete(1, 7, "refused")
        assert failed.status == SyncStatus.REMOVE_ERROR
        assert failed.remote_id == 7


class TestSyncStateMap:
    """Tests for SyncStateMap."""

    def test_layout_groups_by_state(self):
        states = SyncStateMap()
        states.apply(1, SyncState(endpoint_id=1, status=SyncStatus.SUCCESS, remote_id=10))
        states.apply(2, SyncState(endpoint_id=2, status=SyncStatus.NEW_ERROR, error="boom"))

        assert states.to_layout() == {
            "success": {"1": {"remote_id": 10}},
            "new-error": {"2": {"remote_id": None, "error": "boom"}},
        }

    def test_layout_round_trip(self):
        layout = {"edit-error": {"3": {"remote_id": 4, "error": "x"}}}
        restored = SyncStateMap.from_layout(layout)
        assert restored.get(3).status == SyncStatus.EDIT_ERROR
        assert restored.get(3).remote_id == 4
        assert restored.to_layout() == layout

    def test_apply_none_drops_record(self):
        states = SyncStateMap.from_layout({"success": {"1": {"remote_id": 1}}})
        states.apply(1, None)
        assert states.get(1) is None
        assert states.all() == []

    def test_one_state_per_endpoint(self):
        states = SyncStateMap()
        states.apply(1, SyncState(endpoint_id=1, status=SyncStatus.NEW_ERROR, error="x"))
        states.apply(1, SyncState(endpoint_id=1, status=SyncStatus.SUCCESS, remote_id=9))
        assert len(states.all()) == 1
        assert "new-error" not in states.to_layout()
