"""Push state transitions for one (content item, endpoint) pair.

Every function is pure: it receives the prior state and the outcome of a
transport call and returns the state to record. ``None`` means no record,
which is how the ``new`` state is stored.
"""

from typing import Optional

from ..models import SyncState, SyncStatus

PUSHED_STATES = (SyncStatus.SUCCESS, SyncStatus.EDIT_ERROR, SyncStatus.REMOVE_ERROR)


def has_remote_copy(prior: Optional[SyncState]) -> bool:
    """Whether a state points at a remote copy that may still exist."""
    return prior is not None and prior.remote_id is not None and prior.status in PUSHED_STATES


def resolve_state(prior: Optional[SyncState], remote_exists: Optional[bool]) -> SyncStatus:
    """
    State a push cycle starts from.

    Args:
        prior: Recorded state, if any
        remote_exists: Result of the existence check, None if it was not made

    Returns:
        NEW when the item has to be created remotely, otherwise the prior status
    """
    if not has_remote_copy(prior):
        return SyncStatus.NEW
    if remote_exists is False:
        return SyncStatus.NEW
    return prior.status


def after_push(endpoint_id: int, remote_id: Optional[int] = None, error: Optional[str] = None) -> SyncState:
    if error is not None:
        return SyncState(endpoint_id=endpoint_id, status=SyncStatus.NEW_ERROR, error=error)
    return SyncState(endpoint_id=endpoint_id, status=SyncStatus.SUCCESS, remote_id=remote_id)


def after_update(endpoint_id: int, remote_id: int, error: Optional[str] = None) -> SyncState:
    if error is not None:
        return SyncState(endpoint_id=endpoint_id, status=SyncStatus.EDIT_ERROR, remote_id=remote_id, error=error)
    return SyncState(endpoint_id=endpoint_id, status=SyncStatus.SUCCESS, remote_id=remote_id)


def after_delete(endpoint_id: int, remote_id: int, error: Optional[str] = None) -> Optional[SyncState]:
    if error is not None:
        return SyncState(endpoint_id=endpoint_id, status=SyncStatus.REMOVE_ERROR, remote_id=remote_id, error=error)
    return None
