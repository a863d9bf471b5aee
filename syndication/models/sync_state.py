"""Per (content item, endpoint) push state."""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class SyncStatus(str, Enum):
    """Push states for a content item on one endpoint."""

    NEW = "new"
    SUCCESS = "success"
    NEW_ERROR = "new-error"
    EDIT_ERROR = "edit-error"
    REMOVE_ERROR = "remove-error"


class SyncState(BaseModel):
    """Push progress of one content item on one endpoint."""

    endpoint_id: int = Field(..., description="Endpoint ID")
    status: SyncStatus = Field(..., description="Current state")
    remote_id: Optional[int] = Field(None, description="Endpoint-local identifier, if known")
    error: Optional[str] = Field(None, description="Last error, if any")


class SyncStateMap(BaseModel):
    """All sync states of a content item, keyed by endpoint ID."""

    states: Dict[int, SyncState] = Field(default_factory=dict)

    def get(self, endpoint_id: int) -> Optional[SyncState]:
        """Get the state recorded for an endpoint."""
        return self.states.get(endpoint_id)

    def apply(self, endpoint_id: int, state: Optional[SyncState]) -> None:
        """Store a transition result; None (or a bare 'new' state) drops the record."""
        if state is None or state.status == SyncStatus.NEW:
            self.states.pop(endpoint_id, None)
        else:
            self.states[endpoint_id] = state

    def all(self) -> List[SyncState]:
        """All recorded states."""
        return list(self.states.values())

    def to_layout(self) -> Dict[str, Dict[str, Dict[str, Any]]]:
        """Persisted layout: state name -> endpoint ID -> {remote_id, error?}."""
        layout: Dict[str, Dict[str, Dict[str, Any]]] = {}
        for state in self.states.values():
            entry: Dict[str, Any] = {"remote_id": state.remote_id}
            if state.error:
                entry["error"] = state.error
            layout.setdefault(state.status.value, {})[str(state.endpoint_id)] = entry
        return layout

    @classmethod
    def from_layout(cls, layout: Optional[Dict[str, Dict[str, Any]]]) -> "SyncStateMap":
        """Rebuild the map from its persisted layout."""
        states: Dict[int, SyncState] = {}
        for status, endpoints in (layout or {}).items():
            for endpoint_id, entry in (endpoints or {}).items():
                entry = entry or {}
                states[int(endpoint_id)] = SyncState(
                    endpoint_id=int(endpoint_id),
                    status=SyncStatus(status),
                    remote_id=entry.get("remote_id"),
                    error=entry.get("error"),
                )
        return cls(states=states)
