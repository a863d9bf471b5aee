"""Endpoint selection by group membership."""

from typing import Iterable, List, Tuple

from ..models import Endpoint
from ..store.base import EndpointStore


def group_members(endpoints: EndpointStore, groups: Iterable[str], enabled_only: bool = True) -> List[Endpoint]:
    """Distinct members of the given groups."""
    members = {}
    for group in groups:
        for endpoint in endpoints.enumerate_group_members(group):
            if enabled_only and not endpoint.enabled:
                continue
            members[endpoint.id] = endpoint
    return list(members.values())


def select_pull_endpoints(endpoints: EndpointStore, groups: Iterable[str]) -> List[Endpoint]:
    """Enabled members of the selected groups, least recently pulled first."""
    members = group_members(endpoints, groups)
    return sorted(
        members,
        key=lambda e: (e.last_pull_at is not None, e.last_pull_at.timestamp() if e.last_pull_at else 0.0),
    )


def resolve_push_targets(
    endpoints: EndpointStore,
    selected_groups: Iterable[str],
    previous_groups: Iterable[str] = (),
) -> Tuple[List[int], List[int]]:
    """
    Endpoints a content item should be pushed to and removed from.

    Returns:
        (selected endpoint IDs, removed endpoint IDs); only enabled members are selected
    """
    selected = [e.id for e in group_members(endpoints, selected_groups)]
    previous = [e.id for e in group_members(endpoints, previous_groups, enabled_only=False)]
    removed = [endpoint_id for endpoint_id in previous if endpoint_id not in selected]
    return sorted(selected), sorted(removed)
