"""Shared pytest fixtures."""

from typing import Any, Dict, List, Optional

import pendulum
import pytest

from syndication.config import ConfigModel
from syndication.engine import SyncEngine
from syndication.errors import TransportError
from syndication.models import ContentItem, Endpoint, NormalizedRecord
from syndication.notify import Notifier
from syndication.store import MemoryScheduler, MemoryStore
from syndication.transports import PullCapable, PushCapable


class FakeClock:
    """Controllable clock."""

    def __init__(self) -> None:
        self.now = pendulum.datetime(2024, 1, 1, 12, 0, 0, tz="UTC")

    def __call__(self):
        return self.now

    def advance(self, seconds: int) -> None:
        self.now = self.now.add(seconds=seconds)


class FakePushTransport(PushCapable):
    """Push transport keeping remote posts in a dict."""

    def __init__(self) -> None:
        self.remote: Dict[int, int] = {}
        self.next_id = 100
        self.calls: List[str] = []
        self.fail_push: Optional[str] = None
        self.fail_update: Optional[str] = None
        self.fail_delete: Optional[str] = None
        self.fail_exists: Optional[str] = None
        self.skip_writes = False

    def push(self, content_id: int) -> Optional[int]:
        self.calls.append("push")
        if self.fail_push:
            raise TransportError(self.fail_push)
        if self.skip_writes:
            return None
        remote_id = self.next_id
        self.next_id += 1
        self.remote[remote_id] = content_id
        return remote_id

    def update(self, content_id: int, remote_id: int) -> Optional[int]:
        self.calls.append("update")
        if self.fail_update:
            raise TransportError(self.fail_update)
        if self.skip_writes:
            return None
        return content_id

    def delete(self, remote_id: int) -> bool:
        self.calls.append("delete")
        if self.fail_delete:
            raise TransportError(self.fail_delete)
        self.remote.pop(remote_id, None)
        return True

    def is_post_exists(self, remote_id: int) -> bool:
        self.calls.append("exists")
        if self.fail_exists:
            raise TransportError(self.fail_exists)
        return remote_id in self.remote

    def test_connection(self) -> bool:
        return True


class FakePullTransport(PullCapable):
    """Pull transport returning canned records or raising."""

    def __init__(self, records: Optional[List[NormalizedRecord]] = None) -> None:
        self.records = records or []
        self.error: Optional[TransportError] = None
        self.pulls = 0

    def pull(self, args: Optional[Dict[str, Any]] = None) -> List[NormalizedRecord]:
        self.pulls += 1
        if self.error is not None:
            raise self.error
        return [record.model_copy(deep=True) for record in self.records]

    def get_post(self, remote_id: int) -> Optional[NormalizedRecord]:
        return None

    def is_post_exists(self, remote_id: int) -> bool:
        return False

    def test_connection(self) -> bool:
        return True


class FakeFactory:
    """Factory handing out registered fake transports by endpoint ID."""

    def __init__(self) -> None:
        self.push_transports: Dict[int, FakePushTransport] = {}
        self.pull_transports: Dict[int, FakePullTransport] = {}

    def create_push_transport(self, endpoint_id: int) -> Optional[PushCapable]:
        return self.push_transports.get(endpoint_id)

    def create_pull_transport(self, endpoint_id: int) -> Optional[PullCapable]:
        return self.pull_transports.get(endpoint_id)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store(clock: FakeClock) -> MemoryStore:
    return MemoryStore(clock=clock)


@pytest.fixture
def scheduler(clock: FakeClock) -> MemoryScheduler:
    return MemoryScheduler(clock=clock)


@pytest.fixture
def factory() -> FakeFactory:
    return FakeFactory()


@pytest.fixture
def events() -> list:
    return []


@pytest.fixture
def notifier(events: list) -> Notifier:
    return Notifier(sinks=[events.append])


@pytest.fixture
def config() -> ConfigModel:
    return ConfigModel(pull={"selected_groups": ["news"]})


@pytest.fixture
def engine(store, scheduler, factory, config, notifier, clock) -> SyncEngine:
    return SyncEngine(
        content=store,
        endpoints=store,
        leases=store,
        scheduler=scheduler,
        factory=factory,
        config=config,
        notifier=notifier,
        clock=clock,
    )


@pytest.fixture
def add_endpoint(store: MemoryStore):
    """Create endpoints in the memory store."""

    def _add(name: str, kind: str = "xmlrpc_push", groups=("news",), enabled: bool = True, **settings) -> int:
        return store.save_endpoint(
            Endpoint(name=name, transport_kind=kind, groups=list(groups), enabled=enabled, settings=settings)
        )

    return _add


@pytest.fixture
def add_content(store: MemoryStore):
    """Create local content items in the memory store."""

    def _add(title: str = "Hello", **fields) -> int:
        return store.create_content(ContentItem(title=title, body=f"{title} body", **fields))

    return _add
