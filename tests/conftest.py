from __future__ import annotations

import pytest

from servicekit.configuration import BackendConfigurationService, MemoryBackend
from servicekit.errors import SubscriptionError
from servicekit.registry import (
    InMemoryEventSource,
    MultiServiceListener,
    ServiceRegistry,
    SingleServiceListener,
)


class Greeter:
    """Service contract used as a type tag."""

    def __init__(self, name: str) -> None:
        self.name = name

    def __repr__(self) -> str:
        return f"Greeter({self.name!r})"


class Clock:
    """Second, unrelated service contract."""


class RecordingListener(SingleServiceListener, MultiServiceListener):
    def __init__(self) -> None:
        self.events: list[tuple[str, object]] = []

    def after_service_change(self, service) -> None:
        self.events.append(("change", service))

    def before_service_remove(self, service) -> None:
        self.events.append(("remove", service))

    def service_added(self, service) -> None:
        self.events.append(("added", service))

    def service_removed(self, service) -> None:
        self.events.append(("removed", service))


class FlakySource(InMemoryEventSource):
    """Event source whose resolve misses for selected service ids."""

    def __init__(self) -> None:
        super().__init__()
        self.misses: set[int] = set()

    def resolve(self, reference):
        if reference.service_id in self.misses:
            return None
        return super().resolve(reference)


class BrokenSubscriptionSource(InMemoryEventSource):
    def subscribe(self, tag, callback) -> None:
        raise SubscriptionError(f"bad filter for {tag!r}")


@pytest.fixture
def source() -> InMemoryEventSource:
    return InMemoryEventSource()


@pytest.fixture
def flaky_source() -> FlakySource:
    return FlakySource()


@pytest.fixture
def registry(source):
    reg = ServiceRegistry(source)
    yield reg
    if not reg._closed:
        reg.shutdown()


@pytest.fixture
def recorder() -> RecordingListener:
    return RecordingListener()


@pytest.fixture
def backend() -> MemoryBackend:
    return MemoryBackend()


@pytest.fixture
def config(backend) -> BackendConfigurationService:
    return BackendConfigurationService(backend)
