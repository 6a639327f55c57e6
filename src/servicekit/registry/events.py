"""
Service events and the event-source contract

This module provides:
- ServiceEventType / ServiceEvent: what an event source delivers to trackers
- ServiceReference / ServiceRegistration: opaque handles issued by a source
- EventSource: the contract trackers and the registry consume
- InMemoryEventSource: a thread-safe, dict-backed source for in-process hosts
"""

import itertools
import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from ..errors import SubscriptionError

logger = logging.getLogger(__name__)


class ServiceEventType(Enum):
    """Kind of change reported for a service reference"""
    REGISTERED = "registered"
    MODIFIED = "modified"
    UNREGISTERING = "unregistering"


@dataclass(frozen=True)
class ServiceReference:
    """Handle for one live service; two references are equal iff their ids are."""
    service_id: int
    tag: Any = field(compare=False)


@dataclass(frozen=True)
class ServiceEvent:
    kind: ServiceEventType
    reference: ServiceReference


@dataclass(frozen=True)
class ServiceRegistration:
    """Handle returned by ``publish``; pass it back to ``withdraw``."""
    reference: ServiceReference
    tag: Any = field(compare=False)


EventCallback = Callable[[ServiceEvent], None]


class EventSource(ABC):
    """Everything a tracker or registry needs from the host runtime."""

    @abstractmethod
    def subscribe(self, tag: Any, callback: EventCallback) -> None:
        """Deliver future events for services published under *tag*.

        Raises SubscriptionError if *tag* cannot be used as a filter.
        """

    @abstractmethod
    def unsubscribe(self, tag: Any, callback: EventCallback) -> None:
        ...

    @abstractmethod
    def references(self, tag: Any) -> List[ServiceReference]:
        """Snapshot of the live references for *tag*, in registration order."""

    @abstractmethod
    def resolve(self, reference: ServiceReference) -> Optional[Any]:
        """Return the service instance, or None if it is already gone."""

    @abstractmethod
    def release(self, reference: ServiceReference) -> None:
        ...

    @abstractmethod
    def publish(self, tag: Any, instance: Any) -> ServiceRegistration:
        ...

    @abstractmethod
    def withdraw(self, registration: ServiceRegistration) -> None:
        ...


# ---------------------------------------------------------------------------
# In-memory event source
# ---------------------------------------------------------------------------

class InMemoryEventSource(EventSource):
    """Thread-safe event source backed by plain dicts.

    Events are delivered synchronously on the thread that published,
    modified or withdrew the service. The source lock is never held while
    callbacks run.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._ids = itertools.count(1)
        self._services: Dict[ServiceReference, Any] = {}
        self._subscribers: Dict[Any, List[EventCallback]] = {}
        self._use_counts: Dict[ServiceReference, int] = {}

    @staticmethod
    def _check_tag(tag: Any) -> None:
        if tag is None:
            raise SubscriptionError("Service tag must not be None")
        try:
            hash(tag)
        except TypeError as e:
            raise SubscriptionError(f"Invalid service tag: {tag!r}") from e

    def subscribe(self, tag: Any, callback: EventCallback) -> None:
        self._check_tag(tag)
        with self._lock:
            self._subscribers.setdefault(tag, []).append(callback)

    def unsubscribe(self, tag: Any, callback: EventCallback) -> None:
        with self._lock:
            callbacks = self._subscribers.get(tag)
            if callbacks and callback in callbacks:
                callbacks.remove(callback)
                if not callbacks:
                    del self._subscribers[tag]

    def references(self, tag: Any) -> List[ServiceReference]:
        self._check_tag(tag)
        with self._lock:
            return [ref for ref in self._services if ref.tag == tag]

    def resolve(self, reference: ServiceReference) -> Optional[Any]:
        with self._lock:
            instance = self._services.get(reference)
            if instance is not None:
                self._use_counts[reference] = self._use_counts.get(reference, 0) + 1
            return instance

    def release(self, reference: ServiceReference) -> None:
        with self._lock:
            count = self._use_counts.get(reference, 0)
            if count > 1:
                self._use_counts[reference] = count - 1
            else:
                self._use_counts.pop(reference, None)

    def use_count(self, reference: ServiceReference) -> int:
        """Number of outstanding resolves not yet matched by a release."""
        with self._lock:
            return self._use_counts.get(reference, 0)

    def publish(self, tag: Any, instance: Any) -> ServiceRegistration:
        self._check_tag(tag)
        if instance is None:
            raise ValueError("Cannot publish None as a service")
        with self._lock:
            reference = ServiceReference(next(self._ids), tag)
            self._services[reference] = instance
            callbacks = list(self._subscribers.get(tag, ()))
        logger.debug("Published service %s under %r", reference.service_id, tag)
        self._deliver(callbacks, ServiceEvent(ServiceEventType.REGISTERED, reference))
        return ServiceRegistration(reference, tag)

    def modify(self, registration: ServiceRegistration) -> None:
        """Announce that a published service changed its properties."""
        reference = registration.reference
        with self._lock:
            if reference not in self._services:
                return
            callbacks = list(self._subscribers.get(reference.tag, ()))
        self._deliver(callbacks, ServiceEvent(ServiceEventType.MODIFIED, reference))

    def withdraw(self, registration: ServiceRegistration) -> None:
        reference = registration.reference
        with self._lock:
            if reference not in self._services:
                return
            callbacks = list(self._subscribers.get(reference.tag, ()))
        # Subscribers may still resolve the service while it is unregistering.
        try:
            self._deliver(callbacks, ServiceEvent(ServiceEventType.UNREGISTERING, reference))
        finally:
            with self._lock:
                self._services.pop(reference, None)
                self._use_counts.pop(reference, None)
        logger.debug("Withdrew service %s", reference.service_id)

    @staticmethod
    def _deliver(callbacks: List[EventCallback], event: ServiceEvent) -> None:
        for callback in callbacks:
            callback(event)
