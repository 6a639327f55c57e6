"""
Service registry facade

This module provides:
- ServiceRegistry: typed service lookup, listener registration and local
  service publication on top of an EventSource
- set_default_registry / get_default_registry: the process-wide slot for
  callers that cannot be handed a registry explicitly
"""

import logging
import threading
from concurrent.futures import Future, InvalidStateError, TimeoutError as FutureTimeoutError
from typing import Any, Dict, List, Optional, Tuple

from ..errors import RegistryUnavailableError
from .events import EventSource, ServiceRegistration
from .multi import MultiServiceListener, MultiServiceTracker
from .single import SingleServiceListener, SingleServiceTracker

logger = logging.getLogger(__name__)


class _FirstServiceWaiter(SingleServiceListener):
    """Completes a future with the first non-None service it sees."""

    def __init__(self, future: Future):
        self.future = future
        self._lock = threading.Lock()

    def offer(self, service: Optional[Any]) -> bool:
        if service is None:
            return False
        with self._lock:
            if self.future.done():
                return False
            try:
                self.future.set_result(service)
            except InvalidStateError:
                # cancelled by the caller in the meantime
                return False
        return True

    def after_service_change(self, service: Optional[Any]) -> None:
        self.offer(service)


class ServiceRegistry:
    """Thread-safe service registry bound to one event source.

    Trackers are created lazily, one per (tag, flavour), and started against
    the event source on first use. The index lock is only held while the
    tracker maps are consulted or a new tracker is started; it is always
    taken before any tracker-internal lock.
    """

    def __init__(self, source: EventSource):
        self._source = source
        self._lock = threading.Lock()
        self._closed = False
        self._trackers: Dict[Any, SingleServiceTracker] = {}
        self._multi_trackers: Dict[Any, MultiServiceTracker] = {}
        # id(instance) -> (instance, registration); keeps the instance alive
        # so its id cannot be reused while registered
        self._registrations_lock = threading.Lock()
        self._registrations: Dict[int, Tuple[Any, Optional[ServiceRegistration]]] = {}

    @property
    def source(self) -> EventSource:
        return self._source

    def _check_open(self) -> None:
        if self._closed:
            raise RegistryUnavailableError("Service registry has been shut down")

    def _single_tracker(self, tag: Any) -> SingleServiceTracker:
        with self._lock:
            self._check_open()
            tracker = self._trackers.get(tag)
            if tracker is None:
                tracker = SingleServiceTracker(tag)
                self._trackers[tag] = tracker
                tracker.start(self._source)
            return tracker

    def _multi_tracker(self, tag: Any) -> MultiServiceTracker:
        with self._lock:
            self._check_open()
            tracker = self._multi_trackers.get(tag)
            if tracker is None:
                tracker = MultiServiceTracker(tag)
                self._multi_trackers[tag] = tracker
                tracker.start(self._source)
            return tracker

    # -----------------------------------------------------------------------
    # Lookup
    # -----------------------------------------------------------------------

    def get_service(self, tag: Any) -> Optional[Any]:
        """The current service for *tag*, or None.

        Only use the returned instance while you are sure it is still valid.
        """
        return self._single_tracker(tag).get_service()

    def get_services(self, tag: Any) -> List[Any]:
        """Snapshot of all live services for *tag*."""
        return self._multi_tracker(tag).get_services()

    def async_wait_for_service(self, tag: Any) -> Future:
        """Return a future completed with the first available service for *tag*.

        The future has no deadline of its own; use ``future.result(timeout)``.
        """
        tracker = self._single_tracker(tag)
        future: Future = Future()
        waiter = _FirstServiceWaiter(future)
        tracker.add_listener(waiter)
        future.add_done_callback(lambda _f: tracker.remove_listener(waiter))
        waiter.offer(tracker.get_service())
        return future

    def wait_for_service(self, tag: Any, timeout: float) -> Optional[Any]:
        """Block up to *timeout* seconds for a service of *tag*; None on timeout."""
        future = self.async_wait_for_service(tag)
        try:
            return future.result(timeout=timeout)
        except FutureTimeoutError:
            future.cancel()
            return None

    # -----------------------------------------------------------------------
    # Listeners
    # -----------------------------------------------------------------------

    def add_service_listener(self, tag: Any, listener: SingleServiceListener) -> None:
        self._single_tracker(tag).add_listener(listener)

    def remove_service_listener(self, tag: Any, listener: SingleServiceListener) -> None:
        with self._lock:
            self._check_open()
            tracker = self._trackers.get(tag)
        if tracker is not None:
            tracker.remove_listener(listener)

    def add_multi_service_listener(self, tag: Any, listener: MultiServiceListener) -> None:
        self._multi_tracker(tag).add_listener(listener)

    def remove_multi_service_listener(self, tag: Any, listener: MultiServiceListener) -> None:
        with self._lock:
            self._check_open()
            tracker = self._multi_trackers.get(tag)
        if tracker is not None:
            tracker.remove_listener(listener)

    # -----------------------------------------------------------------------
    # Local services
    # -----------------------------------------------------------------------

    def register_service(self, tag: Any, instance: Any) -> ServiceRegistration:
        """Publish *instance* under *tag* until ``unregister_service`` is called."""
        self._check_open()
        key = id(instance)
        with self._registrations_lock:
            if key in self._registrations:
                raise ValueError(f"Service {instance!r} is already registered")
            # reserve the slot; publishing delivers events and runs listeners
            self._registrations[key] = (instance, None)

        try:
            registration = self._source.publish(tag, instance)
        except BaseException:
            with self._registrations_lock:
                self._registrations.pop(key, None)
            raise

        with self._registrations_lock:
            withdrawn = key not in self._registrations
            if not withdrawn:
                self._registrations[key] = (instance, registration)
        if withdrawn:
            # unregistered by a listener while it was being published
            self._source.withdraw(registration)
        return registration

    def unregister_service(self, instance: Any) -> None:
        """Withdraw a service registered through this registry, if any."""
        with self._registrations_lock:
            entry = self._registrations.pop(id(instance), None)
        if entry is not None and entry[1] is not None:
            self._source.withdraw(entry[1])

    def is_registered(self, instance: Any) -> bool:
        with self._registrations_lock:
            return id(instance) in self._registrations

    def shutdown(self) -> None:
        """Stop every tracker and forget local registrations.

        Registrations are not withdrawn; that is up to the event source's
        own teardown.
        """
        with self._lock:
            self._closed = True
            trackers = list(self._trackers.values()) + list(self._multi_trackers.values())
            self._trackers.clear()
            self._multi_trackers.clear()

        for tracker in trackers:
            tracker.stop()

        with self._registrations_lock:
            self._registrations.clear()
        logger.info("Service registry shut down (%d trackers stopped)", len(trackers))


# ---------------------------------------------------------------------------
# Process-wide default registry
# ---------------------------------------------------------------------------

_default_lock = threading.Lock()
_default_registry: Optional[ServiceRegistry] = None


def set_default_registry(registry: Optional[ServiceRegistry]) -> Optional[ServiceRegistry]:
    """Install (or clear, with None) the process-wide registry; returns the previous one."""
    global _default_registry
    with _default_lock:
        previous = _default_registry
        _default_registry = registry
    return previous


def get_default_registry() -> ServiceRegistry:
    with _default_lock:
        registry = _default_registry
    if registry is None:
        raise RegistryUnavailableError("No default service registry is installed")
    return registry
