"""Base service tracker: keeps the set of live references for one tag."""

import logging
import threading
from abc import ABC, abstractmethod
from collections import deque
from typing import Any, Callable, Deque, Dict, Generic, List, Optional, TypeVar

from ..errors import SubscriptionError
from .events import EventSource, ServiceEvent, ServiceEventType, ServiceReference

logger = logging.getLogger(__name__)

L = TypeVar("L")


class ServiceTracker(ABC, Generic[L]):
    """Tracks the references an event source reports for one service tag.

    Events, start and stop are queued and processed one at a time by whichever
    thread finds the tracker idle; other threads enqueue and return. No lock
    is held while listeners run, so listeners may publish, withdraw or look
    up services of any tag. Work submitted from inside a listener runs after
    the current dispatch completes.

    ``_lock`` guards the tracker state. Subclasses own the contents of
    ``_live`` and must update it under ``_lock`` together with their own state.
    """

    def __init__(self, tag: Any):
        self.tag = tag
        self._source: Optional[EventSource] = None
        self._running = False
        self._lock = threading.Lock()
        self._pending: Deque[Callable[[], None]] = deque()
        self._draining = False
        # dict used as an insertion-ordered set
        self._live: Dict[ServiceReference, None] = {}
        self._listeners: List[L] = []

    @property
    def source(self) -> Optional[EventSource]:
        return self._source

    @property
    def is_running(self) -> bool:
        return self._running

    def start(self, source: EventSource) -> None:
        """Subscribe to *source* and take in the services it already knows."""
        with self._lock:
            restart = self._source is not None
        if restart:
            self.stop()
        self._submit(lambda: self._begin(source))

    def stop(self) -> None:
        """Unsubscribe and emit a removal for every live reference."""
        with self._lock:
            self._running = False
            source = self._source
        if source is not None:
            source.unsubscribe(self.tag, self.on_event)
        self._submit(self._finish)

    def on_event(self, event: ServiceEvent) -> None:
        """Callback handed to the event source."""
        self._submit(lambda: self._handle(event))

    def references(self) -> List[ServiceReference]:
        with self._lock:
            return list(self._live)

    def add_listener(self, listener: L) -> None:
        with self._lock:
            if listener not in self._listeners:
                self._listeners.append(listener)

    def remove_listener(self, listener: L) -> None:
        with self._lock:
            if listener in self._listeners:
                self._listeners.remove(listener)

    # -- serialized work ------------------------------------------------------

    def _submit(self, action: Callable[[], None]) -> None:
        with self._lock:
            self._pending.append(action)
            if self._draining:
                return
            self._draining = True
        self._drain()

    def _drain(self) -> None:
        # Keeps going after a failing action so queued work is never stranded;
        # the first error is re-raised once the queue is empty.
        error: Optional[BaseException] = None
        while True:
            with self._lock:
                if not self._pending:
                    self._draining = False
                    break
                action = self._pending.popleft()
            try:
                action()
            except BaseException as e:
                if error is None:
                    error = e
                else:
                    logger.exception("Error processing event for %r", self.tag)
        if error is not None:
            raise error

    def _begin(self, source: EventSource) -> None:
        with self._lock:
            self._source = source
            self._running = True
        logger.info("Started tracking services: %r", self.tag)

        try:
            source.subscribe(self.tag, self.on_event)
            references = source.references(self.tag)
        except SubscriptionError:
            logger.exception("Error subscribing to services: %r", self.tag)
            return

        for reference in references:
            self._add(reference)

    def _finish(self) -> None:
        with self._lock:
            removed = list(self._live)
        try:
            # newest first, so queued services go before the current one
            for reference in reversed(removed):
                self._deregister(reference)
        finally:
            with self._lock:
                self._live.clear()
            self._reset()
            with self._lock:
                self._source = None
            logger.info("Stopped tracking services: %r", self.tag)

    def _handle(self, event: ServiceEvent) -> None:
        if not self._running:
            return
        if event.kind in (ServiceEventType.REGISTERED, ServiceEventType.MODIFIED):
            self._add(event.reference)
        elif event.kind is ServiceEventType.UNREGISTERING:
            self._remove(event.reference)

    # -- membership -----------------------------------------------------------

    def _add(self, reference: ServiceReference) -> None:
        with self._lock:
            if reference in self._live:
                return
        self._register(reference)

    def _remove(self, reference: ServiceReference) -> None:
        with self._lock:
            if reference not in self._live:
                return
        self._deregister(reference)

    def _resolve(self, reference: ServiceReference) -> Optional[Any]:
        instance = self._source.resolve(reference) if self._source else None
        if instance is None:
            logger.debug("Service %s of %r could not be resolved", reference.service_id, self.tag)
        return instance

    def _release(self, reference: ServiceReference) -> None:
        if self._source is not None:
            self._source.release(reference)

    def _reset(self) -> None:
        """Drop subclass state left behind by a stop. Called without ``_lock``."""

    @abstractmethod
    def _register(self, reference: ServiceReference) -> None:
        """Handle a reference that is not yet live. Called without ``_lock``."""

    @abstractmethod
    def _deregister(self, reference: ServiceReference) -> None:
        """Handle a live reference going away. Called without ``_lock``."""
