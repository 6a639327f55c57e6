"""Tracker presenting one current service, with later arrivals queued."""

from typing import Any, Dict, Optional

from .events import ServiceReference
from .tracker import ServiceTracker


class SingleServiceListener:
    """Observer of a single-service tracker. Override what you need."""

    def after_service_change(self, service: Optional[Any]) -> None:
        """Called after the current service changed; *service* may be None."""

    def before_service_remove(self, service: Any) -> None:
        """Called before the current service becomes invalid."""


class SingleServiceTracker(ServiceTracker[SingleServiceListener]):
    """Keeps at most one current service; successors are taken FIFO."""

    def __init__(self, tag: Any):
        super().__init__(tag)
        self._current_ref: Optional[ServiceReference] = None
        self._current: Optional[Any] = None
        self._queued: Dict[ServiceReference, None] = {}

    def get_service(self) -> Optional[Any]:
        with self._lock:
            return self._current

    def queued(self) -> list[ServiceReference]:
        with self._lock:
            return list(self._queued)

    def _register(self, reference: ServiceReference) -> None:
        with self._lock:
            if self._current_ref is not None:
                self._live[reference] = None
                self._queued[reference] = None
                return

        instance = self._resolve(reference)
        if instance is None:
            return

        with self._lock:
            self._live[reference] = None
            self._current_ref = reference
            self._current = instance
            listeners = list(self._listeners)

        for listener in listeners:
            listener.after_service_change(instance)

    def _deregister(self, reference: ServiceReference) -> None:
        with self._lock:
            self._live.pop(reference, None)
            if reference != self._current_ref:
                self._queued.pop(reference, None)
                return
            old = self._current
            listeners = list(self._listeners)

        # a failing listener must not leave the withdrawn service current
        try:
            for listener in listeners:
                listener.before_service_remove(old)
        finally:
            self._release(reference)
            new = self._promote_next()

        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener.after_service_change(new)

    def _promote_next(self) -> Optional[Any]:
        """Make the oldest queued reference that still resolves current."""
        while True:
            with self._lock:
                self._current_ref = None
                self._current = None
                if not self._queued:
                    return None
                candidate = next(iter(self._queued))
                del self._queued[candidate]

            instance = self._resolve(candidate)

            with self._lock:
                if instance is None:
                    self._live.pop(candidate, None)
                    continue
                self._current_ref = candidate
                self._current = instance
                return instance

    def _reset(self) -> None:
        with self._lock:
            reference = self._current_ref
            self._current_ref = None
            self._current = None
            self._queued.clear()
        if reference is not None:
            self._release(reference)
