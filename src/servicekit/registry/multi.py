"""Tracker presenting every live service of a tag."""

from typing import Any, Dict, List

from .events import ServiceReference
from .tracker import ServiceTracker


class MultiServiceListener:
    """Observer of a multi-service tracker. Override what you need."""

    def service_added(self, service: Any) -> None:
        pass

    def service_removed(self, service: Any) -> None:
        pass


class MultiServiceTracker(ServiceTracker[MultiServiceListener]):

    def __init__(self, tag: Any):
        super().__init__(tag)
        self._services: Dict[ServiceReference, Any] = {}

    def get_services(self) -> List[Any]:
        """Detached snapshot of the current instances, in no particular order."""
        with self._lock:
            return list(self._services.values())

    def _register(self, reference: ServiceReference) -> None:
        instance = self._resolve(reference)
        if instance is None:
            return

        with self._lock:
            self._live[reference] = None
            self._services[reference] = instance
            listeners = list(self._listeners)

        for listener in listeners:
            listener.service_added(instance)

    def _deregister(self, reference: ServiceReference) -> None:
        with self._lock:
            self._live.pop(reference, None)
            instance = self._services.pop(reference, None)
            if instance is None:
                return
            listeners = list(self._listeners)

        self._release(reference)

        for listener in listeners:
            listener.service_removed(instance)

    def _reset(self) -> None:
        with self._lock:
            leftover = list(self._services)
            self._services.clear()
        for reference in leftover:
            self._release(reference)
