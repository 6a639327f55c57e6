"""
Dynamic service registry

This package provides:
1. EventSource / InMemoryEventSource — where service events come from
2. SingleServiceTracker / MultiServiceTracker — per-tag observers of those events
3. ServiceRegistry — lazily created trackers plus local service publication
4. wait_until — polling helper for code that cannot use listeners
"""

from .events import (
    EventSource,
    InMemoryEventSource,
    ServiceEvent,
    ServiceEventType,
    ServiceReference,
    ServiceRegistration,
)
from .multi import MultiServiceListener, MultiServiceTracker
from .service_registry import ServiceRegistry, get_default_registry, set_default_registry
from .single import SingleServiceListener, SingleServiceTracker
from .tracker import ServiceTracker
from .waiting import wait_until

__all__ = [
    'EventSource',
    'InMemoryEventSource',
    'ServiceEvent',
    'ServiceEventType',
    'ServiceReference',
    'ServiceRegistration',
    'ServiceTracker',
    'SingleServiceListener',
    'SingleServiceTracker',
    'MultiServiceListener',
    'MultiServiceTracker',
    'ServiceRegistry',
    'get_default_registry',
    'set_default_registry',
    'wait_until',
]
