"""
servicekit

Utility layer for components loaded by a plugin host:
1. registry — typed service lookup and add/remove notification
2. configuration — hierarchical key/value configuration with typed views
"""

from .configuration import (
    BackendConfigurationService,
    ConfigurationItem,
    ConfigurationService,
    NamespaceConfigurationDecorator,
    NamespaceConfigurationItem,
)
from .registry import (
    InMemoryEventSource,
    MultiServiceListener,
    ServiceRegistry,
    SingleServiceListener,
    get_default_registry,
    set_default_registry,
)

__version__ = '0.1.0'
__all__ = [
    'BackendConfigurationService',
    'ConfigurationItem',
    'ConfigurationService',
    'NamespaceConfigurationDecorator',
    'NamespaceConfigurationItem',
    'InMemoryEventSource',
    'MultiServiceListener',
    'ServiceRegistry',
    'SingleServiceListener',
    'get_default_registry',
    'set_default_registry',
]
