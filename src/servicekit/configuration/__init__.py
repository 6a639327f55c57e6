"""
Hierarchical key/value configuration

This package provides:
1. ConfigurationService — typed (str/int/bool/list) accessors and item binding
2. DefaultConfigurationService — defaults map with optional environment fallback
3. NamespaceConfigurationDecorator — key prefixing with fallback to plain keys
4. ConfigurationItem / NamespaceConfigurationItem — self-(de)serialising objects
5. Backends — in-memory and YAML-file stores
"""

from .backends import BackendConfigurationService, ConfigBackend, MemoryBackend, YamlFileBackend
from .base import ConfigurationService, StoreConfigurationService, parse_int
from .defaults import DefaultConfigurationService
from .items import ConfigurationItem, NamespaceConfigurationItem
from .namespace import DEFAULT_DELIMITER, NamespaceConfigurationDecorator

__all__ = [
    'BackendConfigurationService',
    'ConfigBackend',
    'ConfigurationItem',
    'ConfigurationService',
    'DEFAULT_DELIMITER',
    'DefaultConfigurationService',
    'MemoryBackend',
    'NamespaceConfigurationDecorator',
    'NamespaceConfigurationItem',
    'StoreConfigurationService',
    'YamlFileBackend',
    'parse_int',
]
