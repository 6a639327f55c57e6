"""Namespace decorator for configuration views."""

from typing import List, Optional, Sequence

from .base import ConfigurationService

DEFAULT_DELIMITER = "/"


class NamespaceConfigurationDecorator(ConfigurationService):
    """Prefixes every key with ``namespace + delimiter``.

    Writes only ever go to the prefixed key. Reads try the prefixed key
    first and fall back to the plain key, so values stored outside the
    namespace act as shared defaults.
    """

    def __init__(self, service: ConfigurationService, namespace: str,
                 delimiter: str = DEFAULT_DELIMITER):
        self.service = service
        self.namespace = namespace
        self.delimiter = delimiter

    def extend_key(self, key: str) -> str:
        return f"{self.namespace}{self.delimiter}{key}"

    def _lookup(self, key: str) -> Optional[str]:
        value = self.service.get(self.extend_key(key))
        if value is None:
            return self.service.get(key)
        return value

    def _store(self, key: str, value: str) -> None:
        self.service.set(self.extend_key(key), value)

    def _remove(self, key: str) -> None:
        self.service.set(self.extend_key(key), None)

    def get_list(self, key: str, default: Optional[List[str]] = None) -> Optional[List[str]]:
        # whole-list fallback: a list is never assembled from both keys
        result = self.service.get_list(self.extend_key(key))
        if result is None:
            result = self.service.get_list(key)
        return default if result is None else result

    def set_list(self, key: str, values: Optional[Sequence[str]]) -> None:
        self.service.set_list(self.extend_key(key), values)
