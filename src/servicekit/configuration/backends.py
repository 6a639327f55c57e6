"""
Configuration backends

This module provides:
- ConfigBackend: the flat string -> string store a configuration service uses
- MemoryBackend: dict-backed backend, nothing persisted
- YamlFileBackend: flat mapping persisted to a YAML file
- BackendConfigurationService: defaults layer on top of a backend
"""

import logging
import os
import threading
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, List, Mapping, Optional

import yaml

from ..errors import BackingStoreError, StorageError
from .defaults import DefaultConfigurationService

logger = logging.getLogger(__name__)


class ConfigBackend(ABC):
    """Flat key/value store. Implementations must be thread-safe per key."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def put(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        ...

    @abstractmethod
    def keys(self) -> List[str]:
        ...

    def sync(self) -> None:
        """Reconcile with persistent storage. Raises BackingStoreError on failure."""


class MemoryBackend(ConfigBackend):

    def __init__(self, data: Optional[Mapping[str, str]] = None):
        self._lock = threading.Lock()
        self._data: Dict[str, str] = dict(data or {})

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._data.get(key)

    def put(self, key: str, value: str) -> None:
        with self._lock:
            self._data[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._data.pop(key, None)

    def keys(self) -> List[str]:
        with self._lock:
            return sorted(self._data)


class YamlFileBackend(ConfigBackend):
    """Stores all keys as one flat YAML mapping.

    Writes are buffered until ``sync``, which re-reads the file, applies the
    buffered changes on top and writes the result atomically. Changes made
    to the file by other processes are therefore picked up on the next sync.
    """

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self._lock = threading.Lock()
        self._data: Dict[str, str] = {}
        # key -> new value, or None for a pending removal
        self._pending: Dict[str, Optional[str]] = {}

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            if key in self._pending:
                return self._pending[key]
            return self._data.get(key)

    def put(self, key: str, value: str) -> None:
        with self._lock:
            self._pending[key] = value

    def remove(self, key: str) -> None:
        with self._lock:
            self._pending[key] = None

    def keys(self) -> List[str]:
        with self._lock:
            merged = dict(self._data)
            for key, value in self._pending.items():
                if value is None:
                    merged.pop(key, None)
                else:
                    merged[key] = value
            return sorted(merged)

    def sync(self) -> None:
        with self._lock:
            data = self._read()
            if self._pending:
                for key, value in self._pending.items():
                    if value is None:
                        data.pop(key, None)
                    else:
                        data[key] = value
                self._write(data)
                self._pending.clear()
            self._data = data

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path) as f:
                raw = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise BackingStoreError(f"Could not read configuration file {self.path}") from e
        if not isinstance(raw, dict):
            raise BackingStoreError(f"Configuration file {self.path} does not contain a mapping")
        return {str(k): str(v) for k, v in raw.items() if v is not None}

    def _write(self, data: Dict[str, str]) -> None:
        tmp_path = self.path.with_name(self.path.name + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w") as f:
                yaml.safe_dump(data, f, default_flow_style=False, sort_keys=True)
            os.replace(tmp_path, self.path)
        except (OSError, yaml.YAMLError) as e:
            raise BackingStoreError(f"Could not write configuration file {self.path}") from e


class BackendConfigurationService(DefaultConfigurationService):
    """Configuration service reading and writing through a ConfigBackend.

    Every write is followed by a sync whose failure raises StorageError.
    Reads sync first as well, but a failed read-side sync is ignored and the
    last known value is returned.
    """

    def __init__(
        self,
        backend: ConfigBackend,
        defaults: Optional[Mapping[str, str]] = None,
        fallback_to_environ: bool = False,
        environ: Optional[Mapping[str, str]] = None,
    ):
        super().__init__(defaults, fallback_to_environ, environ)
        self.backend = backend

    def _refresh(self) -> None:
        try:
            self.backend.sync()
        except BackingStoreError:
            logger.debug("Ignoring failed configuration sync on read", exc_info=True)

    def _flush(self, key: str) -> None:
        try:
            self.backend.sync()
        except BackingStoreError as e:
            raise StorageError(f"Could not save configuration key {key!r}") from e

    def get_raw(self, key: str) -> Optional[str]:
        self._refresh()
        return self.backend.get(key)

    def set_raw(self, key: str, value: str) -> None:
        self.backend.put(key, value)
        self._flush(key)

    def remove_raw(self, key: str) -> None:
        self.backend.remove(key)
        self._flush(key)

    def keys(self) -> List[str]:
        """Keys currently held by the backend (defaults are not included)."""
        self._refresh()
        return self.backend.keys()
