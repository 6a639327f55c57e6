"""Defaults layer: fixed default values plus optional environment fallback."""

import os
from typing import Dict, Mapping, Optional

from .base import StoreConfigurationService


class DefaultConfigurationService(StoreConfigurationService):
    """Store-backed service whose missing keys are answered from defaults.

    A key missing from the store is looked up in the defaults map; if it is
    not there either and *fallback_to_environ* is set, the process
    environment (or the *environ* mapping given instead) is consulted.
    """

    def __init__(
        self,
        defaults: Optional[Mapping[str, str]] = None,
        fallback_to_environ: bool = False,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self._defaults: Dict[str, str] = dict(defaults or {})
        self.fallback_to_environ = fallback_to_environ
        self._environ = environ

    @property
    def defaults(self) -> Dict[str, str]:
        """Copy of the current defaults map."""
        return dict(self._defaults)

    def get_default(self, key: str) -> Optional[str]:
        if key in self._defaults:
            return self._defaults[key]
        if self.fallback_to_environ:
            environ = os.environ if self._environ is None else self._environ
            return environ.get(key)
        return None

    def set_default(self, key: str, value: Optional[str]) -> None:
        """Change a default. Never touches the backing store."""
        if value is None:
            self._defaults.pop(key, None)
        else:
            self._defaults[key] = value
