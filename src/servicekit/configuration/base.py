"""Typed accessors, list encoding and item binding over a string key/value view."""

import re
from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence, Type, TypeVar

from ..errors import ConfigBindingError

# Lists are stored as KEY/count plus KEY/1 .. KEY/count
LIST_DELIMITER = "/"
LIST_COUNT = "count"

_INT_PATTERN = re.compile(r"[+-]?[0-9]+")

I = TypeVar("I")


def parse_int(value: str) -> int:
    """Parse a signed decimal integer; raises ValueError for anything else."""
    if not _INT_PATTERN.fullmatch(value):
        raise ValueError(f"invalid integer value: {value!r}")
    return int(value)


class ConfigurationService(ABC):
    """A string-keyed configuration view with typed accessors.

    Subclasses provide the three primitives ``_lookup``, ``_store`` and
    ``_remove``. Every typed accessor goes through ``get``/``set`` on
    ``self``, so a subclass that rewrites keys in the primitives rewrites
    them for every accessor.
    """

    @abstractmethod
    def _lookup(self, key: str) -> Optional[str]:
        """Primary read, including any default the view supplies."""

    @abstractmethod
    def _store(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def _remove(self, key: str) -> None:
        ...

    # -- strings --------------------------------------------------------------

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        value = self._lookup(key)
        return default if value is None else value

    def set(self, key: str, value: Optional[str]) -> None:
        """Store *value*; None removes the key."""
        if value is None:
            self._remove(key)
        else:
            self._store(key, value)

    # -- integers -------------------------------------------------------------

    def get_int(self, key: str, default: Optional[int] = None) -> Optional[int]:
        """Read an integer. Raises ValueError if the stored value is not one."""
        value = self.get(key)
        if value is None:
            return default
        return parse_int(value)

    def set_int(self, key: str, value: int) -> None:
        self.set(key, str(int(value)))

    # -- booleans -------------------------------------------------------------

    def get_boolean(self, key: str, default: Optional[bool] = None) -> Optional[bool]:
        """Case-insensitive "true" is True, any other stored value is False."""
        value = self.get(key)
        if value is None:
            return default
        return value.lower() == "true"

    def set_boolean(self, key: str, value: bool) -> None:
        self.set(key, "true" if value else "false")

    # -- lists ----------------------------------------------------------------

    @staticmethod
    def _list_key(key: str, suffix: Any) -> str:
        return f"{key}{LIST_DELIMITER}{suffix}"

    def get_list(self, key: str, default: Optional[List[str]] = None) -> Optional[List[str]]:
        """Read a list; missing indices are skipped, a missing count gives *default*."""
        count = self.get_int(self._list_key(key, LIST_COUNT))
        if count is None:
            return default
        result = []
        for i in range(1, count + 1):
            value = self.get(self._list_key(key, i))
            if value is not None:
                result.append(value)
        return result

    def set_list(self, key: str, values: Optional[Sequence[str]]) -> None:
        """Write a list, removing entries left over from a longer previous one.

        None removes the list entirely.
        """
        if values is not None and any(v is None for v in values):
            raise ValueError(f"List stored under {key!r} must not contain None")

        count_key = self._list_key(key, LIST_COUNT)
        old_count = self.get_int(count_key)

        if old_count is not None and (values is None or len(values) < old_count):
            start = 1 if values is None else len(values) + 1
            self.set(count_key, None)
            for i in range(start, old_count + 1):
                self.set(self._list_key(key, i), None)

        if values is not None:
            self.set_int(count_key, len(values))
            for i, value in enumerate(values, start=1):
                self.set(self._list_key(key, i), value)

    # -- configuration items --------------------------------------------------

    def get_item(self, item_class: Type[I]) -> I:
        """Create a fresh *item_class* instance and restore it from this view."""
        try:
            item = item_class()
        except Exception as e:
            raise ConfigBindingError(f"Could not create configuration item {item_class!r}") from e

        try:
            item.restore(self)
        except ConfigBindingError:
            raise
        except Exception as e:
            raise ConfigBindingError(f"Could not load configuration item {item_class!r}") from e
        return item

    def set_item(self, item: Any) -> None:
        """Store *item* through this view."""
        try:
            item.store(self)
        except ConfigBindingError:
            raise
        except Exception as e:
            raise ConfigBindingError(f"Could not save configuration item {type(item)!r}") from e


class StoreConfigurationService(ConfigurationService):
    """Configuration service over raw get/set/remove primitives of a store.

    Reads fall back to ``get_default`` when the store has no value.
    """

    @abstractmethod
    def get_raw(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set_raw(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove_raw(self, key: str) -> None:
        """Delete *key*; deleting a missing key is not an error."""

    def get_default(self, key: str) -> Optional[str]:
        return None

    def _lookup(self, key: str) -> Optional[str]:
        value = self.get_raw(key)
        if value is None:
            return self.get_default(key)
        return value

    def _store(self, key: str, value: str) -> None:
        self.set_raw(key, value)

    def _remove(self, key: str) -> None:
        self.remove_raw(key)
