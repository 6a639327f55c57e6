"""Configuration items: objects that load and save themselves through a view."""

from abc import ABC, abstractmethod

from .base import ConfigurationService
from .namespace import DEFAULT_DELIMITER, NamespaceConfigurationDecorator


class ConfigurationItem(ABC):
    """Structured configuration stored through a ConfigurationService.

    Subclasses need a constructor callable without arguments so that
    ``ConfigurationService.get_item`` can create them.
    """

    @abstractmethod
    def restore(self, service: ConfigurationService) -> None:
        """Read this item's state from *service*."""

    @abstractmethod
    def store(self, service: ConfigurationService) -> None:
        """Write this item's state to *service*."""


class NamespaceConfigurationItem(ConfigurationItem):
    """Item whose keys live under a namespace derived from its module.

    ``myapp.ui.settings`` becomes ``myapp/ui/settings``. Override
    ``namespace`` for a different derivation. Subclasses implement
    ``load`` and ``save`` against the namespaced view.
    """

    delimiter = DEFAULT_DELIMITER

    @classmethod
    def namespace(cls) -> str:
        return cls.__module__.replace(".", cls.delimiter)

    def _view(self, service: ConfigurationService) -> NamespaceConfigurationDecorator:
        return NamespaceConfigurationDecorator(service, self.namespace(), self.delimiter)

    def restore(self, service: ConfigurationService) -> None:
        self.load(self._view(service))

    def store(self, service: ConfigurationService) -> None:
        self.save(self._view(service))

    @abstractmethod
    def load(self, service: ConfigurationService) -> None:
        ...

    @abstractmethod
    def save(self, service: ConfigurationService) -> None:
        ...
