"""Exception types shared by the registry and configuration packages."""


class ServiceKitError(Exception):
    """Base class for all servicekit errors."""


class SubscriptionError(ServiceKitError):
    """The event source rejected a subscription (e.g. an invalid filter)."""


class RegistryUnavailableError(ServiceKitError):
    """No registry is installed, or the registry has been shut down."""


class BackingStoreError(ServiceKitError):
    """A configuration backend failed to read or persist its data."""


class StorageError(ServiceKitError):
    """A configuration write could not be persisted."""


class ConfigBindingError(ServiceKitError):
    """A configuration item could not be constructed, restored or stored."""
