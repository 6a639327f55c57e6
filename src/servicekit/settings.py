"""Settings loading and merging for servicekit."""

from dataclasses import dataclass, field, fields
from pathlib import Path

import yaml

from .configuration import BackendConfigurationService, YamlFileBackend
from .configuration.namespace import DEFAULT_DELIMITER


@dataclass
class ServiceKitSettings:
    # YAML file the configuration store persists to
    store_path: str = "servicekit_store.yaml"

    # Delimiter between a namespace and its keys
    delimiter: str = DEFAULT_DELIMITER

    # Answer keys missing from store and defaults from the environment
    fallback_to_environ: bool = False

    # Default values for keys missing from the store
    defaults: dict[str, str] = field(default_factory=dict)


def load_settings(path: str | Path) -> ServiceKitSettings:
    """Load ServiceKitSettings from a YAML file."""
    path = Path(path)
    with open(path) as f:
        data = yaml.safe_load(f) or {}

    raw_defaults = data.pop("defaults", None) or {}
    defaults = {str(k): str(v) for k, v in raw_defaults.items() if v is not None}

    valid_fields = {f.name for f in fields(ServiceKitSettings)} - {"defaults"}
    filtered = {k: v for k, v in data.items() if k in valid_fields}

    return ServiceKitSettings(**filtered, defaults=defaults)


def merge_cli_args(settings: ServiceKitSettings, args) -> ServiceKitSettings:
    """Overlay CLI arguments onto existing settings. CLI values take precedence."""
    for f in fields(ServiceKitSettings):
        if f.name == "defaults":
            continue
        cli_val = getattr(args, f.name, None)
        if cli_val is not None:
            setattr(settings, f.name, cli_val)
    return settings


def settings_to_yaml(settings: ServiceKitSettings) -> str:
    """Serialize ServiceKitSettings to YAML."""
    data: dict = {
        "store_path": settings.store_path,
        "delimiter": settings.delimiter,
        "fallback_to_environ": settings.fallback_to_environ,
    }
    if settings.defaults:
        data["defaults"] = dict(settings.defaults)
    return yaml.dump(data, default_flow_style=False, sort_keys=False)


def create_configuration_service(settings: ServiceKitSettings) -> BackendConfigurationService:
    """Build a YAML-backed configuration service from *settings*."""
    return BackendConfigurationService(
        YamlFileBackend(settings.store_path),
        defaults=settings.defaults,
        fallback_to_environ=settings.fallback_to_environ,
    )
