"""
Core configuration for multi-notifier.

Provides:
- Path constants (NOTIFIER_HOME, NOTIFIER_CONFIG_FILE)
- ConfigResolver, which turns raw configuration into a MultiProviderConfig
- load_config_file for reading the config from disk
"""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import TypeAdapter, ValidationError

from multinotifier.errors import ConfigError, ProviderError
from multinotifier.notifications.config import MultiProviderConfig, ProviderConfig
from multinotifier.notifications.registry import provider_class

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Path constants
# ---------------------------------------------------------------------------

NOTIFIER_HOME: Path = Path.home() / ".config" / "multi-notifier"
NOTIFIER_CONFIG_FILE: Path = NOTIFIER_HOME / "config.yaml"

CONFIG_SECTION = "notifier"

_provider_adapter: TypeAdapter[Any] = TypeAdapter(ProviderConfig)


# ---------------------------------------------------------------------------
# Resolver
# ---------------------------------------------------------------------------


class ConfigResolver:
    """Parses raw configuration into a validated MultiProviderConfig."""

    def __init__(self, section: str = CONFIG_SECTION) -> None:
        self.section = section

    def load(self, raw_config: Union[Mapping[str, Any], str, None]) -> MultiProviderConfig:
        """
        Resolve raw configuration (a mapping, or JSON text).

        Raises ConfigError when the structure is missing, the JSON is
        malformed, or an enabled provider fails validation.
        """
        if isinstance(raw_config, str):
            try:
                raw_config = json.loads(raw_config)
            except json.JSONDecodeError as exc:
                raise ConfigError(f"Invalid JSON in config: {exc.msg}") from exc

        if not isinstance(raw_config, Mapping):
            raise ConfigError("Config must be a mapping")

        notifier = raw_config.get(self.section)
        if not isinstance(notifier, Mapping):
            raise ConfigError(f"Missing '{self.section}' section in config")

        if not notifier.get("enabled"):
            logger.info("Notifications are disabled")
            return MultiProviderConfig(enabled=False)

        declared = notifier.get("providers") or {}
        if not isinstance(declared, Mapping):
            raise ConfigError("'providers' must be a mapping of provider name to config")

        providers: dict[str, Any] = {}
        for key, entry in declared.items():
            try:
                provider_cls = provider_class(key)
            except ProviderError as exc:
                raise ConfigError(f"Unsupported provider: {key}") from exc
            if not isinstance(entry, Mapping):
                raise ConfigError(f"Config for provider {key} must be a mapping")

            if not entry.get("enabled"):
                logger.debug("Provider %s is disabled", key)
                continue

            result = provider_cls.validate_config(entry)
            if not result.valid:
                raise ConfigError(f"Invalid {key} config: {', '.join(result.errors)}")

            try:
                providers[key] = _provider_adapter.validate_python(
                    {**entry, "provider": key}
                )
            except ValidationError as exc:
                raise ConfigError(f"Invalid {key} config: {exc}") from exc

        if not providers:
            logger.warning("Notifications are enabled but all providers are disabled")

        return MultiProviderConfig(enabled=True, providers=providers)


def load_config_file(path: Optional[Path] = None) -> MultiProviderConfig:
    """Load and resolve configuration from a YAML or JSON file."""
    config_path = Path(path) if path else NOTIFIER_CONFIG_FILE
    if not config_path.exists():
        raise ConfigError(f"Config file not found at {config_path}")

    try:
        data = yaml.safe_load(config_path.read_text())
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid config file at {config_path}: {exc}") from exc
    except OSError as exc:
        raise ConfigError(f"Failed to read config file: {exc}") from exc

    if data is None:
        raise ConfigError(f"Config file is empty: {config_path}")

    logger.debug("Loading config from %s", config_path)
    return ConfigResolver().load(data)


__all__ = [
    "NOTIFIER_HOME",
    "NOTIFIER_CONFIG_FILE",
    "CONFIG_SECTION",
    "ConfigResolver",
    "load_config_file",
    "MultiProviderConfig",
]
