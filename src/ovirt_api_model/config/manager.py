"""Configuration loading with Dynaconf and validation against AppConfig."""

from __future__ import annotations

from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional

from dynaconf import Dynaconf
from pydantic import ValidationError

from ovirt_api_model.config.platform_dirs import get_config_file
from ovirt_api_model.config.schemas.app_schema import AppConfig
from ovirt_api_model.domain.base.exceptions import ConfigurationError
from ovirt_api_model.infrastructure.logging.logger import get_logger

logger = get_logger(__name__)

ENVVAR_PREFIX = "APIMODEL"

# Discovery variables share the prefix but are not settings
_DISCOVERY_KEYS = {"config_file", "config_dir", "log_dir"}

# Dynaconf exposes its own init options as settings
_DYNACONF_OPTIONS: dict[str, Any] = {
    "envvar_prefix": ENVVAR_PREFIX,
    "environments": False,
    "load_dotenv": False,
    "merge_enabled": True,
}
_DYNACONF_KEYS = set(_DYNACONF_OPTIONS) | {"settings_files"}


def _lower_keys(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {str(key).lower(): _lower_keys(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_lower_keys(item) for item in value]
    return value


class ConfigurationManager:
    """
    Loads the application configuration.

    Values come from the config file (explicit, or discovered through
    ``APIMODEL_CONFIG_FILE`` / the config directory) and are overridden by
    ``APIMODEL_``-prefixed environment variables, e.g.
    ``APIMODEL_LOGGING__LEVEL=DEBUG``.
    """

    def __init__(self, config_file: Optional[str] = None) -> None:
        self._explicit_file = Path(config_file) if config_file else None
        self._config: Optional[AppConfig] = None

    @property
    def config_file(self) -> Optional[Path]:
        return self._explicit_file or get_config_file()

    @property
    def config(self) -> AppConfig:
        if self._config is None:
            self._config = self.load()
        return self._config

    def load(self) -> AppConfig:
        config_file = self.config_file
        if config_file is not None and not config_file.exists():
            raise ConfigurationError(
                f"Configuration file not found: {config_file}", {"config_file": str(config_file)}
            )

        settings = Dynaconf(
            settings_files=[str(config_file)] if config_file else [],
            **_DYNACONF_OPTIONS,
        )
        try:
            raw = _lower_keys(settings.as_dict())
        except Exception as e:
            raise ConfigurationError(f"Cannot read configuration: {e}") from e

        known = set(AppConfig.model_fields)
        unknown = sorted(
            key
            for key in set(raw) - known - _DISCOVERY_KEYS - _DYNACONF_KEYS
            if not key.endswith("_for_dynaconf")
        )
        if unknown:
            logger.warning(f"Ignoring unknown configuration sections: {', '.join(unknown)}")

        try:
            self._config = AppConfig(**{key: raw[key] for key in known if key in raw})
        except ValidationError as e:
            problems = [
                f"{' -> '.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in e.errors()
            ]
            raise ConfigurationError(
                f"Invalid configuration in {config_file or 'environment'}",
                {"errors": problems},
            ) from e

        logger.debug(f"Configuration loaded from {config_file or 'defaults and environment'}")
        return self._config
