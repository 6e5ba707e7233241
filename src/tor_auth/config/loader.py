"""Configuration loader for tor-auth.

This module handles loading configuration from files, environment variables
and command-line overrides, with validation.
"""

import json
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from .schema import (
    ConfigurationError,
    DiscoveryConfig,
    IngressConfig,
    ListenConfig,
    LoggingConfig,
    ResolverConfig,
    TorAuthConfig,
)

ENV_PREFIX = "TOR_AUTH_"

# Top-level keys whose values are kept as raw strings
SCALAR_KEYS = ("listen", "ingress", "client_header")

LIST_KEYS = ("nameservers",)


class ConfigLoader:
    """Configuration loader."""

    def __init__(
        self,
        config_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
    ):
        """Initialize configuration loader.

        Args:
            config_file: Path to configuration file (YAML or JSON)
            overrides: Values taking precedence over file and environment,
                typically from the command line
        """
        self.config_file = config_file
        self.overrides = overrides or {}
        self._config: Optional[TorAuthConfig] = None

    def load_config(self) -> TorAuthConfig:
        """Load configuration from file, environment variables and overrides.

        Returns:
            Loaded and validated configuration

        Raises:
            ConfigurationError: If the file is missing or unreadable, or the
                configuration is invalid
        """
        config_dict: Dict[str, Any] = {}

        if self.config_file:
            file_config = self._load_from_file(self.config_file)
            config_dict = self._merge_configs(config_dict, file_config)

        config_dict = self._apply_env_overrides(config_dict)

        config_dict = self._merge_configs(
            config_dict,
            {key: value for key, value in self.overrides.items() if value is not None},
        )

        self._config = self._dict_to_config(config_dict)

        return self._config

    def get_config(self) -> Optional[TorAuthConfig]:
        """Get current configuration."""
        return self._config

    def _load_from_file(self, file_path: str) -> Dict[str, Any]:
        """Load configuration from YAML or JSON file.

        Args:
            file_path: Path to configuration file

        Returns:
            Configuration dictionary

        Raises:
            ConfigurationError: If the file is missing or cannot be parsed
        """
        path = Path(file_path)
        if not path.exists():
            raise ConfigurationError(f"Configuration file not found: {file_path}")

        try:
            with open(path, "r", encoding="utf-8") as f:
                content = f.read()
        except (OSError, UnicodeDecodeError) as e:
            raise ConfigurationError(
                f"Unable to read configuration file {file_path}: {e}"
            ) from e

        try:
            if path.suffix.lower() == ".json":
                result = json.loads(content)
            else:
                # YAML is a superset of JSON, so it also covers extensionless files
                result = yaml.safe_load(content)
        except (yaml.YAMLError, json.JSONDecodeError) as e:
            raise ConfigurationError(
                f"Unable to parse configuration file {file_path}: {e}"
            ) from e

        if result is None:
            return {}
        if not isinstance(result, dict):
            raise ConfigurationError(
                f"Configuration file {file_path} must contain a mapping"
            )
        return result

    def _dict_to_config(self, config_dict: Dict[str, Any]) -> TorAuthConfig:
        """Convert dictionary to configuration object.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        try:
            return TorAuthConfig(
                listen=self._build_endpoint(
                    ListenConfig, config_dict.get("listen")
                ),
                ingress=self._build_endpoint(
                    IngressConfig, config_dict.get("ingress")
                ),
                client_header=config_dict.get("client_header", "X-Real-IP"),
                resolver=ResolverConfig(**config_dict.get("resolver", {})),
                discovery=DiscoveryConfig(**config_dict.get("discovery", {})),
                logging=LoggingConfig(**config_dict.get("logging", {})),
            )
        except TypeError as e:
            # Unknown keys in a section
            raise ConfigurationError(f"Invalid configuration: {e}") from e

    @staticmethod
    def _build_endpoint(endpoint_cls, value):
        if value is None or isinstance(value, endpoint_cls):
            return value
        if isinstance(value, dict):
            return endpoint_cls(**value)
        return endpoint_cls.from_string(value)

    def _merge_configs(
        self, base: Dict[str, Any], override: Dict[str, Any]
    ) -> Dict[str, Any]:
        """Merge two configuration dictionaries.

        Args:
            base: Base configuration dictionary
            override: Override configuration dictionary

        Returns:
            Merged configuration dictionary
        """
        result = base.copy()

        for key, value in override.items():
            if (
                key in result
                and isinstance(result[key], dict)
                and isinstance(value, dict)
            ):
                result[key] = self._merge_configs(result[key], value)
            else:
                result[key] = value

        return result

    def _apply_env_overrides(self, config_dict: Dict[str, Any]) -> Dict[str, Any]:
        """Apply environment variable overrides to configuration.

        Environment variables use the format TOR_AUTH_<SECTION>_<KEY>, for
        example TOR_AUTH_RESOLVER_TIMEOUT=2.5. Top-level values use
        TOR_AUTH_<KEY>, for example TOR_AUTH_LISTEN=/run/tor-auth.sock.

        Args:
            config_dict: Base configuration dictionary

        Returns:
            Configuration dictionary with environment overrides applied
        """
        for env_key, env_value in os.environ.items():
            if not env_key.startswith(ENV_PREFIX):
                continue

            name = env_key[len(ENV_PREFIX) :].lower()
            if name in SCALAR_KEYS:
                config_dict[name] = env_value
                continue

            key_parts = name.split("_")
            if len(key_parts) < 2:
                continue

            section = key_parts[0]
            config_key = "_".join(key_parts[1:])

            if config_key in LIST_KEYS:
                value = [s.strip() for s in env_value.split(",") if s.strip()]
            else:
                value = self._convert_env_value(env_value)

            section_dict = config_dict.get(section)
            if not isinstance(section_dict, dict):
                section_dict = {}
                config_dict[section] = section_dict
            section_dict[config_key] = value

        return config_dict

    def _convert_env_value(self, value: str) -> Any:
        """Convert environment variable value to appropriate Python type.

        Args:
            value: Environment variable value as string

        Returns:
            Converted value
        """
        if value.lower() in ("true", "yes", "on"):
            return True
        elif value.lower() in ("false", "no", "off"):
            return False

        try:
            return int(value)
        except ValueError:
            pass

        try:
            return float(value)
        except ValueError:
            pass

        return value


def load_config(
    config_file: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> TorAuthConfig:
    """Convenience function to load configuration.

    Args:
        config_file: Path to configuration file
        overrides: Command-line overrides

    Returns:
        Loaded configuration
    """
    return ConfigLoader(config_file, overrides).load_config()
