"""
Configuration management for the ZiVPN user API.
Handles service settings from defaults, an optional JSON file and the
environment, plus the API key and port files read at startup.
"""
import os
import json
import logging
from typing import Dict, Any, Optional, Mapping

from zivpn_api.errors import ConfigError


DEFAULT_PORT = 8888

# Environment variable -> settings key
ENV_OVERRIDES = {
    "ZIVPN_CONFIG_FILE": "paths.config_file",
    "ZIVPN_USER_DB": "paths.user_db",
    "ZIVPN_API_KEY_FILE": "paths.api_key_file",
    "ZIVPN_PORT_FILE": "paths.port_file",
    "ZIVPN_SERVICE_NAME": "service.name",
    "ZIVPN_LOG_LEVEL": "logging.level",
    "ZIVPN_LOG_FILE": "logging.file",
}


class ConfigManager:
    """
    Settings for the API service
    """

    def __init__(self, config_path: Optional[str] = None,
                 environ: Optional[Mapping[str, str]] = None):
        """
        Initialize the configuration manager

        Args:
            config_path: Path to a JSON settings file (None for defaults only)
            environ: Environment to read overrides from (None for os.environ)
        """
        self.config_path = config_path
        self.config = self._create_default_config()
        self.logger = logging.getLogger("zivpn.config")

        if config_path:
            self.load()
        self._apply_environment(os.environ if environ is None else environ)

    def load(self) -> None:
        """
        Merge the settings file over the defaults

        Raises:
            ConfigError: If the file exists but is not a JSON object
        """
        if not os.path.exists(self.config_path):
            self.logger.warning(f"Settings file {self.config_path} not found, using defaults")
            return

        try:
            with open(self.config_path, 'r') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise ConfigError(f"Cannot read settings file {self.config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigError(f"Settings file {self.config_path} must contain a JSON object")

        self.update(data)

        if not isinstance(self.get("service.restart_enabled"), bool):
            raise ConfigError(f"service.restart_enabled in {self.config_path} must be true or false")

        self.logger.info(f"Settings loaded from {self.config_path}")

    def _apply_environment(self, environ: Mapping[str, str]) -> None:
        for env_name, key in ENV_OVERRIDES.items():
            value = environ.get(env_name)
            if value:
                self.set(key, value)
                self.logger.debug(f"{key} overridden by {env_name}")

    def _create_default_config(self) -> Dict[str, Any]:
        """
        Create default configuration

        Returns:
            Default configuration dictionary
        """
        return {
            "paths": {
                "config_file": "/etc/zivpn/config.json",
                "user_db": "/etc/zivpn/users.json",
                "api_key_file": "/etc/zivpn/apikey",
                "port_file": "/etc/zivpn/api_port",
            },
            "server": {
                "host": "0.0.0.0",
                "default_port": DEFAULT_PORT,
            },
            "service": {
                "name": "zivpn.service",
                "restart_enabled": True,
                "restart_timeout": 30,
            },
            "logging": {
                "level": "INFO",
                "file": None,
            },
        }

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get a configuration value

        Args:
            key: Configuration key (dot notation for nested keys)
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        value = self.config

        try:
            for k in key.split('.'):
                value = value[k]
            return value
        except (KeyError, TypeError):
            return default

    def set(self, key: str, value: Any) -> None:
        """
        Set a configuration value

        Args:
            key: Configuration key (dot notation for nested keys)
            value: Value to set
        """
        keys = key.split('.')
        config = self.config

        for k in keys[:-1]:
            if not isinstance(config.get(k), dict):
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

    def update(self, config_dict: Dict[str, Any]) -> None:
        """
        Update multiple configuration values

        Args:
            config_dict: Dictionary of configuration values to update
        """
        self._recursive_update(self.config, config_dict)

    def _recursive_update(self, target: Dict[str, Any], source: Dict[str, Any]) -> None:
        for key, value in source.items():
            if key in target and isinstance(target[key], dict) and isinstance(value, dict):
                self._recursive_update(target[key], value)
            else:
                target[key] = value

    def read_api_key(self, environ: Optional[Mapping[str, str]] = None) -> str:
        """
        Read the shared secret expected in the X-API-Key header

        The key file wins; ZIVPN_API_KEY is the fallback.

        Returns:
            The trimmed API key

        Raises:
            ConfigError: If no key is configured anywhere
        """
        environ = os.environ if environ is None else environ
        path = self.get("paths.api_key_file")

        key = _read_trimmed(path)
        if key:
            self.logger.info(f"API key loaded from {path}")
            return key

        key = (environ.get("ZIVPN_API_KEY") or "").strip()
        if key:
            self.logger.info("API key loaded from ZIVPN_API_KEY")
            return key

        raise ConfigError(f"No API key configured: create {path} or set ZIVPN_API_KEY")

    def read_port(self) -> int:
        """
        Read the listening port from the port file

        Returns:
            The port, or server.default_port if the file is absent or invalid
        """
        default = int(self.get("server.default_port", DEFAULT_PORT))
        path = self.get("paths.port_file")

        raw = _read_trimmed(path)
        if not raw:
            return default

        try:
            port = int(raw)
        except ValueError:
            self.logger.warning(f"Invalid port {raw!r} in {path}, using {default}")
            return default

        if not 0 < port < 65536:
            self.logger.warning(f"Port {port} in {path} out of range, using {default}")
            return default
        return port


def _read_trimmed(path: Optional[str]) -> str:
    if not path:
        return ""
    try:
        with open(path, 'r') as f:
            return f.read().strip()
    except FileNotFoundError:
        return ""
    except OSError as e:
        logging.getLogger("zivpn.config").warning(f"Cannot read {path}: {e}")
        return ""
