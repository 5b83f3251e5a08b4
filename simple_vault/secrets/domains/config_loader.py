"""Configuration loader for the vault client."""
import logging
import os
from pathlib import Path
from typing import Any, Dict
from urllib.parse import urlparse

import yaml

from .preferences import get_preference

logger = logging.getLogger(__name__)


def default_config_path() -> Path:
    return Path.home() / ".config" / "simple-vault" / "config.yml"


def _get_config_path() -> str:
    """
    Get config file path using XDG Base Directory standard.

    Priority order:
    1. User preference (stored in ~/.config/simple-vault/preferences.json)
    2. Default location: ~/.config/simple-vault/config.yml

    Returns:
        Absolute path to config file

    Raises:
        FileNotFoundError: If config file doesn't exist in any location
    """
    config_path_pref = get_preference("config_path")
    if config_path_pref:
        config_path = Path(config_path_pref)
        if config_path.exists():
            logger.info(f"Using config from preference: {config_path}")
            return str(config_path)
        logger.warning(f"Config path from preference doesn't exist: {config_path}")

    default_config = default_config_path()
    if default_config.exists():
        logger.info(f"Using default config location: {default_config}")
        return str(default_config)

    raise FileNotFoundError(
        "Configuration file not found. Create one using one of these methods:\n\n"
        "1. Use the default location:\n"
        f"   mkdir -p {default_config.parent}\n"
        f"   cp /path/to/your/config.yml {default_config}\n\n"
        "2. Point to an existing config file:\n"
        "   vault config set-path /path/to/your/config.yml\n\n"
        "Without a config file the client talks to VAULT_API_URL or the local default."
    )


class ConfigError(Exception):
    """Configuration error exception."""
    pass


def validate_base_url(base_url: Any, source: str) -> None:
    """
    Check that a vault API URL is an absolute http(s) URL.

    Args:
        base_url: URL to check
        source: Where the value came from, used in the error message

    Raises:
        ConfigError: If the URL is not usable
    """
    parsed = urlparse(str(base_url))
    if parsed.scheme not in ('http', 'https') or not parsed.netloc:
        raise ConfigError(
            f"Invalid {source}: {base_url}\n"
            f"Expected an absolute http:// or https:// URL."
        )


def _validate_api_section(config: Dict[str, Any], config_path: str) -> None:
    api = config.get('api')
    if not isinstance(api, dict):
        raise ConfigError(
            f"Missing 'api' section in config at {config_path}\n"
            f"Required format:\n"
            f"api:\n"
            f"  base_url: https://vault.example.com/api/v1\n"
            f"  timeout: 10"
        )

    base_url = api.get('base_url')
    if not base_url:
        raise ConfigError("Missing 'api.base_url' in config")

    validate_base_url(base_url, "'api.base_url'")

    if 'timeout' in api:
        timeout = api['timeout']
        if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
            raise ConfigError(f"Invalid 'api.timeout': {timeout!r} (expected a positive number of seconds)")


def _validate_authentication_section(config: Dict[str, Any]) -> None:
    if 'authentication' not in config:
        return

    auth = config['authentication']
    if not isinstance(auth, dict):
        raise ConfigError("'authentication' must be a mapping")

    token = auth.get('token')
    if token is not None and not isinstance(token, str):
        raise ConfigError("'authentication.token' must be a string")


def load_config() -> Dict[str, Any]:
    """
    Load and validate configuration from YAML file.

    Returns:
        Dict containing configuration with keys:
        - api: dict with base_url and optional timeout
        - authentication: optional dict with token

    Raises:
        FileNotFoundError: If no config file exists
        ConfigError: If the config file is unreadable or invalid
    """
    # Resolved on every call so preference changes apply immediately
    config_path = _get_config_path()

    if not os.path.isfile(config_path):
        raise ConfigError(f"Config path is not a file: {config_path}")

    try:
        with open(config_path, 'r') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Failed to parse YAML config at {config_path}: {e}")
    except OSError as e:
        raise ConfigError(f"Failed to read config file at {config_path}: {e}")

    if not config:
        raise ConfigError(f"Config file at {config_path} is empty")

    if not isinstance(config, dict):
        raise ConfigError(f"Config file at {config_path} must contain a mapping")

    _validate_api_section(config, config_path)
    _validate_authentication_section(config)

    logger.info(f"Configuration loaded successfully from {config_path}")
    logger.debug(f"Using vault API: {config['api']['base_url']}")

    return config
