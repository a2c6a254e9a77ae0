"""
Settings loading for the Cosmos DB management report.

Supports loading the service principal and subscription from:
1. Environment variables (AZURE_*)
2. A settings file (appsettings.json, or YAML)
3. Command-line arguments (highest priority)

Settings file example:
```json
{
  "TenantId": "[tenant id of the service principal]",
  "ClientId": "[application (client) id]",
  "ClientSecret": "${AZURE_CLIENT_SECRET}",
  "SubscriptionId": "[subscription id]"
}
```

Values still in their bracketed template form are rejected before any
call to Azure is made. Nothing else is validated here; a malformed id
surfaces as an authentication or API error.
"""
import json
import logging
import os
import re
import stat
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

from .constants import (
    DEFAULT_SETTINGS_FILE,
    PLACEHOLDER_PREFIX,
    REQUIRED_SETTINGS,
    SETTING_CLIENT_ID,
    SETTING_CLIENT_SECRET,
    SETTING_SUBSCRIPTION_ID,
    SETTING_TENANT_ID,
)
from .models import Settings

logger = logging.getLogger(__name__)

# Mapping from settings keys to env vars (same names azure-identity reads)
ENV_VAR_MAPPING = {
    SETTING_TENANT_ID: 'AZURE_TENANT_ID',
    SETTING_CLIENT_ID: 'AZURE_CLIENT_ID',
    SETTING_CLIENT_SECRET: 'AZURE_CLIENT_SECRET',
    SETTING_SUBSCRIPTION_ID: 'AZURE_SUBSCRIPTION_ID',
}

_FIELD_NAMES = {
    SETTING_TENANT_ID: 'tenant_id',
    SETTING_CLIENT_ID: 'client_id',
    SETTING_CLIENT_SECRET: 'client_secret',
    SETTING_SUBSCRIPTION_ID: 'subscription_id',
}


class ConfigError(Exception):
    """Settings could not be loaded or are unusable."""


class PlaceholderError(ConfigError):
    """One or more required settings still hold their template value."""

    def __init__(self, keys: List[str]):
        self.keys = keys
        super().__init__(f"Settings still contain placeholder values: {', '.join(keys)}")


def _substitute_env_vars(value: Any) -> Any:
    """Substitute ${ENV_VAR} patterns in string values."""
    if isinstance(value, str):
        # Pattern: ${VAR_NAME} or ${VAR_NAME:-default}
        pattern = r'\$\{([^}:]+)(?::-([^}]*))?\}'

        def replace(match):
            var_name = match.group(1)
            default = match.group(2) or ''
            return os.environ.get(var_name, default)

        return re.sub(pattern, replace, value)
    elif isinstance(value, dict):
        return {k: _substitute_env_vars(v) for k, v in value.items()}
    elif isinstance(value, list):
        return [_substitute_env_vars(item) for item in value]
    return value


def load_settings_file(settings_path: str) -> Dict[str, Any]:
    """Load settings from a JSON or YAML file."""
    path = Path(settings_path).expanduser()

    if not path.exists():
        raise ConfigError(f"Settings file not found: {settings_path}")

    # The file holds a client secret
    file_mode = path.stat().st_mode
    if file_mode & (stat.S_IRWXG | stat.S_IRWXO):
        logger.warning(f"Settings file {settings_path} has loose permissions. "
                       f"Consider: chmod 600 {settings_path}")

    logger.info(f"Loading settings from {path}")

    with open(path) as f:
        try:
            if path.suffix.lower() in ('.yaml', '.yml'):
                data = yaml.safe_load(f) or {}
            else:
                data = json.load(f)
        except (ValueError, yaml.YAMLError) as e:
            raise ConfigError(f"Settings file {settings_path} is not valid: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"Settings file {settings_path} must contain a key/value mapping")

    return _substitute_env_vars(data)


def load_env_settings() -> Dict[str, Any]:
    """Load settings from environment variables."""
    settings: Dict[str, Any] = {}

    for key, env_var in ENV_VAR_MAPPING.items():
        value = os.environ.get(env_var)
        if value is not None:
            settings[key] = value

    return settings


def merge_settings(*sources: Dict[str, Any]) -> Dict[str, Any]:
    """Merge multiple settings dicts. Later sources override earlier ones."""
    result: Dict[str, Any] = {}

    for source in sources:
        for key, value in source.items():
            if value is not None:
                result[key] = value

    return result


def to_settings(data: Dict[str, Any]) -> Settings:
    """Build the Settings object; absent keys become empty strings."""
    values = {}
    for key in REQUIRED_SETTINGS:
        value = data.get(key)
        values[_FIELD_NAMES[key]] = '' if value is None else str(value)
    return Settings(**values)


def load_settings(settings_path: Optional[str] = None,
                  overrides: Optional[Dict[str, Any]] = None) -> Settings:
    """
    Load settings from all sources and merge them.

    Priority (highest to lowest):
    1. overrides (CLI arguments)
    2. Settings file (settings_path, or ./appsettings.json when present)
    3. Environment variables

    Raises:
        ConfigError: If an explicit settings file is missing or unreadable
    """
    sources = []

    env_settings = load_env_settings()
    if env_settings:
        logger.debug("Loaded settings from environment variables")
        sources.append(env_settings)

    if settings_path:
        sources.append(load_settings_file(settings_path))
    elif Path(DEFAULT_SETTINGS_FILE).exists():
        logger.info(f"Found default settings file: {DEFAULT_SETTINGS_FILE}")
        sources.append(load_settings_file(DEFAULT_SETTINGS_FILE))

    if overrides:
        sources.append(overrides)

    return to_settings(merge_settings(*sources))


def find_placeholders(settings: Settings) -> List[str]:
    """Return the keys whose value is still a bracketed placeholder."""
    return [
        key for key in REQUIRED_SETTINGS
        if getattr(settings, _FIELD_NAMES[key]).startswith(PLACEHOLDER_PREFIX)
    ]


def validate_settings(settings: Settings) -> None:
    """
    Reject settings that still hold template values.

    Raises:
        PlaceholderError: If any required value starts with '['
    """
    placeholders = find_placeholders(settings)
    if placeholders:
        raise PlaceholderError(placeholders)


def generate_sample_settings() -> str:
    """Generate a sample settings file content."""
    return json.dumps({
        SETTING_TENANT_ID: "[tenant id of the service principal]",
        SETTING_CLIENT_ID: "[application (client) id of the service principal]",
        SETTING_CLIENT_SECRET: "[client secret, or ${AZURE_CLIENT_SECRET}]",
        SETTING_SUBSCRIPTION_ID: "[subscription id]",
    }, indent=2) + "\n"
