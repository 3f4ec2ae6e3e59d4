"""
Configuration loader with YAML and environment variable support.

Priority (highest to lowest):
1. Environment variables: CLOUD_MCP_SERVER__PORT=9000
2. User config: --config-dir path / ~/.cloudmcp/config.yaml
3. Built-in defaults: cloud_mcp/config/defaults/
"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml

from cloud_mcp.config.models import CloudMCPServerConfig
from cloud_mcp.utils.logging import get_logger

logger = get_logger(__name__)


# Default config locations
DEFAULT_CONFIG_DIR = Path.home() / ".cloudmcp"
PACKAGE_DEFAULTS_DIR = Path(__file__).parent / "defaults"

# Environment variable prefix
ENV_PREFIX = "CLOUD_MCP_"
ENV_DELIMITER = "__"


def _deep_merge(base: dict, override: dict) -> dict:
    """
    Deep merge two dictionaries.

    Values from 'override' take precedence over 'base'.
    Nested dicts are merged recursively.
    """
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


def _load_yaml_file(path: Path) -> dict[str, Any]:
    """Load a YAML file, returning empty dict if not found or unparsable."""
    if not path.exists():
        return {}
    try:
        with open(path) as f:
            content = yaml.safe_load(f)
            return content if isinstance(content, dict) else {}
    except yaml.YAMLError as e:
        logger.warning("Failed to parse %s: %s", path, e)
        return {}


def _parse_env_value(value: str) -> Any:
    """
    Parse an environment variable value with YAML scalar rules.

    "9000" -> 9000, "true" -> True, "[iam, projects]" -> ["iam", "projects"].
    Unparsable values are kept as plain strings.
    """
    try:
        parsed = yaml.safe_load(value)
    except yaml.YAMLError:
        return value
    return value if parsed is None else parsed


def _get_env_overrides(environ: Optional[dict[str, str]] = None) -> dict[str, Any]:
    """
    Extract configuration overrides from environment variables.

    Environment variables are expected in the format:
    CLOUD_MCP_SECTION__KEY=value

    CLOUD_MCP_SERVER__PORT=9000 -> {"server": {"port": 9000}}
    CLOUD_MCP_COMMAND__TIMEOUT_SECONDS=10 -> {"command": {"timeout_seconds": 10}}
    """
    environ = os.environ if environ is None else environ
    overrides: dict[str, Any] = {}

    for key, value in environ.items():
        if not key.startswith(ENV_PREFIX):
            continue

        key_path = [part for part in key[len(ENV_PREFIX) :].lower().split(ENV_DELIMITER) if part]
        if not key_path:
            continue

        current = overrides
        for part in key_path[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]

        current[key_path[-1]] = _parse_env_value(value)

    return overrides


def load_config(config_dir: Optional[str | Path] = None) -> CloudMCPServerConfig:
    """
    Load configuration from multiple sources.

    Args:
        config_dir: Optional path to configuration directory.
                   If not provided, uses ~/.cloudmcp/

    Returns:
        CloudMCPServerConfig: Validated configuration object

    Raises:
        pydantic.ValidationError: If configuration is invalid
    """
    config_data = _load_yaml_file(PACKAGE_DEFAULTS_DIR / "settings.yaml")

    security_data = _load_yaml_file(PACKAGE_DEFAULTS_DIR / "security.yaml")
    config_data = _deep_merge(config_data, security_data)

    user_config_dir = Path(config_dir) if config_dir else DEFAULT_CONFIG_DIR
    user_config = _load_yaml_file(user_config_dir / "config.yaml")
    config_data = _deep_merge(config_data, user_config)

    user_security = _load_yaml_file(user_config_dir / "security.yaml")
    config_data = _deep_merge(config_data, user_security)

    config_data = _deep_merge(config_data, _get_env_overrides())

    return CloudMCPServerConfig.model_validate(config_data)


def reload_config(
    current_config: CloudMCPServerConfig, config_dir: Optional[str | Path] = None
) -> CloudMCPServerConfig:
    """
    Reload configuration (for SIGHUP handling).

    Args:
        current_config: Current configuration (for fallback on error)
        config_dir: Configuration directory path

    Returns:
        CloudMCPServerConfig: New configuration, or current if reload fails
    """
    try:
        return load_config(config_dir)
    except Exception as e:
        logger.warning("Config reload failed, keeping current config: %s", e)
        return current_config
