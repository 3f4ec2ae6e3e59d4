"""
Configuration system for Cloud MCP Server.

Exports:
    CloudMCPServerConfig: Main configuration container
    load_config: Load configuration from YAML/env
"""

from cloud_mcp.config.models import (
    CloudMCPServerConfig,
    CommandSettings,
    SecuritySettings,
    ServerSettings,
    StorageSettings,
)
from cloud_mcp.config.loader import load_config, reload_config

__all__ = [
    "CloudMCPServerConfig",
    "ServerSettings",
    "CommandSettings",
    "SecuritySettings",
    "StorageSettings",
    "load_config",
    "reload_config",
]
