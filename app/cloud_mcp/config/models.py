"""
Pydantic models for server configuration.

Configuration is built once at startup and passed to server components;
nothing reads configuration globally.
"""

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ServerSettings(BaseModel):
    """Server configuration settings."""

    host: str = Field(
        default="127.0.0.1",
        description="Host to bind the server to",
    )
    port: int = Field(
        default=8080,
        ge=1,
        le=65535,
        description="Port to listen on",
    )
    transport: Literal["streamable-http", "stdio"] = Field(
        default="stdio",
        description="Transport protocol to use",
    )
    log_level: Literal["debug", "info", "warning", "error"] = Field(
        default="info",
        description="Logging level",
    )
    log_file: Optional[str] = Field(
        default=None,
        description="Optional file to write logs to, in addition to stderr",
    )


class CommandSettings(BaseModel):
    """Command execution settings."""

    timeout_seconds: float = Field(
        default=30.0,
        gt=0,
        le=600,
        description="Maximum wall-clock duration of a CLI command in seconds",
    )
    max_output_size: int = Field(
        default=10 * 1024 * 1024,
        ge=1000,
        description="Maximum combined stdout+stderr size in bytes",
    )
    gcloud_binary: str = Field(
        default="gcloud",
        description="gcloud program name or path",
    )
    az_binary: str = Field(
        default="az",
        description="Azure CLI program name or path",
    )


class SecuritySettings(BaseModel):
    """
    Security configuration.

    Entries here are added to the built-in denylists; the built-in
    entries cannot be removed through configuration.
    """

    gcp_blocked_commands: list[str] = Field(
        default_factory=list,
        description="Additional gcloud sub-commands to block",
    )
    azure_blocked_commands: list[str] = Field(
        default_factory=list,
        description="Additional az sub-commands to block",
    )

    @field_validator("gcp_blocked_commands", "azure_blocked_commands")
    @classmethod
    def normalize_entries(cls, v: list[str]) -> list[str]:
        """Lowercase entries and drop blanks."""
        return [entry.strip().lower() for entry in v if entry and entry.strip()]


class StorageSettings(BaseModel):
    """Defaults for storage listing and content reads."""

    default_max_results: int = Field(
        default=100,
        ge=1,
        description="Listing cap when the caller does not pass maxResults",
    )
    default_max_bytes: int = Field(
        default=1024 * 1024,
        ge=1,
        description="Read cap when the caller does not pass maxBytes",
    )


class CloudMCPServerConfig(BaseModel):
    """
    Main configuration container for Cloud MCP Server.

    Configuration is loaded from YAML files and environment variables,
    then passed to server components via dependency injection.
    """

    server: ServerSettings = Field(default_factory=ServerSettings)
    command: CommandSettings = Field(default_factory=CommandSettings)
    security: SecuritySettings = Field(default_factory=SecuritySettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)

    # Allow extra fields to be ignored (forward compatibility)
    model_config = ConfigDict(extra="ignore")
