"""
Type definitions for command execution.

This module defines the data structures used throughout the executor.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class Provider(str, Enum):
    """Supported cloud providers."""

    GCP = "gcp"
    AZURE = "azure"

    @property
    def label(self) -> str:
        """Human-readable provider name used in messages."""
        return "GCP" if self is Provider.GCP else "Azure"

    @property
    def tool_prefix(self) -> str:
        """Prefix shared by every tool name of this provider."""
        return f"{self.value}_"

    @classmethod
    def from_tool_name(cls, tool_name: str) -> Optional["Provider"]:
        """Classify a tool name by its provider prefix, or None if unrecognized."""
        for provider in cls:
            if tool_name.startswith(provider.tool_prefix):
                return provider
        return None


@dataclass(frozen=True)
class ExecutionPolicy:
    """
    Resource limits applied to every external command.

    Attributes:
        timeout_seconds: Maximum wall-clock duration of a command
        max_output_bytes: Maximum combined stdout+stderr size
    """

    timeout_seconds: float = 30.0
    max_output_bytes: int = 10 * 1024 * 1024


@dataclass(frozen=True)
class CommandRequest:
    """
    A provider CLI sub-command requested by a caller.

    Attributes:
        raw_command: Sub-command text without the CLI program name
        scope_id: Optional project id (GCP) or subscription id (Azure)
    """

    raw_command: str
    scope_id: Optional[str] = None


@dataclass(frozen=True)
class ValidationOutcome:
    """
    Result of security validation.

    Attributes:
        permitted: Whether the command may run
        reason: Explanation of why the command was rejected
    """

    permitted: bool
    reason: Optional[str] = None

    @classmethod
    def allow(cls) -> "ValidationOutcome":
        """Create a permitting outcome."""
        return cls(permitted=True)

    @classmethod
    def reject(cls, reason: str) -> "ValidationOutcome":
        """Create a rejecting outcome."""
        return cls(permitted=False, reason=reason)


@dataclass(frozen=True)
class ExecutionResult:
    """
    Normalized result of an external command.

    exit_code is 0 only when the process completed successfully. Any failure
    (non-zero exit, timeout, output overflow, spawn error) carries a non-zero
    exit_code and a non-empty stderr.
    """

    stdout: str
    stderr: str
    exit_code: int

    @property
    def success(self) -> bool:
        """Check if command executed successfully."""
        return self.exit_code == 0

    def to_dict(self) -> dict:
        """Convert to the JSON shape returned to tool callers."""
        return {
            "stdout": self.stdout,
            "stderr": self.stderr,
            "exitCode": self.exit_code,
        }


class ExecutorError(Exception):
    """Base exception for executor errors."""

    pass


class ValidationError(ExecutorError):
    """Raised when a command is rejected by security validation."""

    def __init__(
        self,
        reason: str,
        provider: Optional[Provider] = None,
        command: Optional[str] = None,
    ):
        super().__init__(reason)
        self.reason = reason
        self.provider = provider
        self.command = command
