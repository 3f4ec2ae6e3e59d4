"""
Command execution gateway with security validation.

This module handles:
- Denylist validation of gcloud/az sub-commands
- Bounded async subprocess execution
- Normalization of process outcomes into ExecutionResult
"""

from cloud_mcp.executor.types import (
    CommandRequest,
    ExecutionPolicy,
    ExecutionResult,
    ExecutorError,
    Provider,
    ValidationError,
    ValidationOutcome,
)
from cloud_mcp.executor.validator import (
    BLOCKED_AZURE_COMMANDS,
    BLOCKED_GCP_COMMANDS,
    CommandValidator,
    create_validator,
)
from cloud_mcp.executor.runner import (
    CommandExecutor,
    create_executor,
)

__all__ = [
    # Types
    "CommandRequest",
    "ExecutionPolicy",
    "ExecutionResult",
    "Provider",
    "ValidationOutcome",
    # Exceptions
    "ExecutorError",
    "ValidationError",
    # Validator
    "BLOCKED_GCP_COMMANDS",
    "BLOCKED_AZURE_COMMANDS",
    "CommandValidator",
    "create_validator",
    # Executor
    "CommandExecutor",
    "create_executor",
]
