"""
Base tool types and the handler contract.

Every tool is a ToolSpec: a name, a description, a JSON input schema and
an async handler ``(services, arguments) -> ToolResponse``. Handlers check
their required arguments, perform one operation (a CLI call through the
executor or an SDK read) and map the outcome into a ToolResponse.
"""

import asyncio
import json
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Awaitable, Callable, Mapping, Optional, TypeVar

from cloud_mcp.clients import CloudClientFactory
from cloud_mcp.config.models import StorageSettings
from cloud_mcp.executor import CommandExecutor, ExecutionResult, Provider


# =============================================================================
# Errors
# =============================================================================
class ToolError(Exception):
    """Base exception for tool dispatch errors."""

    pass


class ArgumentError(ToolError):
    """Raised when a required argument is missing or malformed."""

    pass


class CollaboratorError(ToolError):
    """Raised when an SDK, network or CLI read fails; message names the operation."""

    pass


class UnknownToolError(ToolError):
    """Raised when no tool is registered under the requested name."""

    def __init__(self, tool_name: str, message: Optional[str] = None):
        super().__init__(message or f"Unknown tool: {tool_name}")
        self.tool_name = tool_name


class UnknownOperationError(UnknownToolError):
    """Raised when the provider prefix is known but the operation is not."""

    def __init__(self, tool_name: str, provider: Provider):
        super().__init__(tool_name, f"Unknown {provider.label} tool: {tool_name}")
        self.provider = provider


# =============================================================================
# Responses
# =============================================================================
def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, (bytes, bytearray)):
        return value.decode("utf-8", errors="replace")
    return str(value)


def to_json(data: Any) -> str:
    """Serialize tool output the way every tool returns structured data."""
    return json.dumps(data, indent=2, default=_json_default)


@dataclass(frozen=True)
class TextContent:
    """A single text content item of a tool response."""

    text: str
    type: str = "text"

    def to_dict(self) -> dict:
        return {"type": self.type, "text": self.text}


@dataclass
class ToolResponse:
    """
    Uniform result envelope of every tool call.

    Attributes:
        content: Ordered text content items
        is_error: True when the operation did not complete as requested
    """

    content: list[TextContent]
    is_error: bool = False

    @classmethod
    def from_text(cls, text: str, is_error: bool = False) -> "ToolResponse":
        return cls(content=[TextContent(text=text)], is_error=is_error)

    @classmethod
    def from_json(cls, data: Any, is_error: bool = False) -> "ToolResponse":
        return cls.from_text(to_json(data), is_error=is_error)

    @classmethod
    def from_execution(cls, result: ExecutionResult) -> "ToolResponse":
        """Wrap an executor result: the JSON triple, failed when exit code is non-zero."""
        return cls.from_json(result.to_dict(), is_error=not result.success)

    @classmethod
    def from_error(cls, error: BaseException) -> "ToolResponse":
        message = str(error) or type(error).__name__
        return cls.from_text(f"Error: {message}", is_error=True)

    @property
    def text(self) -> str:
        """All text content joined by newlines."""
        return "\n".join(item.text for item in self.content)

    def to_dict(self) -> dict:
        """Convert to the JSON shape returned over HTTP."""
        return {
            "content": [item.to_dict() for item in self.content],
            "isError": self.is_error,
        }


# =============================================================================
# Tool specification
# =============================================================================
@dataclass
class ToolServices:
    """Collaborators shared by all handlers, built once per process."""

    executor: CommandExecutor
    clients: CloudClientFactory
    storage: StorageSettings = field(default_factory=StorageSettings)


ToolHandler = Callable[[ToolServices, dict[str, Any]], Awaitable[ToolResponse]]


@dataclass(frozen=True)
class ToolSpec:
    """Declaration of one tool: metadata plus its handler."""

    name: str
    description: str
    provider: Provider
    handler: ToolHandler
    input_schema: dict[str, Any] = field(default_factory=lambda: object_schema({}))
    read_only: bool = True

    def descriptor(self) -> dict[str, Any]:
        """Tool descriptor shared by all front-ends."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


def object_schema(
    properties: Mapping[str, Mapping[str, Any]],
    required: tuple[str, ...] = (),
) -> dict[str, Any]:
    """
    Build a JSON object schema for tool input.

    Args:
        properties: Property name -> {"type": ..., "description": ...}
        required: Names of required properties

    Returns:
        JSON schema dict
    """
    schema: dict[str, Any] = {
        "type": "object",
        "properties": {name: dict(prop) for name, prop in properties.items()},
    }
    if required:
        schema["required"] = list(required)
    return schema


# =============================================================================
# Argument helpers
# =============================================================================
def require_str(args: Mapping[str, Any], name: str, label: str) -> str:
    """Return a required string argument or raise ArgumentError naming it."""
    value = args.get(name)
    if value is None or value == "":
        raise ArgumentError(f"{label} is required")
    if not isinstance(value, str):
        raise ArgumentError(f"{label} must be a string")
    return value


def optional_str(args: Mapping[str, Any], name: str) -> Optional[str]:
    """Return an optional string argument; empty values count as absent."""
    value = args.get(name)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ArgumentError(f"{name} must be a string")
    return value


def optional_positive_int(args: Mapping[str, Any], name: str, default: int) -> int:
    """
    Return an optional positive integer argument.

    Missing, null and zero values fall back to the default.
    """
    value = args.get(name)
    if value is None or value == 0 or value == "":
        return default
    if isinstance(value, bool):
        raise ArgumentError(f"{name} must be a positive integer")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    elif isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if not isinstance(value, int) or value < 0:
        raise ArgumentError(f"{name} must be a positive integer")
    return value or default


def optional_mapping(args: Mapping[str, Any], name: str) -> Optional[dict[str, Any]]:
    """Return an optional object argument."""
    value = args.get(name)
    if value is None:
        return None
    if not isinstance(value, Mapping):
        raise ArgumentError(f"{name} must be an object")
    return dict(value)


# =============================================================================
# Collaborator calls
# =============================================================================
T = TypeVar("T")


async def call_collaborator(operation: str, func: Callable[..., T], *args: Any) -> T:
    """
    Run a blocking SDK call in a worker thread.

    Any failure is re-raised as CollaboratorError("Failed to <operation>: ...").
    """
    try:
        return await asyncio.to_thread(func, *args)
    except Exception as e:
        raise CollaboratorError(f"Failed to {operation}: {e}") from e
