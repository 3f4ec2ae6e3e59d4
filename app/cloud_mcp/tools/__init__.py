"""
MCP tools for GCP and Azure.

Tool families:
- gcp: gcloud pass-through, Cloud Storage reads, Compute Engine lifecycle
- azure: az pass-through, storage accounts, Blob Storage reads

Every tool is a ToolSpec routed by name through ToolRouter.
"""

from cloud_mcp.tools.base import (
    ArgumentError,
    CollaboratorError,
    TextContent,
    ToolError,
    ToolResponse,
    ToolServices,
    ToolSpec,
    UnknownOperationError,
    UnknownToolError,
)
from cloud_mcp.tools.router import DEFAULT_TOOLS, RoutedTool, ToolRouter, create_router

__all__ = [
    # Base types
    "TextContent",
    "ToolResponse",
    "ToolServices",
    "ToolSpec",
    # Errors
    "ToolError",
    "ArgumentError",
    "CollaboratorError",
    "UnknownToolError",
    "UnknownOperationError",
    # Router
    "DEFAULT_TOOLS",
    "RoutedTool",
    "ToolRouter",
    "create_router",
]
