"""
Tool Router.

Holds the static tool catalogue and dispatches calls by name. dispatch()
never raises: every failure becomes an error envelope, logged once here.
"""

from typing import Any, Iterable, Optional

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError as MCPToolError
from fastmcp.tools import Tool
from fastmcp.tools.tool import ToolResult
from mcp.types import TextContent as MCPTextContent
from mcp.types import ToolAnnotations
from pydantic import Field

from cloud_mcp.clients import CloudClientFactory
from cloud_mcp.executor import Provider, ValidationError, create_executor
from cloud_mcp.http.metrics import UNKNOWN_TOOL_LABEL, MetricsCollector
from cloud_mcp.tools.azure import AZURE_TOOLS
from cloud_mcp.tools.base import (
    ArgumentError,
    ToolResponse,
    ToolServices,
    ToolSpec,
    UnknownOperationError,
    UnknownToolError,
)
from cloud_mcp.tools.gcp import GCP_TOOLS
from cloud_mcp.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_TOOLS: tuple[ToolSpec, ...] = GCP_TOOLS + AZURE_TOOLS


class ToolRouter:
    """
    Maps tool names to handlers and runs them.

    Catalogue order is preserved: GCP tools first, then Azure.
    """

    def __init__(
        self,
        services: ToolServices,
        metrics: Optional[MetricsCollector] = None,
        tools: Iterable[ToolSpec] = DEFAULT_TOOLS,
    ):
        self.services = services
        self.metrics = metrics
        self._tools: dict[str, ToolSpec] = {}
        for tool_spec in tools:
            if tool_spec.name in self._tools:
                raise ValueError(f"Duplicate tool name: {tool_spec.name}")
            self._tools[tool_spec.name] = tool_spec

    def list_tools(self) -> list[dict[str, Any]]:
        """Get descriptors of all tools in catalogue order."""
        return [tool_spec.descriptor() for tool_spec in self._tools.values()]

    def has_tool(self, name: str) -> bool:
        return name in self._tools

    def get_tool(self, name: str) -> ToolSpec:
        """
        Resolve a tool name.

        Raises:
            UnknownOperationError: If the provider prefix is known but the tool is not
            UnknownToolError: If the name has no known provider prefix
        """
        tool_spec = self._tools.get(name)
        if tool_spec is not None:
            return tool_spec

        provider = Provider.from_tool_name(name)
        if provider is not None:
            raise UnknownOperationError(name, provider)
        raise UnknownToolError(name)

    @property
    def tool_names(self) -> list[str]:
        return list(self._tools)

    async def dispatch(self, name: str, arguments: Optional[dict[str, Any]] = None) -> ToolResponse:
        """
        Run a tool and return its envelope.

        Args:
            name: Tool name, e.g. "gcp_list_buckets"
            arguments: Tool arguments; None is treated as {}

        Returns:
            ToolResponse; never raises
        """
        blocked = False
        try:
            tool_spec = self.get_tool(name)
            logger.debug("Dispatching tool %s", name)
            response = await tool_spec.handler(self.services, dict(arguments or {}))
        except ValidationError as e:
            logger.warning("Tool %s blocked: %s", name, e.reason)
            blocked = True
            response = ToolResponse.from_error(e)
        except (ArgumentError, UnknownToolError) as e:
            logger.warning("Tool %s rejected: %s", name, e)
            response = ToolResponse.from_error(e)
        except Exception as e:
            logger.exception("Tool %s failed", name)
            response = ToolResponse.from_error(e)

        if self.metrics is not None:
            metric_name = name if self.has_tool(name) else UNKNOWN_TOOL_LABEL
            self.metrics.inc_tool_call(
                metric_name, success=not response.is_error, blocked=blocked
            )
        return response

    def register_with_mcp(self, mcp: FastMCP) -> None:
        """
        Register every catalogue tool with a FastMCP server.

        The published tools carry their input schemas, but MCP calls are
        routed straight to dispatch() with schema checking turned off, so
        argument errors read the same on every front-end.
        """
        for tool_spec in self._tools.values():
            mcp.add_tool(RoutedTool.from_tool_spec(tool_spec, self))
        mcp._mcp_server.call_tool(validate_input=False)(self.call_mcp_tool)

    async def call_mcp_tool(
        self, name: str, arguments: Optional[dict[str, Any]]
    ) -> list[MCPTextContent]:
        """MCP tools/call handler: dispatch, then map the envelope to MCP content."""
        return to_mcp_content(await self.dispatch(name, arguments))


def to_mcp_content(response: ToolResponse) -> list[MCPTextContent]:
    """
    Convert an envelope to MCP content.

    Raises:
        MCPToolError: For error envelopes; the MCP server turns it into an
            isError result carrying the same text
    """
    if response.is_error:
        raise MCPToolError(response.text)
    return [MCPTextContent(type="text", text=item.text) for item in response.content]


class RoutedTool(Tool):
    """FastMCP tool backed by a ToolRouter entry."""

    router: Any = Field(exclude=True)

    @classmethod
    def from_tool_spec(cls, tool_spec: ToolSpec, router: ToolRouter) -> "RoutedTool":
        return cls(
            name=tool_spec.name,
            description=tool_spec.description,
            parameters=tool_spec.input_schema,
            annotations=ToolAnnotations(
                readOnlyHint=tool_spec.read_only,
                destructiveHint=not tool_spec.read_only,
                openWorldHint=True,
            ),
            router=router,
        )

    async def run(self, arguments: dict[str, Any]) -> ToolResult:
        response = await self.router.dispatch(self.name, arguments)
        return ToolResult(content=to_mcp_content(response))


def create_router(config: Any, metrics: Optional[MetricsCollector] = None) -> ToolRouter:
    """
    Factory function to create a ToolRouter from server config.

    Args:
        config: CloudMCPServerConfig instance
        metrics: Optional collector fed by every dispatch

    Returns:
        ToolRouter over the full catalogue
    """
    services = ToolServices(
        executor=create_executor(config),
        clients=CloudClientFactory(),
        storage=config.storage,
    )
    return ToolRouter(services, metrics=metrics)
