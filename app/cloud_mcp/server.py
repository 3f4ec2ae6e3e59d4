"""
FastMCP Server Setup.

This module creates and configures the MCP server instance.
"""

import shutil
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from fastmcp import FastMCP

from cloud_mcp import __version__
from cloud_mcp.config import CloudMCPServerConfig
from cloud_mcp.http import (
    MetricsCollector,
    call_tool_endpoint,
    health_check,
    list_tools_endpoint,
    mcp_call_endpoint,
    metrics_endpoint,
    ready_check,
)
from cloud_mcp.tools import ToolRouter, create_router
from cloud_mcp.utils.logging import get_logger

logger = get_logger(__name__)

SERVER_NAME = "cloud_mcp"


def _cli_binaries(config: CloudMCPServerConfig) -> dict[str, str]:
    return {
        "gcloud": config.command.gcloud_binary,
        "az": config.command.az_binary,
    }


def create_server(
    config: CloudMCPServerConfig,
    router: Optional[ToolRouter] = None,
) -> FastMCP:
    """
    Create and configure the MCP server.

    Args:
        config: Server configuration
        router: Optional pre-built router (tests inject one with fake collaborators)

    Returns:
        FastMCP instance with tools and HTTP routes registered
    """
    if router is None:
        router = create_router(config, metrics=MetricsCollector())
    elif router.metrics is None:
        router.metrics = MetricsCollector()

    binaries = _cli_binaries(config)

    @asynccontextmanager
    async def lifespan(server: FastMCP) -> AsyncIterator[dict]:
        """
        Server lifespan manager.

        Yields a state dict that's available to all tools via context.
        """
        logger.info("Cloud MCP Server v%s starting...", __version__)

        # Missing CLIs only disable the tools that shell out to them.
        for name, program in binaries.items():
            if shutil.which(program):
                logger.info("%s CLI found (%s)", name, program)
            else:
                logger.warning("%s CLI not found on PATH (%s)", name, program)

        yield {"config": config, "router": router, "metrics": router.metrics}

        logger.info("Cloud MCP Server shutting down...")

    mcp = FastMCP(
        name=SERVER_NAME,
        lifespan=lifespan,
    )

    router.register_with_mcp(mcp)
    logger.info("Registered %d tools", len(router.tool_names))

    _register_http_routes(mcp, router, binaries)

    return mcp


def _register_http_routes(
    mcp: FastMCP,
    router: ToolRouter,
    binaries: dict[str, str],
) -> None:
    """Register custom HTTP routes for health, metrics and REST tool access."""
    mcp.custom_route("/health", methods=["GET"])(health_check)
    mcp.custom_route("/ready", methods=["GET"])(ready_check(binaries))
    mcp.custom_route("/metrics", methods=["GET"])(metrics_endpoint(router.metrics))
    mcp.custom_route("/tools", methods=["GET"])(list_tools_endpoint(router))
    mcp.custom_route("/tools/{toolName}", methods=["POST"])(call_tool_endpoint(router))
    mcp.custom_route("/mcp/call", methods=["POST"])(mcp_call_endpoint(router))
