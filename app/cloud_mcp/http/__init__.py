"""
HTTP endpoints mounted on the FastMCP app.

Provides:
- /health: liveness probe
- /ready: readiness probe with CLI availability checks
- /metrics: Prometheus-format metrics
- /tools, /tools/{toolName}, /mcp/call: REST access to the tool router
"""

from cloud_mcp.http.api import (
    call_tool_endpoint,
    list_tools_endpoint,
    mcp_call_endpoint,
)
from cloud_mcp.http.health import check_binaries, health_check, ready_check
from cloud_mcp.http.metrics import UNKNOWN_TOOL_LABEL, MetricsCollector, metrics_endpoint

__all__ = [
    "health_check",
    "ready_check",
    "check_binaries",
    "MetricsCollector",
    "UNKNOWN_TOOL_LABEL",
    "metrics_endpoint",
    "list_tools_endpoint",
    "call_tool_endpoint",
    "mcp_call_endpoint",
]
