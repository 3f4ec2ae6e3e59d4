"""
Prometheus metrics endpoint.

Provides /metrics endpoint in Prometheus exposition format.
"""

import threading
import time
from dataclasses import dataclass, field
from typing import Callable

from starlette.requests import Request
from starlette.responses import PlainTextResponse

from cloud_mcp import __version__

PROMETHEUS_CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"

# Per-tool counts for names outside the catalogue share this label.
UNKNOWN_TOOL_LABEL = "unknown"


def escape_label_value(value: str) -> str:
    """Escape a Prometheus label value (backslash, double quote, newline)."""
    return value.replace("\\", "\\\\").replace('"', '\\"').replace("\n", "\\n")


@dataclass
class MetricsCollector:
    """
    Simple metrics collector for Prometheus exposition.

    Every router dispatch is counted exactly once, as success, error
    or blocked (rejected by command validation).
    """

    # Counters
    tool_calls_total: int = 0
    tool_calls_success: int = 0
    tool_calls_error: int = 0
    tool_calls_blocked: int = 0

    # Startup time
    start_time: float = field(default_factory=time.time)

    # Per-tool counters
    tool_counts: dict[str, int] = field(default_factory=dict)

    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def inc_tool_call(self, tool_name: str, success: bool = True, blocked: bool = False) -> None:
        """Increment tool call counters."""
        with self._lock:
            self.tool_calls_total += 1

            if blocked:
                self.tool_calls_blocked += 1
            elif success:
                self.tool_calls_success += 1
            else:
                self.tool_calls_error += 1

            self.tool_counts[tool_name] = self.tool_counts.get(tool_name, 0) + 1

    def format_prometheus(self) -> str:
        """
        Format metrics in Prometheus exposition format.

        Returns:
            Metrics as text in Prometheus format
        """
        uptime = time.time() - self.start_time

        lines = [
            "# HELP cloud_mcp_info Server information",
            "# TYPE cloud_mcp_info gauge",
            f'cloud_mcp_info{{version="{__version__}"}} 1',
            "",
            "# HELP cloud_mcp_uptime_seconds Server uptime in seconds",
            "# TYPE cloud_mcp_uptime_seconds gauge",
            f"cloud_mcp_uptime_seconds {uptime:.2f}",
            "",
            "# HELP cloud_mcp_tool_calls_total Total tool calls",
            "# TYPE cloud_mcp_tool_calls_total counter",
            f"cloud_mcp_tool_calls_total {self.tool_calls_total}",
            "",
            "# HELP cloud_mcp_tool_calls_success_total Successful tool calls",
            "# TYPE cloud_mcp_tool_calls_success_total counter",
            f"cloud_mcp_tool_calls_success_total {self.tool_calls_success}",
            "",
            "# HELP cloud_mcp_tool_calls_error_total Failed tool calls",
            "# TYPE cloud_mcp_tool_calls_error_total counter",
            f"cloud_mcp_tool_calls_error_total {self.tool_calls_error}",
            "",
            "# HELP cloud_mcp_tool_calls_blocked_total Tool calls rejected by command validation",
            "# TYPE cloud_mcp_tool_calls_blocked_total counter",
            f"cloud_mcp_tool_calls_blocked_total {self.tool_calls_blocked}",
        ]

        if self.tool_counts:
            lines.extend([
                "",
                "# HELP cloud_mcp_tool_calls_by_name Tool calls by tool name",
                "# TYPE cloud_mcp_tool_calls_by_name counter",
            ])
            for tool_name, count in sorted(self.tool_counts.items()):
                lines.append(
                    f'cloud_mcp_tool_calls_by_name{{tool="{escape_label_value(tool_name)}"}} {count}'
                )

        return "\n".join(lines) + "\n"


def metrics_endpoint(metrics: MetricsCollector) -> Callable:
    """
    Build the /metrics handler for a collector.

    Args:
        metrics: MetricsCollector fed by the tool router

    Returns:
        Starlette endpoint
    """

    async def endpoint(request: Request) -> PlainTextResponse:
        return PlainTextResponse(
            metrics.format_prometheus(),
            media_type=PROMETHEUS_CONTENT_TYPE,
        )

    return endpoint
