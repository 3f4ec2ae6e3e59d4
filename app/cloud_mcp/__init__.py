"""
Cloud MCP Server.

This MCP server provides LLMs with a safe interface to GCP and Azure:
a guarded gcloud/az command gateway plus storage and compute helpers.
"""

__version__ = "1.0.0"
