#!/usr/bin/env python3
"""
Integration tests for MCP server.

Tests the server as a whole - startup, probes, metrics, and the REST
tool endpoints of a running process.
"""

import json

import httpx
import pytest


class TestHealthEndpoints:
    """Test health check endpoints."""

    def test_health_endpoint_returns_200(self, client: httpx.Client):
        """Test /health endpoint returns ok status."""
        response = client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert "version" in data
        assert data["service"] == "cloud_mcp"

    def test_ready_endpoint_reports_cli_checks(self, client: httpx.Client):
        """Test /ready reports the configured CLIs (echo here)."""
        response = client.get("/ready")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert data["checks"] == {"server": True, "gcloud": True, "az": True}


class TestMetricsEndpoint:
    """Test Prometheus metrics endpoint."""

    def test_metrics_endpoint_returns_prometheus_format(self, client: httpx.Client):
        """Test /metrics endpoint returns Prometheus format."""
        response = client.get("/metrics")

        assert response.status_code == 200
        assert "text/plain" in response.headers["content-type"]

        text = response.text
        assert "cloud_mcp_info" in text
        assert "cloud_mcp_uptime_seconds" in text
        assert "cloud_mcp_tool_calls_total" in text

    def test_tool_calls_counted(self, client: httpx.Client):
        client.post("/tools/gcp_list_objects", json={})

        text = client.get("/metrics").text
        assert 'cloud_mcp_tool_calls_by_name{tool="gcp_list_objects"}' in text


class TestToolEndpoints:
    """Test REST access to tools."""

    def test_list_tools(self, client: httpx.Client):
        response = client.get("/tools")

        assert response.status_code == 200
        names = [tool["name"] for tool in response.json()["tools"]]
        assert len(names) == 17
        assert names[0] == "gcp_run_gcloud_command"
        assert names[-1] == "azure_get_blob_metadata"

    def test_run_gcloud_command(self, client: httpx.Client):
        response = client.post(
            "/tools/gcp_run_gcloud_command",
            json={"arguments": {"command": "compute zones list", "projectId": "demo"}},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["isError"] is False
        result = json.loads(data["content"][0]["text"])
        assert result["exitCode"] == 0
        assert result["stdout"].strip() == "compute zones list --project=demo"

    def test_blocked_command(self, client: httpx.Client):
        response = client.post(
            "/mcp/call",
            json={"name": "azure_run_az_command", "arguments": {"command": "login"}},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["isError"] is True
        assert "login commands are not allowed" in data["content"][0]["text"]

    def test_unknown_tool(self, client: httpx.Client):
        response = client.post("/tools/unknown_tool", json={})

        assert response.status_code == 400
        assert response.json()["content"][0]["text"] == "Error: Unknown tool: unknown_tool"


class TestServerStartup:
    """Test server startup and configuration."""

    def test_server_is_running(self, server):
        """Test that server process is running."""
        assert server.process is not None
        assert server.process.poll() is None  # Still running

    def test_server_responds_to_requests(self, client: httpx.Client):
        """Test that server responds to HTTP requests."""
        response = client.get("/health")
        assert response.status_code == 200


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
