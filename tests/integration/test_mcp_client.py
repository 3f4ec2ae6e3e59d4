#!/usr/bin/env python3
"""
In-memory MCP tests with fastmcp.Client.

Exercises the FastMCP registration of router tools without a network
transport.
"""

import json

import pytest
from fastmcp import Client

from cloud_mcp.config import CloudMCPServerConfig
from cloud_mcp.executor import CommandExecutor, CommandValidator, Provider
from cloud_mcp.server import create_server
from cloud_mcp.tools import ToolRouter, ToolServices

from fakes import FakeClientFactory


@pytest.fixture
def clients() -> FakeClientFactory:
    return FakeClientFactory()


@pytest.fixture
def router(clients: FakeClientFactory) -> ToolRouter:
    executor = CommandExecutor(
        CommandValidator(), binaries={Provider.GCP: "echo", Provider.AZURE: "echo"}
    )
    return ToolRouter(ToolServices(executor=executor, clients=clients))


@pytest.fixture
def mcp(router: ToolRouter):
    return create_server(CloudMCPServerConfig(), router=router)


class TestToolListing:
    @pytest.mark.asyncio
    async def test_all_tools_registered(self, mcp):
        async with Client(mcp) as client:
            tools = await client.list_tools()

        names = [tool.name for tool in tools]
        assert len(names) == 17
        assert "gcp_modify_gce_instance" in names
        assert "azure_read_blob_content" in names

    @pytest.mark.asyncio
    async def test_schema_and_annotations(self, mcp):
        async with Client(mcp) as client:
            tools = {tool.name: tool for tool in await client.list_tools()}

        assert tools["gcp_read_object_content"].inputSchema["required"] == [
            "bucketName",
            "objectName",
        ]
        assert tools["gcp_list_buckets"].annotations.readOnlyHint is True
        assert tools["gcp_stop_gce_instance"].annotations.readOnlyHint is False


class TestToolCalls:
    @pytest.mark.asyncio
    async def test_successful_call(self, mcp):
        async with Client(mcp) as client:
            result = await client.call_tool_mcp(
                "gcp_run_gcloud_command", {"command": "compute regions list"}
            )

        assert result.isError is False
        payload = json.loads(result.content[0].text)
        assert payload["exitCode"] == 0
        assert payload["stdout"].strip() == "compute regions list"

    @pytest.mark.asyncio
    async def test_error_envelope_becomes_is_error(self, mcp):
        async with Client(mcp) as client:
            result = await client.call_tool_mcp(
                "azure_run_az_command", {"command": "account show"}
            )

        assert result.isError is True
        assert result.content[0].text == (
            "Error: Command blocked: account commands are not allowed for security reasons"
        )

    @pytest.mark.asyncio
    async def test_storage_read(self, mcp, clients: FakeClientFactory):
        service = clients.blob_service_client("acct")
        service.add_blob("docs", "hello.txt", b"hello from blob")

        async with Client(mcp) as client:
            result = await client.call_tool_mcp(
                "azure_read_blob_content",
                {"accountName": "acct", "containerName": "docs", "blobName": "hello.txt"},
            )

        assert result.isError is False
        assert result.content[0].text == "hello from blob"

    @pytest.mark.asyncio
    async def test_failed_command_is_error(self, mcp):
        executor = CommandExecutor(
            CommandValidator(), binaries={Provider.GCP: "false", Provider.AZURE: "false"}
        )
        router = ToolRouter(ToolServices(executor=executor, clients=FakeClientFactory()))
        server = create_server(CloudMCPServerConfig(), router=router)

        async with Client(server) as client:
            result = await client.call_tool_mcp(
                "gcp_start_gce_instance", {"instance": "web-1", "zone": "us-east1-b"}
            )

        assert result.isError is True
        payload = json.loads(result.content[0].text)
        assert payload["exitCode"] == 1


class TestArgumentErrors:
    """MCP calls report argument errors with the router's messages."""

    @pytest.mark.asyncio
    async def test_missing_bucket_name(self, mcp):
        async with Client(mcp) as client:
            result = await client.call_tool_mcp("gcp_list_objects", {})

        assert result.isError is True
        assert result.content[0].text == "Error: Bucket name is required"

    @pytest.mark.asyncio
    async def test_missing_command(self, mcp):
        async with Client(mcp) as client:
            result = await client.call_tool_mcp("azure_run_az_command", {})

        assert result.isError is True
        assert result.content[0].text == "Error: Command is required"

    @pytest.mark.asyncio
    async def test_wrong_argument_type(self, mcp):
        async with Client(mcp) as client:
            result = await client.call_tool_mcp("gcp_run_gcloud_command", {"command": 7})

        assert result.isError is True
        assert result.content[0].text == "Error: Command must be a string"

    @pytest.mark.asyncio
    async def test_blocked_gcloud_command(self, mcp):
        async with Client(mcp) as client:
            result = await client.call_tool_mcp("gcp_run_gcloud_command", {"command": "auth list"})

        assert result.isError is True
        assert result.content[0].text == (
            "Error: Command blocked: auth commands are not allowed for security reasons"
        )

    @pytest.mark.asyncio
    async def test_unknown_operation(self, mcp):
        async with Client(mcp) as client:
            result = await client.call_tool_mcp("gcp_delete_everything", {})

        assert result.isError is True
        assert result.content[0].text == "Error: Unknown GCP tool: gcp_delete_everything"

    @pytest.mark.asyncio
    async def test_rejected_calls_are_counted(self, mcp, router: ToolRouter):
        async with Client(mcp) as client:
            await client.call_tool_mcp("gcp_list_objects", {})
            await client.call_tool_mcp("gcp_run_gcloud_command", {"command": "auth list"})

        assert router.metrics.tool_calls_total == 2
        assert router.metrics.tool_calls_error == 1
        assert router.metrics.tool_calls_blocked == 1
        assert router.metrics.tool_counts["gcp_list_objects"] == 1
