# tools/azure.py
"""
Azure tools: az pass-through, storage account discovery and Blob Storage reads.
"""

import json
from itertools import islice
from typing import Any, Optional

from cloud_mcp.executor import Provider
from cloud_mcp.tools.base import (
    CollaboratorError,
    ToolResponse,
    ToolServices,
    ToolSpec,
    call_collaborator,
    object_schema,
    optional_positive_int,
    optional_str,
    require_str,
)


def _string(description: str) -> dict[str, str]:
    return {"type": "string", "description": description}


def _number(description: str) -> dict[str, str]:
    return {"type": "number", "description": description}


ACCOUNT_NAME = _string("Name of the Azure Storage account")
ACCOUNT_KEY = _string("Optional account key. Uses default credentials if not provided.")
CONTAINER_NAME = _string("Name of the blob container")
BLOB_NAME = _string("Name of the blob")


def _account_args(args: dict[str, Any]) -> tuple[str, Optional[str]]:
    account_name = require_str(args, "accountName", "Account name")
    account_key = optional_str(args, "accountKey")
    return account_name, account_key


# =============================================================================
# az pass-through
# =============================================================================
async def run_az_command(services: ToolServices, args: dict[str, Any]) -> ToolResponse:
    """Execute a caller-supplied az sub-command."""
    command = require_str(args, "command", "Command")
    subscription_id = optional_str(args, "subscriptionId")

    result = await services.executor.execute_azure(command, subscription_id)
    return ToolResponse.from_execution(result)


async def list_storage_accounts(services: ToolServices, args: dict[str, Any]) -> ToolResponse:
    """
    List storage accounts through the az CLI.

    Unlike the pass-through, a failed CLI call is an error, not a result.
    """
    subscription_id = optional_str(args, "subscriptionId")
    resource_group = optional_str(args, "resourceGroup")

    command = "storage account list"
    if resource_group:
        command += f" --resource-group {resource_group}"

    result = await services.executor.execute_azure(command, subscription_id)
    if not result.success:
        raise CollaboratorError(f"Failed to list storage accounts: {result.stderr}")

    try:
        accounts = json.loads(result.stdout) if result.stdout.strip() else []
    except json.JSONDecodeError as e:
        raise CollaboratorError("Failed to parse storage accounts output") from e

    return ToolResponse.from_json(accounts)


# =============================================================================
# Blob Storage
# =============================================================================
async def list_containers(services: ToolServices, args: dict[str, Any]) -> ToolResponse:
    account_name, account_key = _account_args(args)
    max_results = optional_positive_int(
        args, "maxResults", services.storage.default_max_results
    )

    def _list() -> list[dict[str, Any]]:
        blob_service = services.clients.blob_service_client(account_name, account_key)
        containers = blob_service.list_containers(
            include_metadata=True, results_per_page=max_results
        )
        return [
            {
                "name": container.name,
                "metadata": container.metadata,
                "lastModified": container.last_modified,
                "etag": container.etag,
            }
            for container in islice(containers, max_results)
        ]

    container_list = await call_collaborator("list containers", _list)
    return ToolResponse.from_json(container_list)


async def list_blobs(services: ToolServices, args: dict[str, Any]) -> ToolResponse:
    account_name, account_key = _account_args(args)
    container_name = require_str(args, "containerName", "Container name")
    prefix = optional_str(args, "prefix")
    max_results = optional_positive_int(
        args, "maxResults", services.storage.default_max_results
    )

    def _list() -> list[dict[str, Any]]:
        blob_service = services.clients.blob_service_client(account_name, account_key)
        container = blob_service.get_container_client(container_name)
        blobs = container.list_blobs(name_starts_with=prefix, results_per_page=max_results)
        return [
            {
                "name": blob.name,
                "size": blob.size,
                "contentType": blob.content_settings.content_type
                if blob.content_settings
                else None,
                "lastModified": blob.last_modified,
            }
            for blob in islice(blobs, max_results)
        ]

    blob_list = await call_collaborator("list blobs", _list)
    return ToolResponse.from_json(blob_list)


async def read_blob_content(services: ToolServices, args: dict[str, Any]) -> ToolResponse:
    """Read up to maxBytes of a blob as UTF-8 text."""
    account_name, account_key = _account_args(args)
    container_name = require_str(args, "containerName", "Container name")
    blob_name = require_str(args, "blobName", "Blob name")
    max_bytes = optional_positive_int(args, "maxBytes", services.storage.default_max_bytes)

    def _read() -> bytes:
        blob_service = services.clients.blob_service_client(account_name, account_key)
        blob = blob_service.get_blob_client(container_name, blob_name)
        return blob.download_blob(offset=0, length=max_bytes).readall()

    data = await call_collaborator("read blob", _read)
    return ToolResponse.from_text(data.decode("utf-8", errors="replace"))


async def get_blob_metadata(services: ToolServices, args: dict[str, Any]) -> ToolResponse:
    account_name, account_key = _account_args(args)
    container_name = require_str(args, "containerName", "Container name")
    blob_name = require_str(args, "blobName", "Blob name")

    def _fetch() -> dict[str, Any]:
        blob_service = services.clients.blob_service_client(account_name, account_key)
        blob = blob_service.get_blob_client(container_name, blob_name)
        properties = blob.get_blob_properties()
        content_settings = properties.content_settings
        return {
            "name": properties.name,
            "contentType": content_settings.content_type if content_settings else None,
            "contentLength": properties.size,
            "lastModified": properties.last_modified,
            "etag": properties.etag,
            "metadata": properties.metadata or {},
            "blobType": properties.blob_type,
            "accessTier": properties.blob_tier,
        }

    metadata = await call_collaborator("get blob metadata", _fetch)
    return ToolResponse.from_json(metadata)


# =============================================================================
# Catalogue
# =============================================================================
AZURE_TOOLS: tuple[ToolSpec, ...] = (
    ToolSpec(
        name="azure_run_az_command",
        description=(
            "Execute an Azure CLI command safely with security restrictions. "
            "Supports subscription-specific commands."
        ),
        provider=Provider.AZURE,
        handler=run_az_command,
        input_schema=object_schema(
            {
                "command": _string('The az command to execute (without the "az" prefix)'),
                "subscriptionId": _string(
                    "Optional Azure subscription ID to use for the command"
                ),
            },
            required=("command",),
        ),
        read_only=False,
    ),
    ToolSpec(
        name="azure_list_storage_accounts",
        description="List Azure Storage accounts",
        provider=Provider.AZURE,
        handler=list_storage_accounts,
        input_schema=object_schema(
            {
                "subscriptionId": _string("Optional Azure subscription ID"),
                "resourceGroup": _string("Optional resource group to filter by"),
            }
        ),
    ),
    ToolSpec(
        name="azure_list_containers",
        description="List blob containers in a storage account",
        provider=Provider.AZURE,
        handler=list_containers,
        input_schema=object_schema(
            {
                "accountName": ACCOUNT_NAME,
                "accountKey": ACCOUNT_KEY,
                "maxResults": _number("Maximum number of containers to return (default: 100)"),
            },
            required=("accountName",),
        ),
    ),
    ToolSpec(
        name="azure_list_blobs",
        description="List blobs in a container with optional prefix filtering",
        provider=Provider.AZURE,
        handler=list_blobs,
        input_schema=object_schema(
            {
                "accountName": ACCOUNT_NAME,
                "containerName": CONTAINER_NAME,
                "prefix": _string("Optional prefix to filter blobs"),
                "maxResults": _number("Maximum number of blobs to return (default: 100)"),
                "accountKey": ACCOUNT_KEY,
            },
            required=("accountName", "containerName"),
        ),
    ),
    ToolSpec(
        name="azure_read_blob_content",
        description="Read the content of a blob",
        provider=Provider.AZURE,
        handler=read_blob_content,
        input_schema=object_schema(
            {
                "accountName": ACCOUNT_NAME,
                "containerName": CONTAINER_NAME,
                "blobName": BLOB_NAME,
                "maxBytes": _number("Maximum bytes to read (default: 1MB)"),
                "accountKey": ACCOUNT_KEY,
            },
            required=("accountName", "containerName", "blobName"),
        ),
    ),
    ToolSpec(
        name="azure_get_blob_metadata",
        description="Get metadata and properties of a blob",
        provider=Provider.AZURE,
        handler=get_blob_metadata,
        input_schema=object_schema(
            {
                "accountName": ACCOUNT_NAME,
                "containerName": CONTAINER_NAME,
                "blobName": BLOB_NAME,
                "accountKey": ACCOUNT_KEY,
            },
            required=("accountName", "containerName", "blobName"),
        ),
    ),
)
