# tools/gcp.py
"""
GCP tools: gcloud pass-through, Cloud Storage reads and Compute Engine lifecycle.
"""

import json
from itertools import islice
from typing import Any

from cloud_mcp.executor import ExecutionResult, Provider
from cloud_mcp.tools.base import (
    ArgumentError,
    ToolResponse,
    ToolServices,
    ToolSpec,
    call_collaborator,
    object_schema,
    optional_mapping,
    optional_positive_int,
    optional_str,
    require_str,
)
from cloud_mcp.utils import get_logger

logger = get_logger(__name__)


def _string(description: str) -> dict[str, str]:
    return {"type": "string", "description": description}


def _number(description: str) -> dict[str, str]:
    return {"type": "number", "description": description}


PROJECT_ID = _string("Optional GCP project ID")
BUCKET_NAME = _string("Name of the GCS bucket")
OBJECT_NAME = _string("Name of the object in the bucket")
INSTANCE = _string("Instance name")
ZONE = _string("Zone where the instance is located")


# =============================================================================
# gcloud pass-through
# =============================================================================
async def run_gcloud_command(services: ToolServices, args: dict[str, Any]) -> ToolResponse:
    """Execute a caller-supplied gcloud sub-command."""
    command = require_str(args, "command", "Command")
    project_id = optional_str(args, "projectId")

    result = await services.executor.execute_gcp(command, project_id)
    return ToolResponse.from_execution(result)


# =============================================================================
# Cloud Storage
# =============================================================================
async def list_buckets(services: ToolServices, args: dict[str, Any]) -> ToolResponse:
    """List buckets of a project, stopping after maxResults."""
    project_id = optional_str(args, "projectId")
    max_results = optional_positive_int(
        args, "maxResults", services.storage.default_max_results
    )

    def _list() -> list[dict[str, Any]]:
        client = services.clients.storage_client(project_id)
        buckets = client.list_buckets(max_results=max_results)
        return [
            {
                "name": bucket.name,
                "location": bucket.location,
                "storageClass": bucket.storage_class,
                "created": bucket.time_created,
            }
            for bucket in islice(buckets, max_results)
        ]

    bucket_list = await call_collaborator("list buckets", _list)
    return ToolResponse.from_json(bucket_list)


async def list_objects(services: ToolServices, args: dict[str, Any]) -> ToolResponse:
    """List objects in a bucket, optionally under a prefix."""
    bucket_name = require_str(args, "bucketName", "Bucket name")
    prefix = optional_str(args, "prefix")
    max_results = optional_positive_int(
        args, "maxResults", services.storage.default_max_results
    )

    def _list() -> list[dict[str, Any]]:
        client = services.clients.storage_client()
        blobs = client.list_blobs(bucket_name, prefix=prefix, max_results=max_results)
        return [
            {
                "name": blob.name,
                "size": blob.size,
                "contentType": blob.content_type,
                "updated": blob.updated,
            }
            for blob in islice(blobs, max_results)
        ]

    object_list = await call_collaborator("list objects", _list)
    return ToolResponse.from_json(object_list)


async def read_object_content(services: ToolServices, args: dict[str, Any]) -> ToolResponse:
    """Read up to maxBytes of an object as UTF-8 text."""
    bucket_name = require_str(args, "bucketName", "Bucket name")
    object_name = require_str(args, "objectName", "Object name")
    max_bytes = optional_positive_int(args, "maxBytes", services.storage.default_max_bytes)

    def _read() -> bytes:
        client = services.clients.storage_client()
        blob = client.bucket(bucket_name).blob(object_name)
        return blob.download_as_bytes(start=0, end=max_bytes - 1)

    data = await call_collaborator("read object", _read)
    return ToolResponse.from_text(data.decode("utf-8", errors="replace"))


async def get_object_metadata(services: ToolServices, args: dict[str, Any]) -> ToolResponse:
    """Fetch the metadata resource of an object."""
    bucket_name = require_str(args, "bucketName", "Bucket name")
    object_name = require_str(args, "objectName", "Object name")

    def _fetch() -> dict[str, Any]:
        client = services.clients.storage_client()
        blob = client.bucket(bucket_name).get_blob(object_name)
        if blob is None:
            raise LookupError(f"No such object: {bucket_name}/{object_name}")
        return {
            "name": blob.name,
            "bucket": bucket_name,
            "id": blob.id,
            "size": blob.size,
            "contentType": blob.content_type,
            "contentEncoding": blob.content_encoding,
            "cacheControl": blob.cache_control,
            "storageClass": blob.storage_class,
            "md5Hash": blob.md5_hash,
            "crc32c": blob.crc32c,
            "etag": blob.etag,
            "generation": blob.generation,
            "metageneration": blob.metageneration,
            "timeCreated": blob.time_created,
            "updated": blob.updated,
            "metadata": blob.metadata or {},
        }

    metadata = await call_collaborator("get object metadata", _fetch)
    return ToolResponse.from_json(metadata)


# =============================================================================
# Compute Engine
# =============================================================================
def _parsed_output(result: ExecutionResult, empty: Any, fallback: str) -> ToolResponse:
    """
    Re-serialize gcloud JSON output.

    Empty stdout parses as ``empty``, unless the command failed, in which
    case stderr is returned. Unparsable stdout is returned as-is and always
    marked as an error.
    """
    if not result.success and not result.stdout.strip():
        return ToolResponse.from_text(result.stderr or fallback, is_error=True)
    try:
        data = json.loads(result.stdout) if result.stdout.strip() else empty
    except json.JSONDecodeError:
        return ToolResponse.from_text(result.stdout or result.stderr or fallback, is_error=True)
    return ToolResponse.from_json(data, is_error=not result.success)


def _instance_args(args: dict[str, Any]) -> tuple[str, str]:
    instance = require_str(args, "instance", "Instance name")
    zone = require_str(args, "zone", "Zone")
    return instance, zone


async def list_gce_instances(services: ToolServices, args: dict[str, Any]) -> ToolResponse:
    project_id = optional_str(args, "projectId")
    zone = optional_str(args, "zone")
    status = optional_str(args, "status")

    command = "compute instances list"
    if zone:
        command += f" --zones={zone}"
    if status:
        command += f' --filter="status:{status}"'
    command += " --format=json"

    result = await services.executor.execute_gcp(command, project_id)
    return _parsed_output(result, [], "Failed to parse instance list")


async def _instance_action(
    services: ToolServices, args: dict[str, Any], action: str
) -> ToolResponse:
    instance, zone = _instance_args(args)
    project_id = optional_str(args, "projectId")

    result = await services.executor.execute_gcp(
        f"compute instances {action} {instance} --zone={zone}", project_id
    )
    return ToolResponse.from_execution(result)


async def start_gce_instance(services: ToolServices, args: dict[str, Any]) -> ToolResponse:
    return await _instance_action(services, args, "start")


async def stop_gce_instance(services: ToolServices, args: dict[str, Any]) -> ToolResponse:
    return await _instance_action(services, args, "stop")


async def restart_gce_instance(services: ToolServices, args: dict[str, Any]) -> ToolResponse:
    # gcloud has no "restart"; reset is a hard restart.
    return await _instance_action(services, args, "reset")


async def get_gce_instance_info(services: ToolServices, args: dict[str, Any]) -> ToolResponse:
    instance, zone = _instance_args(args)
    project_id = optional_str(args, "projectId")

    result = await services.executor.execute_gcp(
        f"compute instances describe {instance} --zone={zone} --format=json", project_id
    )
    return _parsed_output(result, {}, "Failed to parse instance info")


async def modify_gce_instance(services: ToolServices, args: dict[str, Any]) -> ToolResponse:
    """
    Change machine type and/or labels of an instance.

    Steps run in order and are not rolled back: a later failure leaves
    earlier changes applied. The response is an error if any step failed.
    """
    instance, zone = _instance_args(args)
    project_id = optional_str(args, "projectId")
    machine_type = optional_str(args, "machineType")
    labels = optional_mapping(args, "labels")

    commands: list[str] = []
    if machine_type:
        commands.append(
            f"compute instances set-machine-type {instance} --zone={zone} "
            f"--machine-type={machine_type}"
        )
    if labels:
        label_str = ",".join(f"{key}={value}" for key, value in labels.items())
        commands.append(
            f"compute instances add-labels {instance} --zone={zone} --labels={label_str}"
        )

    if not commands:
        raise ArgumentError("Either machineType or labels must be provided")

    results: list[ExecutionResult] = []
    for command in commands:
        results.append(await services.executor.execute_gcp(command, project_id))

    has_error = any(not r.success for r in results)
    if has_error:
        logger.warning("Modify of instance %s had failed steps", instance)

    combined_output = "\n\n".join(
        f"Operation {i}:\n{r.stdout}\n{r.stderr}" for i, r in enumerate(results, start=1)
    )
    return ToolResponse.from_text(combined_output, is_error=has_error)


# =============================================================================
# Catalogue
# =============================================================================
GCP_TOOLS: tuple[ToolSpec, ...] = (
    ToolSpec(
        name="gcp_run_gcloud_command",
        description=(
            "Execute a gcloud command safely with security restrictions. "
            "Supports project-specific commands."
        ),
        provider=Provider.GCP,
        handler=run_gcloud_command,
        input_schema=object_schema(
            {
                "command": _string(
                    'The gcloud command to execute (without the "gcloud" prefix)'
                ),
                "projectId": _string("Optional GCP project ID to use for the command"),
            },
            required=("command",),
        ),
        read_only=False,
    ),
    ToolSpec(
        name="gcp_list_buckets",
        description="List all GCS buckets in a project",
        provider=Provider.GCP,
        handler=list_buckets,
        input_schema=object_schema(
            {
                "projectId": _string("Optional GCP project ID. Uses default if not provided."),
                "maxResults": _number("Maximum number of buckets to return (default: 100)"),
            }
        ),
    ),
    ToolSpec(
        name="gcp_list_objects",
        description="List objects in a GCS bucket with optional prefix filtering",
        provider=Provider.GCP,
        handler=list_objects,
        input_schema=object_schema(
            {
                "bucketName": BUCKET_NAME,
                "prefix": _string("Optional prefix to filter objects"),
                "maxResults": _number("Maximum number of objects to return (default: 100)"),
            },
            required=("bucketName",),
        ),
    ),
    ToolSpec(
        name="gcp_read_object_content",
        description="Read the content of a GCS object",
        provider=Provider.GCP,
        handler=read_object_content,
        input_schema=object_schema(
            {
                "bucketName": BUCKET_NAME,
                "objectName": OBJECT_NAME,
                "maxBytes": _number("Maximum bytes to read (default: 1MB)"),
            },
            required=("bucketName", "objectName"),
        ),
    ),
    ToolSpec(
        name="gcp_get_object_metadata",
        description="Get metadata for a GCS object",
        provider=Provider.GCP,
        handler=get_object_metadata,
        input_schema=object_schema(
            {"bucketName": BUCKET_NAME, "objectName": OBJECT_NAME},
            required=("bucketName", "objectName"),
        ),
    ),
    ToolSpec(
        name="gcp_list_gce_instances",
        description="List Google Compute Engine instances",
        provider=Provider.GCP,
        handler=list_gce_instances,
        input_schema=object_schema(
            {
                "projectId": PROJECT_ID,
                "zone": _string("Zone filter (optional)"),
                "status": _string("Status filter: RUNNING, STOPPED, etc. (optional)"),
            }
        ),
    ),
    ToolSpec(
        name="gcp_start_gce_instance",
        description="Start a GCE instance",
        provider=Provider.GCP,
        handler=start_gce_instance,
        input_schema=object_schema(
            {"instance": INSTANCE, "zone": ZONE, "projectId": PROJECT_ID},
            required=("instance", "zone"),
        ),
        read_only=False,
    ),
    ToolSpec(
        name="gcp_stop_gce_instance",
        description="Stop a GCE instance",
        provider=Provider.GCP,
        handler=stop_gce_instance,
        input_schema=object_schema(
            {"instance": INSTANCE, "zone": ZONE, "projectId": PROJECT_ID},
            required=("instance", "zone"),
        ),
        read_only=False,
    ),
    ToolSpec(
        name="gcp_restart_gce_instance",
        description="Restart a GCE instance",
        provider=Provider.GCP,
        handler=restart_gce_instance,
        input_schema=object_schema(
            {"instance": INSTANCE, "zone": ZONE, "projectId": PROJECT_ID},
            required=("instance", "zone"),
        ),
        read_only=False,
    ),
    ToolSpec(
        name="gcp_get_gce_instance_info",
        description="Get detailed information about a GCE instance",
        provider=Provider.GCP,
        handler=get_gce_instance_info,
        input_schema=object_schema(
            {"instance": INSTANCE, "zone": ZONE, "projectId": PROJECT_ID},
            required=("instance", "zone"),
        ),
    ),
    ToolSpec(
        name="gcp_modify_gce_instance",
        description="Modify GCE instance properties (machine type, labels, etc.)",
        provider=Provider.GCP,
        handler=modify_gce_instance,
        input_schema=object_schema(
            {
                "instance": INSTANCE,
                "zone": ZONE,
                "machineType": _string("New machine type (optional)"),
                "labels": {"type": "object", "description": "Labels to add/update (optional)"},
                "projectId": PROJECT_ID,
            },
            required=("instance", "zone"),
        ),
        read_only=False,
    ),
)
