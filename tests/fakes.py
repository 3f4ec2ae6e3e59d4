"""
Fake collaborators shared by the test suites.

SDK clients are replaced through CloudClientFactory hooks; CLI calls are
stubbed by FakeExecutor.
"""

import itertools
from types import SimpleNamespace
from typing import Any, Optional

from cloud_mcp.clients import DEFAULT_MAX_CLIENTS, CloudClientFactory
from cloud_mcp.executor import ExecutionResult, Provider


# =============================================================================
# Executor fake
# =============================================================================
class FakeExecutor:
    """Records CLI calls and replays queued results."""

    def __init__(self, *results: ExecutionResult):
        self.calls: list[tuple[Provider, str, Optional[str]]] = []
        self._results = list(results)

    def queue(self, *results: ExecutionResult) -> None:
        self._results.extend(results)

    def _next(self) -> ExecutionResult:
        if self._results:
            return self._results.pop(0)
        return ExecutionResult(stdout="", stderr="", exit_code=0)

    async def execute_gcp(self, command: str, project_id: Optional[str] = None) -> ExecutionResult:
        self.calls.append((Provider.GCP, command, project_id))
        return self._next()

    async def execute_azure(
        self, command: str, subscription_id: Optional[str] = None
    ) -> ExecutionResult:
        self.calls.append((Provider.AZURE, command, subscription_id))
        return self._next()


# =============================================================================
# Google Cloud Storage fakes
# =============================================================================
class FakeGCSBlob:
    def __init__(self, name: str, data: bytes = b"", **props: Any):
        self.name = name
        self.data = data
        self.size = props.get("size", len(data))
        self.content_type = props.get("content_type", "text/plain")
        self.updated = props.get("updated")
        self.id = props.get("id", name)
        self.content_encoding = None
        self.cache_control = None
        self.storage_class = props.get("storage_class", "STANDARD")
        self.md5_hash = props.get("md5_hash")
        self.crc32c = props.get("crc32c")
        self.etag = props.get("etag", "etag-1")
        self.generation = 1
        self.metageneration = 1
        self.time_created = props.get("time_created")
        self.metadata = props.get("metadata")
        self.download_calls: list[tuple[int, int]] = []

    def download_as_bytes(self, start: int = 0, end: Optional[int] = None) -> bytes:
        self.download_calls.append((start, end))
        stop = None if end is None else end + 1
        return self.data[start:stop]


class FakeGCSBucket:
    def __init__(self, client: "FakeStorageClient", name: str):
        self.client = client
        self.name = name

    def blob(self, name: str) -> FakeGCSBlob:
        return self.client.objects.get((self.name, name)) or FakeGCSBlob(name)

    def get_blob(self, name: str) -> Optional[FakeGCSBlob]:
        return self.client.objects.get((self.name, name))


class FakeStorageClient:
    """Subset of google.cloud.storage.Client used by the GCP tools."""

    def __init__(self, project: Optional[str] = None):
        self.project = project
        self.buckets: list[SimpleNamespace] = []
        self.objects: dict[tuple[str, str], FakeGCSBlob] = {}
        self.list_blobs_calls: list[dict[str, Any]] = []
        self.list_buckets_calls: list[dict[str, Any]] = []
        self.error: Optional[Exception] = None
        self.endless = False

    def add_object(self, bucket: str, blob: FakeGCSBlob) -> None:
        self.objects[(bucket, blob.name)] = blob

    def list_buckets(self, max_results: Optional[int] = None):
        self.list_buckets_calls.append({"max_results": max_results})
        if self.error:
            raise self.error
        if self.endless:
            return (
                SimpleNamespace(
                    name=f"bucket-{i}", location="US", storage_class="STANDARD", time_created=None
                )
                for i in itertools.count()
            )
        return iter(self.buckets)

    def list_blobs(self, bucket_name: str, prefix: Optional[str] = None, max_results=None):
        self.list_blobs_calls.append(
            {"bucket": bucket_name, "prefix": prefix, "max_results": max_results}
        )
        if self.error:
            raise self.error
        return (
            blob
            for (bucket, name), blob in self.objects.items()
            if bucket == bucket_name and (not prefix or name.startswith(prefix))
        )

    def bucket(self, name: str) -> FakeGCSBucket:
        if self.error:
            raise self.error
        return FakeGCSBucket(self, name)


# =============================================================================
# Azure Blob Storage fakes
# =============================================================================
class FakeDownloader:
    def __init__(self, data: bytes):
        self._data = data

    def readall(self) -> bytes:
        return self._data


class FakeBlobClient:
    def __init__(self, service: "FakeBlobServiceClient", container: str, blob: str):
        self.service = service
        self.container = container
        self.blob = blob

    def _item(self) -> SimpleNamespace:
        try:
            return self.service.blobs[(self.container, self.blob)]
        except KeyError:
            raise LookupError(f"The specified blob does not exist: {self.blob}") from None

    def download_blob(self, offset: int = 0, length: Optional[int] = None) -> FakeDownloader:
        self.service.download_calls.append((offset, length))
        data = self._item().data
        stop = None if length is None else offset + length
        return FakeDownloader(data[offset:stop])

    def get_blob_properties(self) -> SimpleNamespace:
        return self._item()


class FakeContainerClient:
    def __init__(self, service: "FakeBlobServiceClient", name: str):
        self.service = service
        self.name = name

    def list_blobs(self, name_starts_with: Optional[str] = None, results_per_page=None):
        self.service.list_blobs_calls.append(
            {"container": self.name, "prefix": name_starts_with, "per_page": results_per_page}
        )
        return (
            item
            for (container, name), item in self.service.blobs.items()
            if container == self.name and (not name_starts_with or name.startswith(name_starts_with))
        )


class FakeBlobServiceClient:
    """Subset of azure.storage.blob.BlobServiceClient used by the Azure tools."""

    def __init__(self, account_name: str, account_key: Optional[str] = None):
        self.account_name = account_name
        self.account_key = account_key
        self.containers: list[SimpleNamespace] = []
        self.blobs: dict[tuple[str, str], SimpleNamespace] = {}
        self.list_blobs_calls: list[dict[str, Any]] = []
        self.download_calls: list[tuple[int, Optional[int]]] = []
        self.error: Optional[Exception] = None

    def add_blob(self, container: str, name: str, data: bytes = b"", **props: Any) -> None:
        self.blobs[(container, name)] = SimpleNamespace(
            name=name,
            data=data,
            size=len(data),
            content_settings=SimpleNamespace(content_type=props.get("content_type", "text/plain")),
            last_modified=props.get("last_modified"),
            etag=props.get("etag", "0x1"),
            metadata=props.get("metadata", {}),
            blob_type="BlockBlob",
            blob_tier=props.get("blob_tier", "Hot"),
        )

    def list_containers(self, include_metadata: bool = False, results_per_page=None):
        if self.error:
            raise self.error
        return iter(self.containers)

    def get_container_client(self, container: str) -> FakeContainerClient:
        return FakeContainerClient(self, container)

    def get_blob_client(self, container: str, blob: str) -> FakeBlobClient:
        return FakeBlobClient(self, container, blob)


class FakeClientFactory(CloudClientFactory):
    """Client factory that builds fakes instead of real SDK clients."""

    def __init__(self, max_clients: int = DEFAULT_MAX_CLIENTS):
        super().__init__(max_clients)
        self.created: list[tuple[str, Any]] = []

    def _create_storage_client(self, project_id):
        self.created.append(("gcs", project_id))
        return FakeStorageClient(project_id)

    def _create_blob_service_client(self, account_name, account_key):
        self.created.append(("blob", (account_name, account_key)))
        return FakeBlobServiceClient(account_name, account_key)


