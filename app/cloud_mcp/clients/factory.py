"""
Cloud SDK client factory.

Every storage handler obtains its SDK client here. Clients are created
lazily on first use and cached per scope key (GCP project, Azure account
and key). Each cache holds at most ``max_clients`` entries and evicts the
least recently used one. SDK calls run in worker threads, hence the lock.
"""

import threading
from collections import OrderedDict
from typing import Any, Callable, Hashable, Optional

from cloud_mcp.utils.logging import get_logger

logger = get_logger(__name__)

AZURE_BLOB_URL_TEMPLATE = "https://{account}.blob.core.windows.net"
DEFAULT_MAX_CLIENTS = 32


class CloudClientFactory:
    """
    Builds and caches Google Cloud Storage and Azure Blob clients.

    Subclasses (or tests) can override the ``_create_*`` hooks to supply
    other client implementations.
    """

    def __init__(self, max_clients: int = DEFAULT_MAX_CLIENTS):
        if max_clients < 1:
            raise ValueError("max_clients must be at least 1")
        self.max_clients = max_clients
        self._lock = threading.Lock()
        self._storage_clients: OrderedDict[Optional[str], Any] = OrderedDict()
        self._blob_clients: OrderedDict[tuple[str, Optional[str]], Any] = OrderedDict()
        self._azure_credential: Any = None

    def _cached(
        self,
        cache: OrderedDict,
        key: Hashable,
        create: Callable[[], Any],
    ) -> Any:
        # Called with the lock held.
        client = cache.get(key)
        if client is not None:
            cache.move_to_end(key)
            return client

        client = create()
        cache[key] = client
        if len(cache) > self.max_clients:
            cache.popitem(last=False)
        return client

    def storage_client(self, project_id: Optional[str] = None) -> Any:
        """
        Get a google.cloud.storage.Client for a project.

        Args:
            project_id: GCP project, or None for the environment default

        Returns:
            Cached storage client
        """
        def create() -> Any:
            logger.debug("Creating GCS client (project=%s)", project_id or "default")
            return self._create_storage_client(project_id)

        with self._lock:
            return self._cached(self._storage_clients, project_id, create)

    def blob_service_client(self, account_name: str, account_key: Optional[str] = None) -> Any:
        """
        Get an azure.storage.blob.BlobServiceClient for a storage account.

        Args:
            account_name: Storage account name
            account_key: Optional shared key; DefaultAzureCredential is used otherwise

        Returns:
            Cached blob service client
        """
        def create() -> Any:
            logger.debug(
                "Creating blob service client (account=%s, auth=%s)",
                account_name,
                "shared-key" if account_key else "default-credential",
            )
            return self._create_blob_service_client(account_name, account_key)

        with self._lock:
            return self._cached(self._blob_clients, (account_name, account_key), create)

    def _create_storage_client(self, project_id: Optional[str]) -> Any:
        from google.cloud import storage

        if project_id:
            return storage.Client(project=project_id)
        return storage.Client()

    def _create_blob_service_client(self, account_name: str, account_key: Optional[str]) -> Any:
        from azure.storage.blob import BlobServiceClient

        account_url = AZURE_BLOB_URL_TEMPLATE.format(account=account_name)
        if account_key:
            credential: Any = {"account_name": account_name, "account_key": account_key}
        else:
            credential = self._default_azure_credential()
        return BlobServiceClient(account_url, credential=credential)

    def _default_azure_credential(self) -> Any:
        # Called with the lock held.
        if self._azure_credential is None:
            from azure.identity import DefaultAzureCredential

            self._azure_credential = DefaultAzureCredential()
        return self._azure_credential
