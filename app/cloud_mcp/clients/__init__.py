"""
Cloud SDK clients used by the storage tools.
"""

from cloud_mcp.clients.factory import (
    AZURE_BLOB_URL_TEMPLATE,
    DEFAULT_MAX_CLIENTS,
    CloudClientFactory,
)

__all__ = [
    "AZURE_BLOB_URL_TEMPLATE",
    "DEFAULT_MAX_CLIENTS",
    "CloudClientFactory",
]
