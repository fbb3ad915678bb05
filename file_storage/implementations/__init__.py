"""
Storage Implementations

This module contains concrete implementations of the file storage interface.
The Azure client is imported on first use so the Azure SDK stays optional
for local and in-memory storage.
"""

from .local_client import LocalStorageClient
from .memory_client import MemoryStorageClient

__all__ = [
    'AzureFileShareClient',
    'LocalStorageClient',
    'MemoryStorageClient'
]


def __getattr__(name):
    if name == 'AzureFileShareClient':
        from .azure_file_client import AzureFileShareClient
        return AzureFileShareClient
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
