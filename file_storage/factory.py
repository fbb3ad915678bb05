"""
Storage Factory

Builds backend adapters from ``StorageConfig`` and facades from
``StorageSettings``.
"""

import re
import uuid
from typing import Optional

from .config.loguru_config import setup_logging
from .config.settings import StorageSettings, get_settings
from .facade import FileStorage
from .interfaces.storage_interface import FileStorageInterface, StorageConfig, StorageType


def ephemeral_root_name(prefix: str = "tmp") -> str:
    """
    Unique root name that is also a valid Azure share name (lowercase letters,
    digits and single hyphens, at most 63 characters).
    """
    prefix = re.sub(r"[^a-z0-9]+", "-", prefix.lower()).strip("-")[:26].rstrip("-")
    name = str(uuid.uuid4())
    return f"{prefix}-{name}" if prefix else name


def create_storage_client(config: StorageConfig) -> FileStorageInterface:
    """
    Create the adapter for ``config.provider``.

    Backend modules are imported lazily so an unused backend's SDK is never
    loaded.
    """
    provider = StorageType(config.provider)
    if provider == StorageType.AZURE_FILE:
        from .implementations.azure_file_client import AzureFileShareClient
        return AzureFileShareClient(config)
    if provider == StorageType.LOCAL:
        from .implementations.local_client import LocalStorageClient
        return LocalStorageClient(config)
    if provider == StorageType.MEMORY:
        from .implementations.memory_client import MemoryStorageClient
        return MemoryStorageClient(config)
    raise ValueError(f"Unsupported storage provider: {provider}")


def create_file_storage(
    settings: Optional[StorageSettings] = None,
    ephemeral_root: Optional[bool] = None
) -> FileStorage:
    """
    Create an unopened ``FileStorage`` from settings.

    With an ephemeral root, a fresh uniquely named root is used and removed
    again when the handle is released. Logging is left to the application
    (see ``configure_logging``).
    """
    settings = settings or get_settings()
    if ephemeral_root is None:
        ephemeral_root = settings.ephemeral_root

    root_name = ephemeral_root_name(settings.root_name) if ephemeral_root else None
    client = create_storage_client(settings.to_storage_config(root_name=root_name))
    return FileStorage(client, ephemeral_root=ephemeral_root)


def configure_logging(settings: Optional[StorageSettings] = None) -> None:
    """
    Apply the logging preset named by ``settings.environment``.

    Meant for applications that let this package own logging; it replaces
    every loguru sink already installed.
    """
    settings = settings or get_settings()
    setup_logging(settings.environment, settings.log_dir, settings.log_level)
