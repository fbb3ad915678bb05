"""
File Storage Interface Abstract Class

This module defines the abstract interface for hierarchical file storage
services. All file storage implementations must inherit from this base class.
"""

import asyncio
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterator, Optional, Tuple

from pydantic import BaseModel, Field

from ..config.loguru_config import get_logger
from ..streams import FileContent, FileStream

logger = get_logger(__name__)


class StorageType(str, Enum):
    """Storage backend types."""
    AZURE_FILE = "azure_file"
    LOCAL = "local"
    MEMORY = "memory"


class StorageErrorKind(str, Enum):
    """Closed set of failure kinds exposed by every backend."""
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    BACKEND_UNAVAILABLE = "backend_unavailable"
    INVALID_PATH = "invalid_path"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class FileInfo:
    """Result of querying a single path."""
    name: str
    path: str
    exists: bool
    is_directory: bool = False
    length: int = 0
    last_modified: Optional[datetime] = None

    @classmethod
    def not_found(cls, path: str) -> "FileInfo":
        """Build the value returned for a path that does not exist."""
        return cls(name=path.rsplit("/", 1)[-1], path=path, exists=False)


@dataclass(frozen=True)
class DirectoryContents:
    """Snapshot of a directory listing.

    ``exists`` reports whether the directory itself exists, independent of
    whether it has entries.
    """
    path: str
    exists: bool
    entries: Tuple[FileInfo, ...] = field(default_factory=tuple)

    @classmethod
    def not_found(cls, path: str) -> "DirectoryContents":
        return cls(path=path, exists=False)

    def __iter__(self) -> Iterator[FileInfo]:
        return iter(self.entries)

    def __len__(self) -> int:
        return len(self.entries)


class StorageConfig(BaseModel):
    """Storage configuration model."""
    provider: StorageType = Field(default=StorageType.AZURE_FILE, description="Storage backend")
    root_name: str = Field(description="Share or root directory name")
    connection_string: Optional[str] = Field(default=None, description="Backend connection string")
    account_url: Optional[str] = Field(default=None, description="Backend account URL")
    credential: Optional[Any] = Field(default=None, description="Credential used with account_url")

    # Connection settings
    timeout: float = Field(default=30, gt=0, description="Per-operation timeout in seconds")
    copy_poll_interval: float = Field(default=0.5, gt=0, description="Server-side copy poll interval in seconds")

    # Semantics
    overwrite_existing: bool = Field(default=True, description="Copy/rename may replace an existing target")
    native_rename: bool = Field(default=True, description="Use the backend rename primitive when it has one")
    create_root_if_missing: bool = Field(default=True, description="Create the share/root on connect")

    # Performance settings
    spool_max_size: int = Field(default=8 * 1024 * 1024, description="Upload bytes kept in memory before spooling (8MB)")
    read_chunk_size: int = Field(default=4 * 1024 * 1024, description="Chunk size for streamed reads (4MB)")

    # Custom options
    custom_options: Optional[Dict[str, Any]] = None


class FileStorageInterface(ABC):
    """
    Abstract interface for hierarchical file storage services.

    Implementations translate the abstract operations into backend-native
    calls and every backend-native failure into a ``StorageException``.
    All paths received here are already canonical (see ``file_storage.paths``).
    """

    def __init__(self, config: StorageConfig):
        """Initialize the storage client with configuration."""
        self.config = config
        self.provider_name = StorageType(config.provider).value
        self.root_name = config.root_name
        self.timeout = config.timeout
        self._connected = False

    @property
    def is_connected(self) -> bool:
        return self._connected

    @abstractmethod
    async def connect(self) -> bool:
        """
        Connect to the storage service.

        Returns:
            bool: True if connection successful

        Raises:
            StorageException: If connection fails
        """
        pass

    @abstractmethod
    async def disconnect(self) -> None:
        """Disconnect from the storage service."""
        pass

    @abstractmethod
    async def create_root(self) -> bool:
        """
        Create the storage root (share, container or base directory) if absent.

        Returns:
            bool: True if the root was created, False if it already existed
        """
        pass

    @abstractmethod
    async def delete_root(self) -> bool:
        """
        Delete the storage root and everything below it.

        Returns:
            bool: True if something was deleted, False if the root was absent
        """
        pass

    @abstractmethod
    async def root_exists(self) -> bool:
        """Check whether the storage root exists."""
        pass

    @abstractmethod
    async def copy(self, source: str, target: str) -> None:
        """
        Copy a file.

        Missing parent directories of ``target`` are created. An existing
        ``target`` is overwritten unless ``overwrite_existing`` is off.

        Raises:
            NotFoundException: If ``source`` is not an existing file
            AlreadyExistsException: If ``target`` exists and overwriting is disabled
        """
        pass

    @abstractmethod
    async def delete(self, path: str) -> None:
        """
        Delete a file.

        Deleting a file that does not exist succeeds.

        Raises:
            InvalidPathException: If ``path`` is a directory
        """
        pass

    async def rename(self, source: str, target: str) -> None:
        """
        Rename a file as copy followed by delete.

        This is not atomic: a failure or cancellation after the copy leaves
        both ``source`` and ``target`` in place. Backends that own a real
        rename primitive override this.

        Raises:
            NotFoundException: If ``source`` is not an existing file
        """
        await self.copy(source, target)
        await self.delete(source)
        logger.debug(f"Renamed {source} to {target} via copy and delete on {self.provider_name}")

    @abstractmethod
    async def get_stream(self, path: str) -> FileStream:
        """
        Open a file for reading.

        The caller owns the returned stream and must close it, preferably
        with ``async with``.

        Raises:
            NotFoundException: If the file does not exist
        """
        pass

    @abstractmethod
    async def save(self, path: str, content: FileContent) -> None:
        """
        Write a file, creating missing parent directories and replacing any
        existing content. ``content`` is consumed once and never rewound.
        """
        pass

    @abstractmethod
    async def stat(self, path: str) -> FileInfo:
        """
        Describe a path. Never raises for a missing path; returns
        ``FileInfo(exists=False)`` instead.
        """
        pass

    @abstractmethod
    async def list(self, path: str) -> DirectoryContents:
        """
        List a directory. Never raises for a missing directory; returns
        ``DirectoryContents(exists=False)`` instead.
        """
        pass

    @abstractmethod
    def _translate_error(self, error: Exception, operation: str, path: str) -> "StorageException":
        """Map a backend-native failure onto a ``StorageException``."""
        pass

    async def _guard(self, operation: str, path: str, awaitable, require_connection: bool = True):
        """
        Run a backend call under the configured timeout and translate its
        failures. Cancellation propagates untouched.
        """
        if require_connection and not self._connected:
            if asyncio.iscoroutine(awaitable):
                awaitable.close()
            raise BackendUnavailableException(
                f"Not connected to {self.provider_name} storage",
                provider=self.provider_name,
                path=path
            )
        try:
            return await asyncio.wait_for(awaitable, timeout=self.timeout)
        except StorageException:
            raise
        except asyncio.TimeoutError as e:
            error_msg = f"{operation} on '{path}' timed out after {self.timeout}s"
            logger.error(error_msg)
            raise BackendUnavailableException(
                error_msg, provider=self.provider_name, path=path, detail="timeout"
            ) from e
        except Exception as e:
            translated = self._translate_error(e, operation, path)
            if translated.kind == StorageErrorKind.NOT_FOUND:
                logger.debug(f"{operation} on '{path}': {translated}")
            else:
                logger.error(f"{operation} on '{path}' failed: {translated}")
            raise translated from e

    async def _check_overwrite(self, target: str) -> None:
        """Enforce the overwrite policy for copy and rename targets."""
        if self.config.overwrite_existing:
            return
        if (await self.stat(target)).exists:
            raise AlreadyExistsException(
                f"Target '{target}' already exists",
                provider=self.provider_name,
                path=target
            )

    async def health_check(self) -> Dict[str, Any]:
        """
        Perform a health check on the storage service.

        Returns:
            Dict[str, Any]: Health check result
        """
        try:
            test_path = f"health_check_{uuid.uuid4()}.txt"
            test_data = b"Storage health check"

            start_time = time.time()
            await self.save(test_path, test_data)
            upload_time = (time.time() - start_time) * 1000

            start_time = time.time()
            async with await self.get_stream(test_path) as stream:
                if await stream.read() != test_data:
                    raise UnknownStorageException(
                        "Health check content mismatch", provider=self.provider_name, path=test_path
                    )
            download_time = (time.time() - start_time) * 1000

            await self.delete(test_path)

            return {
                "status": "healthy",
                "provider": self.provider_name,
                "root": self.root_name,
                "upload_time_ms": upload_time,
                "download_time_ms": download_time,
                "total_time_ms": upload_time + download_time
            }
        except Exception as e:
            return {
                "status": "unhealthy",
                "provider": self.provider_name,
                "root": self.root_name,
                "error": str(e)
            }

    def get_provider_info(self) -> Dict[str, Any]:
        """
        Get information about the storage provider.

        Returns:
            Dict[str, Any]: Provider information
        """
        return {
            "provider": self.provider_name,
            "root": self.root_name,
            "connected": self._connected,
            "config": {
                "timeout": self.timeout,
                "overwrite_existing": self.config.overwrite_existing,
                "native_rename": self.config.native_rename,
                "create_root_if_missing": self.config.create_root_if_missing,
            }
        }


class StorageException(Exception):
    """Exception raised by storage services."""

    kind: StorageErrorKind = StorageErrorKind.UNKNOWN

    def __init__(
        self,
        message: str,
        provider: str = None,
        path: str = None,
        detail: str = None
    ):
        super().__init__(message)
        self.provider = provider
        self.path = path
        self.detail = detail


class NotFoundException(StorageException):
    """Exception raised when a required file does not exist."""
    kind = StorageErrorKind.NOT_FOUND


class AlreadyExistsException(StorageException):
    """Exception raised when a resource that must be new already exists."""
    kind = StorageErrorKind.ALREADY_EXISTS


class BackendUnavailableException(StorageException):
    """Exception raised when the backend cannot be reached or refuses service."""
    kind = StorageErrorKind.BACKEND_UNAVAILABLE


class InvalidPathException(StorageException):
    """Exception raised when a path is malformed or of the wrong type."""
    kind = StorageErrorKind.INVALID_PATH


class UnknownStorageException(StorageException):
    """Exception raised for backend failures outside the known kinds."""
    kind = StorageErrorKind.UNKNOWN


_EXCEPTIONS_BY_KIND = {
    StorageErrorKind.NOT_FOUND: NotFoundException,
    StorageErrorKind.ALREADY_EXISTS: AlreadyExistsException,
    StorageErrorKind.BACKEND_UNAVAILABLE: BackendUnavailableException,
    StorageErrorKind.INVALID_PATH: InvalidPathException,
    StorageErrorKind.UNKNOWN: UnknownStorageException,
}


def storage_exception(
    kind: StorageErrorKind,
    message: str,
    provider: str = None,
    path: str = None,
    detail: str = None
) -> StorageException:
    """Build the exception class matching ``kind``."""
    return _EXCEPTIONS_BY_KIND[kind](message, provider=provider, path=path, detail=detail)
