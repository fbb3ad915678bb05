"""
File Storage Facade

``FileStorage`` is the public entry point: it canonicalizes every path,
delegates to one backend adapter and owns the adapter's lifecycle.
"""

from typing import Optional

from .config.loguru_config import get_logger
from .interfaces.storage_interface import (
    BackendUnavailableException,
    DirectoryContents,
    FileInfo,
    FileStorageInterface,
)
from .paths import normalize_file_path, normalize_path
from .streams import FileContent, FileStream

logger = get_logger(__name__)


class FileStorage:
    """
    Storage handle bound to one backend root.

    Usage::

        async with FileStorage(client) as storage:
            await storage.save_file("reports/a.txt", b"hello")

    Release is idempotent. It deletes an ephemeral root this handle created
    and disconnects the backend; failures during release are logged and
    discarded so they never mask the outcome of the work done before it.
    """

    def __init__(self, backend: FileStorageInterface, *, ephemeral_root: bool = False):
        self.backend = backend
        self.ephemeral_root = ephemeral_root
        self._opened = False
        self._released = False

    @property
    def is_open(self) -> bool:
        return self._opened and not self._released

    async def open(self) -> "FileStorage":
        """Connect the backend and, for an ephemeral root, create it."""
        if self._released:
            raise BackendUnavailableException(
                "Storage handle has been released", provider=self.backend.provider_name
            )
        if self._opened:
            return self
        await self.backend.connect()
        self._opened = True
        if self.ephemeral_root:
            await self.backend.create_root()
            logger.info(f"Provisioned ephemeral root: {self.backend.root_name}")
        return self

    async def release(self) -> None:
        """Release the handle. Safe to call more than once."""
        if self._released:
            return
        self._released = True

        if self.ephemeral_root and self._opened:
            try:
                await self.backend.delete_root()
                logger.info(f"Removed ephemeral root: {self.backend.root_name}")
            except Exception as e:
                logger.warning(f"Failed to remove ephemeral root {self.backend.root_name}: {str(e)}")

        try:
            await self.backend.disconnect()
        except Exception as e:
            logger.warning(f"Failed to disconnect from {self.backend.provider_name}: {str(e)}")

    async def __aenter__(self) -> "FileStorage":
        try:
            return await self.open()
        except BaseException:
            await self.release()
            raise

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.release()

    def _check_open(self) -> None:
        if self._released:
            raise BackendUnavailableException(
                "Storage handle has been released", provider=self.backend.provider_name
            )
        if not self._opened:
            raise BackendUnavailableException(
                "Storage handle is not open", provider=self.backend.provider_name
            )

    async def copy_file(self, source: str, target: str) -> None:
        """Copy ``source`` to ``target``; raises NotFoundException for a missing source."""
        source, target = normalize_file_path(source), normalize_file_path(target)
        self._check_open()
        await self.backend.copy(source, target)

    async def delete_file(self, path: str) -> None:
        """Delete a file; deleting a missing file succeeds."""
        path = normalize_file_path(path)
        self._check_open()
        await self.backend.delete(path)

    async def rename_file(self, source: str, target: str) -> None:
        """Move ``source`` to ``target``; raises NotFoundException for a missing source."""
        source, target = normalize_file_path(source), normalize_file_path(target)
        self._check_open()
        await self.backend.rename(source, target)

    async def get_file_stream(self, path: str) -> FileStream:
        """Open a file for reading. The caller must close the stream."""
        path = normalize_file_path(path)
        self._check_open()
        return await self.backend.get_stream(path)

    async def save_file(self, path: str, content: FileContent) -> None:
        """Write a file, creating missing directories and replacing old content."""
        path = normalize_file_path(path)
        self._check_open()
        await self.backend.save(path, content)

    async def get_directory_contents(self, path: Optional[str] = None) -> DirectoryContents:
        """List a directory; ``None`` or ``""`` is the root."""
        path = normalize_path(path)
        self._check_open()
        return await self.backend.list(path)

    async def get_file_info(self, path: Optional[str] = None) -> FileInfo:
        """Describe a path; a missing path yields ``exists=False``."""
        path = normalize_path(path)
        self._check_open()
        return await self.backend.stat(path)
