"""
Local File System Storage Client Implementation

This module provides a local file system storage client that implements
the FileStorageInterface abstract base class.
"""

import asyncio
import os
import shutil
import uuid
from datetime import datetime, timezone
from typing import Tuple

import aiofiles
import aiofiles.os

from ..config.loguru_config import get_logger
from ..interfaces.storage_interface import (
    DirectoryContents,
    FileInfo,
    FileStorageInterface,
    InvalidPathException,
    NotFoundException,
    StorageConfig,
    StorageErrorKind,
    StorageException,
    storage_exception,
)
from ..listing import BackendEntry, compose_directory_contents
from ..paths import ROOT_PATH, path_name, path_segments
from ..streams import AiofilesFileStream, FileContent, FileStream, iter_content

logger = get_logger(__name__)


def classify_os_error(error: Exception) -> Tuple[StorageErrorKind, str]:
    """Map a local file system failure onto a storage error kind."""
    detail = type(error).__name__
    if isinstance(error, FileNotFoundError):
        return StorageErrorKind.NOT_FOUND, detail
    if isinstance(error, FileExistsError):
        return StorageErrorKind.ALREADY_EXISTS, detail
    if isinstance(error, (IsADirectoryError, NotADirectoryError)):
        return StorageErrorKind.INVALID_PATH, detail
    if isinstance(error, OSError):
        return StorageErrorKind.BACKEND_UNAVAILABLE, detail
    return StorageErrorKind.UNKNOWN, detail


class LocalStorageClient(FileStorageInterface):
    """
    Local file system storage client implementation.

    The root is ``custom_options["base_path"]`` when given, otherwise
    ``./storage/<root_name>``.
    """

    def __init__(self, config: StorageConfig):
        """
        Initialize local storage client with configuration.

        Args:
            config: Storage configuration with local-specific settings
        """
        super().__init__(config)

        self.base_path = config.custom_options.get('base_path') if config.custom_options else None
        if not self.base_path:
            self.base_path = os.path.join(os.getcwd(), 'storage', self.root_name)
        self.base_path = os.path.abspath(os.path.expanduser(self.base_path))

    def _full_path(self, path: str) -> str:
        # Canonical paths carry no '..' segments, so joining stays below base_path.
        return os.path.join(self.base_path, *path_segments(path))

    async def connect(self) -> bool:
        """
        Connect to local storage, creating the base directory when configured to.

        Raises:
            NotFoundException: If the base directory is missing and may not be created
        """
        if self._connected:
            return True
        await self._guard("connect", ROOT_PATH, self._open_root(), require_connection=False)
        self._connected = True
        logger.info(f"Connected to local storage: {self.base_path}")
        return True

    async def _open_root(self) -> None:
        if self.config.create_root_if_missing:
            os.makedirs(self.base_path, exist_ok=True)
        elif not os.path.isdir(self.base_path):
            raise NotFoundException(
                f"Local storage root '{self.base_path}' does not exist",
                provider=self.provider_name
            )

    async def disconnect(self) -> None:
        """Disconnect from local storage service."""
        self._connected = False

    async def create_root(self) -> bool:
        return await self._guard("create_root", ROOT_PATH, self._create_root())

    async def _create_root(self) -> bool:
        if os.path.isdir(self.base_path):
            return False
        os.makedirs(self.base_path, exist_ok=True)
        logger.info(f"Created local storage root: {self.base_path}")
        return True

    async def delete_root(self) -> bool:
        return await self._guard("delete_root", ROOT_PATH, self._delete_root())

    async def _delete_root(self) -> bool:
        if not os.path.exists(self.base_path):
            return False
        shutil.rmtree(self.base_path)
        logger.info(f"Deleted local storage root: {self.base_path}")
        return True

    async def root_exists(self) -> bool:
        return await self._guard("root_exists", ROOT_PATH, self._root_exists())

    async def _root_exists(self) -> bool:
        return os.path.isdir(self.base_path)

    async def copy(self, source: str, target: str) -> None:
        await self._guard("copy", source, self._copy(source, target))

    async def _copy(self, source: str, target: str) -> None:
        source_path = self._require_file(source)
        await self._check_overwrite(target)
        target_path = self._full_path(target)
        await self._ensure_parent_directories(target_path, target)
        await asyncio.to_thread(shutil.copyfile, source_path, target_path)
        logger.debug(f"Copied local file {source} to {target}")

    async def delete(self, path: str) -> None:
        await self._guard("delete", path, self._delete(path))

    async def _delete(self, path: str) -> None:
        full_path = self._full_path(path)
        if os.path.isdir(full_path):
            raise InvalidPathException(
                f"'{path}' is a directory", provider=self.provider_name, path=path
            )
        try:
            await aiofiles.os.remove(full_path)
        except (FileNotFoundError, NotADirectoryError):
            logger.debug(f"Local file already absent: {path}")
            return
        logger.debug(f"Removed local file: {path}")

    async def rename(self, source: str, target: str) -> None:
        if not self.config.native_rename:
            await super().rename(source, target)
            return
        await self._guard("rename", source, self._rename(source, target))

    async def _rename(self, source: str, target: str) -> None:
        source_path = self._require_file(source)
        await self._check_overwrite(target)
        target_path = self._full_path(target)
        await self._ensure_parent_directories(target_path, target)
        await aiofiles.os.replace(source_path, target_path)
        logger.debug(f"Renamed local file {source} to {target}")

    async def get_stream(self, path: str) -> FileStream:
        return await self._guard("get_stream", path, self._open_stream(path))

    async def _open_stream(self, path: str) -> FileStream:
        full_path = self._require_file(path)
        handle = await aiofiles.open(full_path, 'rb')
        return AiofilesFileStream(handle, chunk_size=self.config.read_chunk_size)

    async def save(self, path: str, content: FileContent) -> None:
        await self._guard("save", path, self._save(path, content))

    async def _save(self, path: str, content: FileContent) -> None:
        full_path = self._full_path(path)
        if os.path.isdir(full_path):
            raise InvalidPathException(
                f"'{path}' is a directory", provider=self.provider_name, path=path
            )
        await self._ensure_parent_directories(full_path, path)

        # Readers never see a half-written file.
        temp_path = f"{full_path}.{uuid.uuid4().hex}.tmp"
        size = 0
        try:
            async with aiofiles.open(temp_path, 'wb') as f:
                async for chunk in iter_content(content, self.config.read_chunk_size):
                    await f.write(chunk)
                    size += len(chunk)
            await aiofiles.os.replace(temp_path, full_path)
        finally:
            if await aiofiles.os.path.exists(temp_path):
                await aiofiles.os.remove(temp_path)
        logger.debug(f"Saved local file {path} ({size} bytes)")

    async def stat(self, path: str) -> FileInfo:
        return await self._guard("stat", path, self._stat(path))

    async def _stat(self, path: str) -> FileInfo:
        full_path = self._full_path(path)
        try:
            st = os.stat(full_path)
        except (FileNotFoundError, NotADirectoryError):
            return FileInfo.not_found(path)

        is_directory = os.path.isdir(full_path)
        return FileInfo(
            name=path_name(path),
            path=path,
            exists=True,
            is_directory=is_directory,
            length=0 if is_directory else int(st.st_size),
            last_modified=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc)
        )

    async def list(self, path: str) -> DirectoryContents:
        return await self._guard("list", path, self._list(path))

    async def _list(self, path: str) -> DirectoryContents:
        full_path = self._full_path(path)
        if not os.path.isdir(full_path):
            return compose_directory_contents(path, False, ())

        entries = []
        with os.scandir(full_path) as it:
            for entry in it:
                try:
                    is_directory = entry.is_dir(follow_symlinks=False)
                    st = entry.stat(follow_symlinks=False)
                except FileNotFoundError:
                    # Removed after the scan started.
                    continue
                entries.append(BackendEntry(
                    name=entry.name,
                    is_directory=is_directory,
                    length=None if is_directory else st.st_size,
                    last_modified=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc)
                ))
        return compose_directory_contents(path, True, entries)

    async def _ensure_parent_directories(self, full_path: str, path: str) -> None:
        try:
            await aiofiles.os.makedirs(os.path.dirname(full_path), exist_ok=True)
        except (FileExistsError, NotADirectoryError) as e:
            raise InvalidPathException(
                f"A parent of '{path}' is a file", provider=self.provider_name, path=path
            ) from e

    def _require_file(self, path: str) -> str:
        full_path = self._full_path(path)
        if not os.path.isfile(full_path):
            raise NotFoundException(
                f"File '{path}' not found", provider=self.provider_name, path=path
            )
        return full_path

    def _translate_error(self, error: Exception, operation: str, path: str) -> StorageException:
        kind, detail = classify_os_error(error)
        return storage_exception(
            kind,
            f"Local storage {operation} failed for '{path}': {str(error)}",
            provider=self.provider_name,
            path=path,
            detail=detail
        )
