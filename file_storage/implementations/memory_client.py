"""
Memory Storage Client Implementation

This module provides an in-memory storage client that implements the
FileStorageInterface abstract base class. Content lives only as long as the
root; it suits tests and ephemeral sessions.
"""

from datetime import datetime, timezone
from typing import Dict, Set, Tuple

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
from ..paths import ROOT_PATH, ancestor_paths, parent_path, path_name
from ..streams import BytesFileStream, FileContent, FileStream, iter_content

logger = get_logger(__name__)


class MemoryStorageClient(FileStorageInterface):
    """
    In-memory storage client implementation.

    Files map a canonical path to ``(content, last_modified)``; directories
    are tracked explicitly so empty directories survive.
    """

    def __init__(self, config: StorageConfig):
        super().__init__(config)
        self._files: Dict[str, Tuple[bytes, datetime]] = {}
        self._directories: Set[str] = set()
        self._root_created = False

    async def connect(self) -> bool:
        if self._connected:
            return True
        if not self._root_created:
            if not self.config.create_root_if_missing:
                raise NotFoundException(
                    f"Memory root '{self.root_name}' does not exist", provider=self.provider_name
                )
            self._root_created = True
        self._connected = True
        logger.info(f"Connected to memory storage: {self.root_name}")
        return True

    async def disconnect(self) -> None:
        self._connected = False

    async def create_root(self) -> bool:
        return await self._guard("create_root", ROOT_PATH, self._create_root())

    async def _create_root(self) -> bool:
        if self._root_created:
            return False
        self._root_created = True
        return True

    async def delete_root(self) -> bool:
        return await self._guard("delete_root", ROOT_PATH, self._delete_root())

    async def _delete_root(self) -> bool:
        existed = self._root_created
        self._files.clear()
        self._directories.clear()
        self._root_created = False
        return existed

    async def root_exists(self) -> bool:
        return await self._guard("root_exists", ROOT_PATH, self._root_exists())

    async def _root_exists(self) -> bool:
        return self._root_created

    def _is_directory(self, path: str) -> bool:
        return (path == ROOT_PATH and self._root_created) or path in self._directories

    def _ensure_parent_directories(self, path: str) -> None:
        for directory in ancestor_paths(path):
            if directory in self._files:
                raise InvalidPathException(
                    f"'{directory}' is a file", provider=self.provider_name, path=path
                )
            self._directories.add(directory)

    def _require_file(self, path: str) -> bytes:
        if path not in self._files:
            raise NotFoundException(
                f"File '{path}' not found", provider=self.provider_name, path=path
            )
        return self._files[path][0]

    def _write(self, path: str, data: bytes) -> None:
        if self._is_directory(path):
            raise InvalidPathException(
                f"'{path}' is a directory", provider=self.provider_name, path=path
            )
        self._ensure_parent_directories(path)
        self._files[path] = (data, datetime.now(timezone.utc))

    async def copy(self, source: str, target: str) -> None:
        await self._guard("copy", source, self._copy(source, target))

    async def _copy(self, source: str, target: str) -> None:
        data = self._require_file(source)
        await self._check_overwrite(target)
        self._write(target, data)

    async def delete(self, path: str) -> None:
        await self._guard("delete", path, self._delete(path))

    async def _delete(self, path: str) -> None:
        if self._is_directory(path):
            raise InvalidPathException(
                f"'{path}' is a directory", provider=self.provider_name, path=path
            )
        self._files.pop(path, None)

    async def rename(self, source: str, target: str) -> None:
        if not self.config.native_rename:
            await super().rename(source, target)
            return
        await self._guard("rename", source, self._rename(source, target))

    async def _rename(self, source: str, target: str) -> None:
        data = self._require_file(source)
        await self._check_overwrite(target)
        self._write(target, data)
        if source != target:
            del self._files[source]

    async def get_stream(self, path: str) -> FileStream:
        return await self._guard("get_stream", path, self._open_stream(path))

    async def _open_stream(self, path: str) -> FileStream:
        return BytesFileStream(self._require_file(path), chunk_size=self.config.read_chunk_size)

    async def save(self, path: str, content: FileContent) -> None:
        await self._guard("save", path, self._save(path, content))

    async def _save(self, path: str, content: FileContent) -> None:
        buffer = bytearray()
        async for chunk in iter_content(content, self.config.read_chunk_size):
            buffer.extend(chunk)
        self._write(path, bytes(buffer))

    async def stat(self, path: str) -> FileInfo:
        return await self._guard("stat", path, self._stat(path))

    async def _stat(self, path: str) -> FileInfo:
        if path in self._files:
            data, last_modified = self._files[path]
            return FileInfo(
                name=path_name(path),
                path=path,
                exists=True,
                length=len(data),
                last_modified=last_modified
            )
        if self._is_directory(path):
            return FileInfo(name=path_name(path), path=path, exists=True, is_directory=True)
        return FileInfo.not_found(path)

    async def list(self, path: str) -> DirectoryContents:
        return await self._guard("list", path, self._list(path))

    async def _list(self, path: str) -> DirectoryContents:
        if not self._is_directory(path):
            return compose_directory_contents(path, False, ())

        entries = [
            BackendEntry(name=path_name(directory), is_directory=True)
            for directory in sorted(self._directories)
            if parent_path(directory) == path
        ]
        entries.extend(
            BackendEntry(
                name=path_name(file_path),
                is_directory=False,
                length=len(data),
                last_modified=last_modified
            )
            for file_path, (data, last_modified) in self._files.items()
            if parent_path(file_path) == path
        )
        return compose_directory_contents(path, True, entries)

    def _translate_error(self, error: Exception, operation: str, path: str) -> StorageException:
        return storage_exception(
            StorageErrorKind.UNKNOWN,
            f"Memory storage {operation} failed for '{path}': {str(error)}",
            provider=self.provider_name,
            path=path,
            detail=type(error).__name__
        )
