"""
FileStorage facade tests

Lifecycle and path handling of the facade over a memory backend, with
``AsyncMock`` backends where failures must be injected.
"""
import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from file_storage import (
    BackendUnavailableException,
    FileStorage,
    FileStorageInterface,
    InvalidPathException,
    StorageConfig,
    StorageType,
    UnknownStorageException,
)
from file_storage.implementations.memory_client import MemoryStorageClient


def memory_backend(**overrides) -> MemoryStorageClient:
    return MemoryStorageClient(StorageConfig(provider=StorageType.MEMORY, root_name="facade-root", **overrides))


def mock_backend() -> MagicMock:
    backend = MagicMock(spec=FileStorageInterface)
    backend.provider_name = "memory"
    backend.root_name = "mock-root"
    for name in (
        "connect", "disconnect", "create_root", "delete_root", "root_exists",
        "copy", "delete", "rename", "get_stream", "save", "stat", "list",
    ):
        setattr(backend, name, AsyncMock())
    return backend


class TestLifecycle:

    @pytest.mark.asyncio
    async def test_operations_fail_before_open(self):
        storage = FileStorage(memory_backend())

        with pytest.raises(BackendUnavailableException):
            await storage.get_file_info("a.txt")

    @pytest.mark.asyncio
    async def test_operations_fail_after_release(self):
        storage = FileStorage(memory_backend())
        await storage.open()
        await storage.release()

        assert not storage.is_open
        with pytest.raises(BackendUnavailableException):
            await storage.save_file("a.txt", b"data")

    @pytest.mark.asyncio
    async def test_released_handle_cannot_reopen(self):
        storage = FileStorage(memory_backend())
        await storage.release()

        with pytest.raises(BackendUnavailableException):
            await storage.open()

    @pytest.mark.asyncio
    async def test_release_is_idempotent(self):
        backend = mock_backend()
        storage = FileStorage(backend)
        await storage.open()

        await storage.release()
        await storage.release()

        backend.disconnect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_open_is_idempotent(self):
        backend = mock_backend()
        storage = FileStorage(backend)

        await storage.open()
        await storage.open()

        backend.connect.assert_awaited_once()
        assert storage.is_open

    @pytest.mark.asyncio
    async def test_context_manager_releases_on_error(self):
        backend = mock_backend()

        with pytest.raises(RuntimeError):
            async with FileStorage(backend) as storage:
                raise RuntimeError("work failed")

        assert not storage.is_open
        backend.disconnect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_failed_open_releases(self):
        backend = mock_backend()
        backend.connect.side_effect = BackendUnavailableException("down", provider="memory")
        storage = FileStorage(backend)

        with pytest.raises(BackendUnavailableException):
            async with storage:
                pass

        backend.disconnect.assert_awaited_once()
        with pytest.raises(BackendUnavailableException):
            await storage.open()


class TestEphemeralRoot:

    @pytest.mark.asyncio
    async def test_root_created_and_deleted(self):
        backend = mock_backend()

        async with FileStorage(backend, ephemeral_root=True):
            backend.create_root.assert_awaited_once()
            backend.delete_root.assert_not_awaited()

        backend.delete_root.assert_awaited_once()
        backend.disconnect.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_persistent_root_is_kept(self):
        backend = mock_backend()

        async with FileStorage(backend):
            pass

        backend.create_root.assert_not_awaited()
        backend.delete_root.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cleanup_failures_are_swallowed(self):
        backend = mock_backend()
        backend.delete_root.side_effect = BackendUnavailableException("down", provider="memory")
        backend.disconnect.side_effect = RuntimeError("socket already closed")

        async with FileStorage(backend, ephemeral_root=True) as storage:
            pass

        assert not storage.is_open
        backend.delete_root.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_cleanup_does_not_mask_work_error(self):
        backend = mock_backend()
        backend.delete_root.side_effect = BackendUnavailableException("down", provider="memory")

        with pytest.raises(UnknownStorageException):
            async with FileStorage(backend, ephemeral_root=True):
                raise UnknownStorageException("work failed", provider="memory")

    @pytest.mark.asyncio
    async def test_memory_root_content_is_discarded(self):
        backend = memory_backend()

        async with FileStorage(backend, ephemeral_root=True) as storage:
            await storage.save_file("a.txt", b"data")

        assert not await backend._root_exists()


class TestPathHandling:

    @pytest.mark.asyncio
    async def test_paths_are_canonicalized_before_delegation(self):
        backend = mock_backend()

        async with FileStorage(backend) as storage:
            await storage.copy_file("/src\\a.txt", "dst//b.txt")
            await storage.get_directory_contents(None)
            await storage.get_file_info("./docs/")

        backend.copy.assert_awaited_once_with("src/a.txt", "dst/b.txt")
        backend.list.assert_awaited_once_with("")
        backend.stat.assert_awaited_once_with("docs")

    @pytest.mark.asyncio
    async def test_invalid_path_never_reaches_backend(self):
        backend = mock_backend()

        async with FileStorage(backend) as storage:
            with pytest.raises(InvalidPathException):
                await storage.save_file("../outside.txt", b"data")
            with pytest.raises(InvalidPathException):
                await storage.rename_file("a.txt", "")

        backend.save.assert_not_awaited()
        backend.rename.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_path_reported_before_closed_handle(self):
        storage = FileStorage(mock_backend())

        with pytest.raises(InvalidPathException):
            await storage.delete_file("C:/a.txt")


class TestConcurrency:

    @pytest.mark.asyncio
    async def test_concurrent_operations_on_distinct_paths(self):
        async with FileStorage(memory_backend()) as storage:
            names = [f"batch/file-{i}.txt" for i in range(20)]

            await asyncio.gather(*(storage.save_file(name, name.encode()) for name in names))
            infos = await asyncio.gather(*(storage.get_file_info(name) for name in names))

            listing = await storage.get_directory_contents("batch")

        assert all(info.exists for info in infos)
        assert sorted(entry.name for entry in listing) == sorted(name.split("/")[1] for name in names)
