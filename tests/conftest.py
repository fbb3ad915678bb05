"""
Test configuration
Shared pytest fixtures for the storage tests.
"""
import os
from pathlib import Path

import pytest
import pytest_asyncio

# Test environment
os.environ["FILE_STORAGE_ENVIRONMENT"] = "testing"

from file_storage import FileStorage, StorageConfig, StorageType
from file_storage.config.loguru_config import setup_logging
from file_storage.implementations.azure_file_client import AzureFileShareClient
from file_storage.implementations.local_client import LocalStorageClient
from file_storage.implementations.memory_client import MemoryStorageClient

from factories import ContentFactory, FakeShareClient, FakeShareState

setup_logging("testing")

BACKENDS = ["memory", "local", "azure"]


def make_client(backend: str, tmp_path: Path, **overrides):
    """Build an unconnected adapter of the given kind."""
    if backend == "memory":
        config = StorageConfig(provider=StorageType.MEMORY, root_name="test-root", **overrides)
        return MemoryStorageClient(config)
    if backend == "local":
        config = StorageConfig(
            provider=StorageType.LOCAL,
            root_name="test-root",
            custom_options={"base_path": str(tmp_path / "test-root")},
            **overrides
        )
        return LocalStorageClient(config)
    if backend == "azure":
        overrides.setdefault("copy_poll_interval", 0.01)
        config = StorageConfig(provider=StorageType.AZURE_FILE, root_name="test-share", **overrides)
        return AzureFileShareClient(config, share_client=FakeShareClient(FakeShareState("test-share", exists=False)))
    raise ValueError(backend)


@pytest.fixture
def content_factory() -> ContentFactory:
    return ContentFactory()


@pytest.fixture
def share_state() -> FakeShareState:
    return FakeShareState("test-share", exists=True)


@pytest.fixture
def azure_config() -> StorageConfig:
    return StorageConfig(
        provider=StorageType.AZURE_FILE,
        root_name="test-share",
        copy_poll_interval=0.01,
        timeout=5
    )


@pytest_asyncio.fixture
async def azure_client(share_state, azure_config):
    client = AzureFileShareClient(azure_config, share_client=FakeShareClient(share_state))
    await client.connect()
    yield client
    await client.disconnect()


@pytest.fixture(params=BACKENDS)
def backend(request) -> str:
    return request.param


@pytest_asyncio.fixture(params=BACKENDS)
async def storage(request, tmp_path):
    """An open FileStorage over each backend."""
    async with FileStorage(make_client(request.param, tmp_path)) as handle:
        yield handle


@pytest.fixture
def client_factory(tmp_path):
    """Build unconnected adapters: ``client_factory("local", overwrite_existing=False)``."""
    def factory(backend: str, **overrides):
        return make_client(backend, tmp_path, **overrides)
    return factory
