"""
File Storage

Backend-agnostic hierarchical file storage. ``FileStorage`` is the entry
point; adapters for Azure Files, the local file system and memory implement
``FileStorageInterface``.
"""

from .interfaces import (
    FileStorageInterface,
    StorageConfig,
    StorageType,
    StorageErrorKind,
    FileInfo,
    DirectoryContents,
    StorageException,
    NotFoundException,
    AlreadyExistsException,
    BackendUnavailableException,
    InvalidPathException,
    UnknownStorageException,
)
from .facade import FileStorage
from .factory import configure_logging, create_file_storage, create_storage_client, ephemeral_root_name
from .listing import BackendEntry, compose_directory_contents
from .paths import ROOT_PATH, normalize_file_path, normalize_path
from .streams import FileStream

__version__ = "0.1.0"

__all__ = [
    # Facade
    'FileStorage',
    'create_file_storage',
    'configure_logging',
    'create_storage_client',
    'ephemeral_root_name',

    # Interfaces
    'FileStorageInterface',
    'StorageConfig',
    'StorageType',
    'StorageErrorKind',
    'FileInfo',
    'DirectoryContents',
    'FileStream',

    # Paths and listings
    'ROOT_PATH',
    'normalize_path',
    'normalize_file_path',
    'BackendEntry',
    'compose_directory_contents',

    # Exceptions
    'StorageException',
    'NotFoundException',
    'AlreadyExistsException',
    'BackendUnavailableException',
    'InvalidPathException',
    'UnknownStorageException',
]
