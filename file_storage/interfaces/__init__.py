"""
Storage Interfaces

This module contains the abstract interface, value types and exceptions
shared by every file storage backend.
"""

from .storage_interface import (
    # Storage interfaces and models
    FileStorageInterface,
    StorageConfig,
    StorageType,
    StorageErrorKind,
    FileInfo,
    DirectoryContents,

    # Storage exceptions
    StorageException,
    NotFoundException,
    AlreadyExistsException,
    BackendUnavailableException,
    InvalidPathException,
    UnknownStorageException,
    storage_exception,
)

__all__ = [
    # Storage interfaces
    "FileStorageInterface",
    "StorageConfig",
    "StorageType",
    "StorageErrorKind",
    "FileInfo",
    "DirectoryContents",

    # Storage exceptions
    "StorageException",
    "NotFoundException",
    "AlreadyExistsException",
    "BackendUnavailableException",
    "InvalidPathException",
    "UnknownStorageException",
    "storage_exception",
]
