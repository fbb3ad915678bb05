"""
Test data factories

Fake backends and random content used across the storage tests.
"""

from .azure_share_factory import FakeShareClient, FakeShareState
from .content_factory import ContentFactory, StoredFileFactory

__all__ = [
    "ContentFactory",
    "FakeShareClient",
    "FakeShareState",
    "StoredFileFactory",
]
