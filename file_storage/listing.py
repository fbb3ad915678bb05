"""
Directory Listing Composition

Builds ``DirectoryContents`` from a raw backend enumeration and a separate
existence probe for the directory itself. The probe is authoritative: most
backends enumerate a missing directory and an empty one identically.
"""

from datetime import datetime
from typing import Iterable, NamedTuple, Optional

from .interfaces.storage_interface import DirectoryContents, FileInfo
from .paths import join_path


class BackendEntry(NamedTuple):
    """One child as reported by a backend enumeration."""
    name: str
    is_directory: bool
    length: Optional[int] = None
    last_modified: Optional[datetime] = None


def entry_to_file_info(parent: str, entry: BackendEntry) -> FileInfo:
    # Type comes from backend metadata only, never from the name.
    return FileInfo(
        name=entry.name,
        path=join_path(parent, entry.name),
        exists=True,
        is_directory=bool(entry.is_directory),
        length=0 if entry.is_directory else int(entry.length or 0),
        last_modified=entry.last_modified
    )


def compose_directory_contents(
    path: str,
    exists: bool,
    entries: Iterable[BackendEntry]
) -> DirectoryContents:
    """
    Compose a directory listing.

    Args:
        path: Canonical directory path
        exists: Result of the backend existence probe
        entries: Enumerated children in backend order

    Returns:
        DirectoryContents: ``exists=False`` with no entries when the probe
        reports the directory absent, whatever the enumeration returned
    """
    if not exists:
        return DirectoryContents.not_found(path)
    return DirectoryContents(
        path=path,
        exists=True,
        entries=tuple(entry_to_file_info(path, entry) for entry in entries)
    )
