"""
Path Normalization

Canonical paths are root-relative, use ``/`` as the only separator, carry no
empty, ``.`` or ``..`` segments and never start or end with a separator. The
storage root is the empty string.
"""

import re
from typing import List, Optional

from .interfaces.storage_interface import InvalidPathException

ROOT_PATH = ""
SEPARATOR = "/"

_DRIVE_PATTERN = re.compile(r"^[A-Za-z]:")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f]")


def normalize_path(path: Optional[str]) -> str:
    """
    Canonicalize a user supplied path.

    Args:
        path: Root-relative path; ``None`` or ``""`` denote the root

    Returns:
        str: Canonical path (``ROOT_PATH`` for the root)

    Raises:
        InvalidPathException: If the path escapes the root or is malformed
    """
    if path is None:
        return ROOT_PATH
    if not isinstance(path, str):
        raise InvalidPathException(f"Path must be a string, got {type(path).__name__}")
    if _CONTROL_CHARS.search(path):
        raise InvalidPathException(f"Path contains control characters: {path!r}", path=path)

    unified = path.replace("\\", SEPARATOR)
    if unified.startswith("//"):
        raise InvalidPathException(f"Network paths are not allowed: {path!r}", path=path)
    if _DRIVE_PATTERN.match(unified):
        raise InvalidPathException(f"Drive-qualified paths are not allowed: {path!r}", path=path)

    segments = []
    for segment in unified.split(SEPARATOR):
        if segment in ("", "."):
            continue
        if segment == "..":
            raise InvalidPathException(f"Path escapes the storage root: {path!r}", path=path)
        segments.append(segment)
    return SEPARATOR.join(segments)


def normalize_file_path(path: Optional[str]) -> str:
    """Canonicalize a path that must name a file, so it cannot be the root."""
    canonical = normalize_path(path)
    if canonical == ROOT_PATH:
        raise InvalidPathException("A file path is required, got the storage root", path=path)
    return canonical


def path_segments(path: str) -> List[str]:
    return path.split(SEPARATOR) if path else []


def join_path(parent: str, name: str) -> str:
    if not parent:
        return name
    return f"{parent}{SEPARATOR}{name}"


def parent_path(path: str) -> str:
    """Parent of a canonical path; the root is its own parent."""
    return path.rsplit(SEPARATOR, 1)[0] if SEPARATOR in path else ROOT_PATH


def path_name(path: str) -> str:
    return path.rsplit(SEPARATOR, 1)[-1]


def ancestor_paths(path: str) -> List[str]:
    """
    Every proper ancestor directory of ``path`` below the root, outermost
    first: ``"a/b/c.txt"`` gives ``["a", "a/b"]``.
    """
    segments = path_segments(path)
    return [SEPARATOR.join(segments[:i]) for i in range(1, len(segments))]
