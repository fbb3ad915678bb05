"""
Path normalization tests
"""
import pytest

from file_storage import InvalidPathException, ROOT_PATH, normalize_file_path, normalize_path
from file_storage.paths import ancestor_paths, join_path, parent_path, path_name, path_segments


class TestNormalizePath:
    """Canonical form of user supplied paths."""

    @pytest.mark.parametrize("raw, expected", [
        (None, ""),
        ("", ""),
        ("/", ""),
        ("a.txt", "a.txt"),
        ("/a.txt", "a.txt"),
        ("dir/sub/file.txt", "dir/sub/file.txt"),
        ("dir\\sub\\file.txt", "dir/sub/file.txt"),
        ("dir//sub///file.txt", "dir/sub/file.txt"),
        ("./dir/./file.txt", "dir/file.txt"),
        ("dir/sub/", "dir/sub"),
        ("  spaced name.txt", "  spaced name.txt"),
    ])
    def test_canonical_form(self, raw, expected):
        assert normalize_path(raw) == expected

    @pytest.mark.parametrize("raw", [
        "..",
        "../a.txt",
        "dir/../../a.txt",
        "dir/..",
        "C:/data/a.txt",
        "c:\\data\\a.txt",
        "//server/share/a.txt",
        "\\\\server\\share\\a.txt",
        "bad\x00name.txt",
        "line\nbreak.txt",
    ])
    def test_rejects_unsafe_paths(self, raw):
        with pytest.raises(InvalidPathException) as exc_info:
            normalize_path(raw)
        assert exc_info.value.path == raw

    def test_rejects_non_string(self):
        with pytest.raises(InvalidPathException):
            normalize_path(42)

    def test_idempotent(self):
        once = normalize_path("\\a//b/./c.txt")
        assert normalize_path(once) == once


class TestNormalizeFilePath:

    @pytest.mark.parametrize("raw", [None, "", "/", "./", "\\"])
    def test_root_is_not_a_file(self, raw):
        with pytest.raises(InvalidPathException):
            normalize_file_path(raw)

    def test_regular_file(self):
        assert normalize_file_path("/reports/2024.csv") == "reports/2024.csv"


class TestPathHelpers:

    def test_segments(self):
        assert path_segments(ROOT_PATH) == []
        assert path_segments("a/b/c.txt") == ["a", "b", "c.txt"]

    def test_join(self):
        assert join_path(ROOT_PATH, "a.txt") == "a.txt"
        assert join_path("dir", "a.txt") == "dir/a.txt"

    def test_parent_and_name(self):
        assert parent_path("a/b/c.txt") == "a/b"
        assert parent_path("c.txt") == ROOT_PATH
        assert parent_path(ROOT_PATH) == ROOT_PATH
        assert path_name("a/b/c.txt") == "c.txt"
        assert path_name("c.txt") == "c.txt"

    def test_ancestors_outermost_first(self):
        assert ancestor_paths("a/b/c.txt") == ["a", "a/b"]
        assert ancestor_paths("c.txt") == []
        assert ancestor_paths(ROOT_PATH) == []
