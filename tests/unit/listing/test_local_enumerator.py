"""
Tests for local file enumeration used by uploads
"""

import pytest

from dirtransfer.core.exceptions import ValidationError
from dirtransfer.listing.local import LocalEnumerator


@pytest.fixture
def tree(tmp_path):
    (tmp_path / "sub" / "deep").mkdir(parents=True)
    (tmp_path / "a.txt").write_bytes(b"a" * 3)
    (tmp_path / "b.log").write_bytes(b"b" * 5)
    (tmp_path / "sub" / "c.txt").write_bytes(b"c" * 7)
    (tmp_path / "sub" / "deep" / "d.txt").write_bytes(b"d" * 11)
    return tmp_path


class TestLocalEnumerator:
    def test_recursive_enumeration(self, tree):
        result = LocalEnumerator(tree).enumerate()

        assert [item.key for item in result.items] == [
            "a.txt",
            "b.log",
            "sub/c.txt",
            "sub/deep/d.txt",
        ]
        assert result.total_bytes == 26
        assert result.total_items == 4

    def test_non_recursive(self, tree):
        result = LocalEnumerator(tree, recursive=False).enumerate()
        assert [item.key for item in result.items] == ["a.txt", "b.log"]

    def test_search_pattern(self, tree):
        result = LocalEnumerator(tree, search_pattern="*.txt").enumerate()
        assert [item.key for item in result.items] == ["a.txt", "sub/c.txt", "sub/deep/d.txt"]

    def test_empty_pattern_means_everything(self, tree):
        assert LocalEnumerator(tree, search_pattern="").enumerate().total_items == 4

    def test_missing_directory(self, tmp_path):
        with pytest.raises(ValidationError) as exc_info:
            LocalEnumerator(tmp_path / "missing").enumerate()
        assert exc_info.value.field == "local_directory"
