"""
Unit tests for the non-inherited permission scanner
"""

import os
import re
from datetime import datetime

import pytest

from conftest import FakeAclStore
from ntfs_acl_groups.errors import AclAccessError
from ntfs_acl_groups.naming import TIER_RIGHTS
from ntfs_acl_groups.scanner import (
    find_non_inherited_directories,
    has_explicit_ace,
    log_file_path,
    scan_non_inherited,
)

READ = TIER_RIGHTS["Read"]


class UnreadableStore(FakeAclStore):
    """ACL store that cannot read one path."""

    def __init__(self, unreadable):
        super().__init__(accounts=["alice"])
        self.unreadable = os.path.normpath(unreadable)

    def get_aces(self, path):
        if os.path.normpath(path) == self.unreadable:
            raise AclAccessError(f"Cannot read ACL of {path}: Access is denied.")
        return super().get_aces(path)


@pytest.fixture
def tree(tmp_path):
    """
    Data
    ├── A          explicit
    │   ├── A1     explicit
    │   │   └── Deep   explicit (level 3)
    │   └── A2
    ├── B
    │   └── B1     explicit
    └── report.txt explicit (file)
    """
    root = tmp_path / "Data"
    for sub in ("A/A1/Deep", "A/A2", "B/B1"):
        (root / sub).mkdir(parents=True)
    (root / "report.txt").write_text("x")
    return str(root)


def seed_tree(store, tree):
    for sub in ("", "A", "A/A1", "A/A2", "A/A1/Deep", "B", "B/B1", "report.txt"):
        store.seed(os.path.join(tree, sub), "SYSTEM", TIER_RIGHTS["FullControl"], inherited=True)
    for sub in ("", "A", "A/A1", "A/A1/Deep", "B/B1", "report.txt"):
        store.seed(os.path.join(tree, sub), "alice", READ)


class TestScan:
    """Test cases for scan_non_inherited."""

    @pytest.fixture
    def store(self, tree):
        store = FakeAclStore(accounts=["alice"])
        seed_tree(store, tree)
        return store

    def test_depth_two(self, store, tree):
        """Test only directories within two levels with explicit ACEs are found."""
        found = scan_non_inherited(store, tree, 2)
        assert found == [
            os.path.join(tree, "A"),
            os.path.join(tree, "A", "A1"),
            os.path.join(tree, "B", "B1"),
        ]

    def test_depth_three_reaches_deeper(self, store, tree):
        found = scan_non_inherited(store, tree, 3)
        assert os.path.join(tree, "A", "A1", "Deep") in found

    def test_depth_one(self, store, tree):
        assert scan_non_inherited(store, tree, 1) == [os.path.join(tree, "A")]

    def test_depth_zero_scans_nothing(self, store, tree):
        assert scan_non_inherited(store, tree, 0) == []

    def test_files_and_target_not_reported(self, store, tree):
        found = scan_non_inherited(store, tree, 5)
        assert tree not in found
        assert os.path.join(tree, "report.txt") not in found

    def test_unreadable_directory_is_skipped(self, tree):
        store = UnreadableStore(os.path.join(tree, "A"))
        seed_tree(store, tree)

        found = scan_non_inherited(store, tree, 3)

        assert found == [os.path.join(tree, "B", "B1")]

    def test_has_explicit_ace(self):
        assert has_explicit_ace([{"inherited": True}, {"inherited": False}])
        assert not has_explicit_ace([{"inherited": True}])
        assert not has_explicit_ace([])


class TestFindNonInheritedDirectories:
    """Test cases for find_non_inherited_directories."""

    @pytest.fixture
    def store(self, tree):
        store = FakeAclStore(accounts=["alice"])
        seed_tree(store, tree)
        return store

    def test_writes_one_path_per_line(self, store, tree, tmp_path):
        log_dir = str(tmp_path / "logs")

        log_path = find_non_inherited_directories(store, tree, 2, log_dir)

        assert os.path.dirname(log_path) == log_dir
        assert os.path.basename(log_path).endswith(" Data.txt")
        with open(log_path, encoding="utf-8") as f:
            lines = f.read().splitlines()
        assert lines == [
            os.path.join(tree, "A"),
            os.path.join(tree, "A", "A1"),
            os.path.join(tree, "B", "B1"),
        ]

    def test_empty_result_writes_empty_file(self, store, tree, tmp_path):
        log_path = find_non_inherited_directories(store, tree, 0, str(tmp_path / "logs"))
        with open(log_path, encoding="utf-8") as f:
            assert f.read() == ""

    def test_negative_depth_rejected(self, store, tree, tmp_path):
        with pytest.raises(ValueError):
            find_non_inherited_directories(store, tree, -1, str(tmp_path))

    def test_missing_target_rejected(self, store, tmp_path):
        with pytest.raises(NotADirectoryError):
            find_non_inherited_directories(store, str(tmp_path / "missing"), 2, str(tmp_path))

    def test_log_file_name_pattern(self):
        path = log_file_path("logs", "C:\\Data", datetime(2024, 3, 5, 14, 7, 9))
        assert path == os.path.join("logs", "2024-03-05_14-07-09 Data.txt")

    @pytest.mark.parametrize("target, name", [
        ("D:\\", "D"),
        ("E:", "E"),
        ("\\\\server\\share\\", "share"),
        ("/", "root"),
    ])
    def test_log_file_name_for_roots(self, target, name):
        path = log_file_path("logs", target, datetime(2024, 3, 5, 14, 7, 9))
        assert os.path.basename(path) == f"2024-03-05_14-07-09 {name}.txt"

    def test_filesystem_root_target(self, tmp_path):
        """Test a drive root can be scanned and still gets a log file."""
        log_path = find_non_inherited_directories(FakeAclStore(), os.path.abspath(os.sep), 0, str(tmp_path))

        assert os.path.isfile(log_path)
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}_\d{2}-\d{2}-\d{2} \S+\.txt", os.path.basename(log_path))

    def test_unreadable_directory_end_to_end(self, tree, tmp_path):
        """Test the log of a depth-limited scan lists readable explicit folders and skips the unreadable one."""
        store = UnreadableStore(os.path.join(tree, "A", "A1"))
        seed_tree(store, tree)
        log_dir = str(tmp_path / "logs")

        log_path = find_non_inherited_directories(store, tree, 2, log_dir)

        assert os.listdir(log_dir) == [os.path.basename(log_path)]
        assert re.fullmatch(r"\d{4}-\d{2}-\d{2}_\d{2}-\d{2}-\d{2} Data\.txt", os.path.basename(log_path))
        with open(log_path, encoding="utf-8") as f:
            assert f.read().splitlines() == [
                os.path.join(tree, "A"),
                os.path.join(tree, "B", "B1"),
            ]


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
