#!/usr/bin/env python3
"""
Non-inherited permission scanner - find directories whose ACL diverged from inheritance.

The directory tree below a target is traversed down to a maximum depth and every
directory carrying at least one explicit (non-inherited) ACE is recorded. The
result is written to a timestamped log file, one full path per line:

    <log_dir>/<YYYY-MM-DD_HH-MM-SS> <targetName>.txt

The target itself is not reported, it is expected to hold explicit ACEs.
"""

import ntpath
import os
from datetime import datetime
from typing import Dict, List, Optional

from .backends import AclStore
from .errors import AclGroupsError


def has_explicit_ace(aces: List[Dict]) -> bool:
    """True if any ACE is not inherited."""
    return any(not ace["inherited"] for ace in aces)


def scan_non_inherited(store: AclStore, target: str, max_depth: int, verbose: bool = False) -> List[str]:
    """
    Recursively collect directories below target that have explicit ACEs.

    Args:
        store: ACL store collaborator
        target: Root directory of the scan
        max_depth: Number of levels below target to scan (1 = direct children)
        verbose: Print every directory checked

    Returns:
        Full paths in traversal order (parents before children)
    """
    print(f"🔍 Scanning {target} for non-inherited permissions (max depth: {max_depth})...")

    found = []
    folders_per_level = {}

    def check_folder_recursive(folder_path: str, current_depth: int):
        """Check the subfolders of a folder, then recurse into them."""
        if current_depth >= max_depth:
            return

        try:
            with os.scandir(folder_path) as it:
                children = sorted(
                    (entry.path for entry in it if entry.is_dir(follow_symlinks=False)),
                    key=str.lower,
                )
        except OSError as e:
            print(f"   ❌ Cannot list {folder_path}: {e}")
            return

        level = current_depth + 1
        for child_path in children:
            folders_per_level[level] = folders_per_level.get(level, 0) + 1
            try:
                aces = store.get_aces(child_path)
            except (AclGroupsError, OSError) as e:
                # skip folders we can't read
                print(f"   ❌ Cannot read ACL of {child_path}: {e}")
                continue

            if has_explicit_ace(aces):
                found.append(child_path)
                print(f"   ✅ Found non-inherited: {child_path}")
            elif verbose:
                print(f"   ⏭️  Inherited only: {child_path}")

            check_folder_recursive(child_path, level)

    check_folder_recursive(target, 0)

    print(f"\n📊 Folder count by level:")
    for level in sorted(folders_per_level.keys()):
        print(f"   Level {level}: {folders_per_level[level]} folders")
    print(f"\n✅ Scan complete. Found {len(found)} folder(s) with non-inherited permissions.")
    return found


def log_file_path(log_dir: str, target: str, now: Optional[datetime] = None) -> str:
    """Timestamped log file name for a target."""
    now = now or datetime.now()
    leaf = ntpath.basename(ntpath.normpath(target))
    # drive roots have no leaf, name the log after the drive
    name = leaf or ntpath.basename(ntpath.splitdrive(target)[0].rstrip(":\\")) or "root"
    return os.path.join(log_dir, f"{now.strftime('%Y-%m-%d_%H-%M-%S')} {name}.txt")


def find_non_inherited_directories(store: AclStore, target: str, depth: int, log_dir: str,
                                   verbose: bool = False) -> str:
    """
    Scan target and write the directories with explicit ACEs to a log file.

    Returns:
        Path of the log file written
    """
    if depth < 0:
        raise ValueError("depth must not be negative")
    if not os.path.isdir(target):
        raise NotADirectoryError(f"Not a directory: {target}")

    log_path = log_file_path(log_dir, target)
    found = scan_non_inherited(store, target, depth, verbose)

    os.makedirs(log_dir, exist_ok=True)
    with open(log_path, "w", encoding="utf-8") as f:
        for path in found:
            f.write(f"{path}\n")

    print(f"📝 Log written to {log_path}")
    return log_path
