"""
Reset an ACL tree to an inherited baseline.

hard_reset makes the target the only place where permissions are set for its
subtree. soft_reset only strips the target of principals that are not part of
its naming convention.
"""

import os
from typing import Dict, List, Optional

from .backends import AclStore
from .naming import (
    CREATOR_OWNER,
    CREATOR_OWNER_SID,
    DEFAULT_APPLIES_TO,
    SYSTEM,
    SYSTEM_SID,
    TIER_RIGHTS,
    follows_convention,
    object_name_for,
    rights_name,
)

FULL_CONTROL = TIER_RIGHTS["FullControl"]
MODIFY = TIER_RIGHTS["Modify"]


def _ace_id(ace: Dict) -> str:
    """Identify an ACE's principal by SID when known, so lookups cannot fail on renamed accounts."""
    return ace.get("sid") or ace["principal"]


def _is_system(ace: Dict) -> bool:
    return ace.get("sid") == SYSTEM_SID or ace["principal"].upper() == SYSTEM


def _is_creator_owner(ace: Dict) -> bool:
    return ace.get("sid") == CREATOR_OWNER_SID or ace["principal"].upper() == CREATOR_OWNER


def _is_system_full_control(ace: Dict) -> bool:
    return (_is_system(ace) and not ace["inherited"] and ace["rights"] == FULL_CONTROL
            and ace["applies_to"] == DEFAULT_APPLIES_TO)


def ensure_system_full_control(store: AclStore, target: str) -> None:
    """Grant SYSTEM full control on the target unless it already has it explicitly."""
    for ace in store.get_aces(target):
        if _is_system_full_control(ace):
            return
    store.add_ace(target, SYSTEM_SID, FULL_CONTROL, DEFAULT_APPLIES_TO)
    print(f"✅ Granted {rights_name(FULL_CONTROL)} to {SYSTEM}")


def limit_creator_owner(store: AclStore, target: str) -> None:
    """Replace the CREATOR OWNER ACEs of the target by a Modify grant on its children."""
    removed = store.remove_aces(target, CREATOR_OWNER_SID)
    if removed:
        print(f"✅ Removed {removed} ACE(s) of {CREATOR_OWNER}")
    store.add_ace(target, CREATOR_OWNER_SID, MODIFY, "subfolders_files")
    print(f"✅ Limited {CREATOR_OWNER} to {rights_name(MODIFY)}")


def iter_descendants(target: str):
    """Yield every directory and file below target, parents before children."""
    for root, dirs, files in os.walk(target):
        dirs.sort()
        for name in dirs:
            yield os.path.join(root, name)
        for name in sorted(files):
            yield os.path.join(root, name)


def hard_reset(store: AclStore, target: str, limit_owner: bool = False, verbose: bool = False) -> int:
    """
    Make ``target`` the sole ACL authority of its subtree.

    Steps:
        1. SYSTEM gets full control on the target
        2. inheritance is disabled on the target, dropping inherited ACEs
        3. every other explicit ACE is removed from the target
        4. optionally CREATOR OWNER is limited to Modify
        5. every descendant inherits again and loses its explicit ACEs

    Returns:
        Number of descendants reset
    """
    ensure_system_full_control(store, target)

    if store.get_inheritance(target):
        store.set_inheritance(target, False, clear=True)
        print("✅ Disabled inheritance (inherited ACEs removed)")

    removed = 0
    seen = set()
    aces = [ace for ace in store.get_aces(target) if not ace["inherited"]]
    system_aces = [ace for ace in aces if _is_system(ace)]
    if any(not _is_system_full_control(ace) for ace in system_aces) or len(system_aces) > 1:
        # SYSTEM keeps a single full control grant on the whole subtree
        removed += store.remove_aces(target, SYSTEM_SID) - 1
        store.add_ace(target, SYSTEM_SID, FULL_CONTROL, DEFAULT_APPLIES_TO)
        if verbose:
            print(f"   Replaced ACEs of {SYSTEM} by {rights_name(FULL_CONTROL)}")
    for ace in aces:
        if _is_system(ace) or _ace_id(ace) in seen:
            continue
        seen.add(_ace_id(ace))
        removed += store.remove_aces(target, _ace_id(ace))
        if verbose:
            print(f"   Removed ACE of {ace['principal']} ({rights_name(ace['rights'])})")
    print(f"✅ Removed {removed} ACE(s) from {target}")

    if limit_owner:
        limit_creator_owner(store, target)

    count = 0
    for path in iter_descendants(target):
        store.set_inheritance(path, True, clear=True)
        count += 1
        if verbose:
            print(f"   Reset inheritance: {path}")
    print(f"✅ Re-enabled inheritance on {count} descendant(s)")
    return count


def soft_reset(store: AclStore, target: str, prefix: str, delimiter: str,
               limit_owner: bool = False, name: Optional[str] = None,
               dry_run: bool = False) -> List[str]:
    """
    Remove every principal that does not belong on the target.

    ACEs of SYSTEM, CREATOR OWNER and of the target's permission groups are
    kept. If the target still inherits, its inherited ACEs are first turned
    into explicit ones so that they can be filtered like the rest.

    Returns:
        Names of the principals removed (or that would be, with dry_run)
    """
    object_name = object_name_for(target, name)

    if not dry_run:
        if store.get_inheritance(target):
            store.set_inheritance(target, False, clear=False)
            print("✅ Disabled inheritance (inherited ACEs kept as explicit)")
        if limit_owner:
            limit_creator_owner(store, target)

    removed = []
    seen = set()
    for ace in store.get_aces(target):
        if ace["inherited"] and not dry_run:
            continue
        if _is_system(ace) or _is_creator_owner(ace):
            continue
        if follows_convention(ace["principal"], prefix, delimiter, object_name):
            continue
        if _ace_id(ace) in seen:
            continue
        seen.add(_ace_id(ace))

        if dry_run:
            print(f"   Would remove {ace['principal']} ({rights_name(ace['rights'])})")
        else:
            store.remove_aces(target, _ace_id(ace))
            print(f"✅ Removed {ace['principal']}")
        removed.append(ace["principal"])

    if not removed:
        print("ℹ️  Nothing to remove, only convention groups and well-known principals present")
    return removed
