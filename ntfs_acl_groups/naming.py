"""
Naming convention for permission groups and the NTFS flags they map to.

A permission group is named ``<prefix><delim><object><delim><suffix>``, for
example ``AclGroup-Shared-R`` grants Read on ``C:\\Shared``. The suffix
identifies the permission tier and never contains the delimiter, so a group
name can be split back into its parts without ambiguity.
"""

import ntpath
from typing import Dict, List, Optional, Tuple

# Permission tiers in the order groups are created and granted
TIERS = ("Read", "Write", "Modify", "FullControl")

# Fixed access mask per tier
TIER_RIGHTS = {
    "Read": 0x1200A9,         # Read & execute
    "Write": 0x1201BF,        # Read & execute with write
    "Modify": 0x1301BF,
    "FullControl": 0x1F01FF,
}

RIGHTS_NAMES = {
    0x1F01FF: "Full control",
    0x1301BF: "Modify",
    0x1201BF: "Read & execute with write",
    0x1200A9: "Read & execute",
    0x120089: "Read",
    0x100116: "Write",
}

# Propagation flags (OBJECT_INHERIT 0x1, CONTAINER_INHERIT 0x2, INHERIT_ONLY 0x8)
APPLIES_TO = {
    "this_folder_only": 0x0000,
    "this_folder_files": 0x0001,
    "this_folder_subfolders": 0x0002,
    "this_folder_subfolders_files": 0x0003,
    "files_only": 0x0009,
    "subfolders_only": 0x000A,
    "subfolders_files": 0x000B,
}

DEFAULT_APPLIES_TO = "this_folder_subfolders_files"

DEFAULT_SUFFIXES = {
    "Read": "R",
    "Write": "W",
    "Modify": "M",
    "FullControl": "F",
}

SYSTEM_SID = "S-1-5-18"
CREATOR_OWNER_SID = "S-1-3-0"
SYSTEM = "SYSTEM"
CREATOR_OWNER = "CREATOR OWNER"


def rights_name(mask: int) -> str:
    """Human readable name for an access mask."""
    return RIGHTS_NAMES.get(mask, f"Special (0x{mask:X})")


def tier_for_rights(mask: int) -> Optional[str]:
    """Return the tier granting exactly ``mask``, or None."""
    for tier, rights in TIER_RIGHTS.items():
        if rights == mask:
            return tier
    return None


def object_name_for(target: str, name: Optional[str] = None) -> str:
    """
    Object name used in group names for a target path.

    Args:
        target: Full path of the directory or file
        name: Explicit object name overriding the leaf name of ``target``

    Returns:
        ``name`` if given, otherwise the last component of ``target``
    """
    if name:
        return name
    leaf = ntpath.basename(ntpath.normpath(target))
    if not leaf:
        raise ValueError(f"Cannot derive an object name from '{target}', pass one explicitly")
    return leaf


def compose_group_name(prefix: str, delimiter: str, object_name: str, suffix: str) -> str:
    """
    Build the name of the permission group for one tier of an object.

    Raises:
        ValueError: if the suffix is empty or contains the delimiter
    """
    if not suffix:
        raise ValueError("Group suffix must not be empty")
    if delimiter and delimiter in suffix:
        raise ValueError(f"Group suffix '{suffix}' must not contain the delimiter '{delimiter}'")
    return f"{prefix}{delimiter}{object_name}{delimiter}{suffix}"


def group_stem(prefix: str, delimiter: str, object_name: str) -> str:
    """The part of every group name that is shared by all tiers of an object."""
    return f"{prefix}{delimiter}{object_name}{delimiter}"


def match_group_suffix(group_name: str, prefix: str, delimiter: str, object_name: str) -> Optional[str]:
    """
    Split a group name against the convention for one object.

    Comparison is case-insensitive, like Windows account names.

    Returns:
        The suffix if ``group_name`` is a permission group of the object,
        otherwise None
    """
    stem = group_stem(prefix, delimiter, object_name)
    if not group_name.lower().startswith(stem.lower()):
        return None
    suffix = group_name[len(stem):]
    if not suffix or (delimiter and delimiter in suffix):
        return None
    return suffix


def follows_convention(group_name: str, prefix: str, delimiter: str, object_name: str,
                       suffixes: Optional[List[str]] = None) -> bool:
    """
    True if ``group_name`` is a permission group of the object.

    With ``suffixes`` the match is restricted to those suffixes, otherwise any
    suffix is accepted.
    """
    suffix = match_group_suffix(group_name, prefix, delimiter, object_name)
    if suffix is None:
        return False
    if suffixes is None:
        return True
    return suffix.lower() in {s.lower() for s in suffixes}


def tier_suffixes(read: Optional[str] = None, write: Optional[str] = None,
                  modify: Optional[str] = None, full_control: Optional[str] = None) -> Dict[str, Optional[str]]:
    """Build a tier -> suffix mapping; None (or empty) marks a tier as not requested."""
    return {
        "Read": read or None,
        "Write": write or None,
        "Modify": modify or None,
        "FullControl": full_control or None,
    }


def requested_tiers(suffixes: Dict[str, Optional[str]]) -> List[Tuple[str, str]]:
    """Requested (tier, suffix) pairs in tier order."""
    unknown = set(suffixes) - set(TIERS)
    if unknown:
        raise ValueError(f"Unknown permission tier(s): {', '.join(sorted(unknown))}")
    return [(tier, suffixes[tier]) for tier in TIERS if suffixes.get(tier)]


def group_names_for(prefix: str, delimiter: str, object_name: str,
                    suffixes: Dict[str, Optional[str]]) -> List[Tuple[str, str]]:
    """Composed (tier, group name) pairs for every requested tier."""
    return [
        (tier, compose_group_name(prefix, delimiter, object_name, suffix))
        for tier, suffix in requested_tiers(suffixes)
    ]
