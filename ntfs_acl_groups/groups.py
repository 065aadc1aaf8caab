"""
Permission group lifecycle: create and delete the local groups of a target.
"""

from typing import Dict, List, Optional

from .backends import GroupDirectory
from .naming import follows_convention, group_names_for, object_name_for
from .transaction import Transaction, record


def format_description(description: str, target: str, tier: str) -> str:
    """Expand the {path} and {tier} placeholders of a group description."""
    return description.replace("{path}", target).replace("{tier}", tier)


def create_groups(directory: GroupDirectory, target: str, prefix: str, delimiter: str,
                  suffixes: Dict[str, Optional[str]], description: str = "",
                  name: Optional[str] = None, transaction: Optional[Transaction] = None) -> List[Dict]:
    """
    Create one local group per requested permission tier of a target.

    Args:
        directory: Group directory collaborator
        target: Full path of the directory or file
        prefix: Group name prefix
        delimiter: Separator between prefix, object name and suffix
        suffixes: Tier -> suffix mapping, None marks a tier as not requested
        description: Group description, may use {path} and {tier}
        name: Object name overriding the leaf name of ``target``
        transaction: Records a group deletion as undo for every creation

    Returns:
        Records {'name', 'description', 'status'} of the created groups

    Raises:
        GroupExistsError: on the first name collision. Groups created before
        the collision are left in place.
    """
    object_name = object_name_for(target, name)
    created = []

    for tier, group_name in group_names_for(prefix, delimiter, object_name, suffixes):
        group_description = format_description(description, target, tier)
        directory.create_group(group_name, group_description)
        record(transaction, f"create group {group_name}",
               lambda group_name=group_name: directory.delete_group(group_name))
        print(f"✅ Created group {group_name} ({tier})")
        created.append({
            "name": group_name,
            "description": group_description,
            "status": "Created",
        })

    return created


def find_groups(directory: GroupDirectory, target: str, prefix: str, delimiter: str,
                suffixes: Optional[Dict[str, Optional[str]]] = None, remove_all: bool = False,
                name: Optional[str] = None) -> List[Dict]:
    """Return the groups of the directory that belong to a target."""
    object_name = object_name_for(target, name)
    if remove_all or suffixes is None:
        allowed = None
    else:
        allowed = [suffix for suffix in suffixes.values() if suffix]
        if not allowed:
            return []

    return [
        group for group in directory.list_groups()
        if follows_convention(group["name"], prefix, delimiter, object_name, allowed)
    ]


def delete_groups(directory: GroupDirectory, target: str, prefix: str, delimiter: str,
                  suffixes: Optional[Dict[str, Optional[str]]] = None, remove_all: bool = False,
                  name: Optional[str] = None, dry_run: bool = False,
                  transaction: Optional[Transaction] = None) -> List[Dict]:
    """
    Delete the permission groups of a target.

    Matching is done on the decomposed name: the group must start with
    ``prefix + delimiter + object + delimiter`` and end in a delimiter-free
    suffix. With ``remove_all`` every suffix matches, otherwise only the
    suffixes of the requested tiers.

    Returns:
        Audit records {'name', 'description', 'status'}; status is 'Deleted',
        or 'WhatIf' in dry-run mode
    """
    matches = find_groups(directory, target, prefix, delimiter, suffixes, remove_all, name)
    if not matches:
        print("ℹ️  No matching groups found")
        return []

    records = []
    for group in matches:
        if dry_run:
            print(f"   Would delete group: {group['name']}")
            status = "WhatIf"
        else:
            directory.delete_group(group["name"])
            record(transaction, f"delete group {group['name']}",
                   lambda group=group: directory.create_group(group["name"], group.get("description", "")))
            print(f"✅ Deleted group {group['name']}")
            status = "Deleted"
        records.append({
            "name": group["name"],
            "description": group.get("description", ""),
            "status": status,
        })

    return records
