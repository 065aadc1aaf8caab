"""
ACE lifecycle: grant and revoke the permissions of the convention groups.
"""

from typing import Dict, List, Optional, Tuple

from .backends import AclStore
from .naming import (
    APPLIES_TO,
    DEFAULT_APPLIES_TO,
    TIER_RIGHTS,
    follows_convention,
    group_names_for,
    object_name_for,
    rights_name,
)
from .transaction import Transaction, record


def print_ace_details(ace: Dict) -> None:
    """Print detailed information about a single ACE."""
    inherited = "Yes" if ace.get("inherited") else "No"
    print(f"  Principal: {ace.get('principal', 'N/A')} ({ace.get('sid', 'N/A')})")
    print(f"  Type: {ace.get('ace_type', 'grant')}")
    print(f"  Rights: {rights_name(ace.get('rights', 0))}")
    print(f"  Applies to: {ace.get('applies_to', 'N/A')}")
    print(f"  Inherited: {inherited}")


def list_acl(store: AclStore, target: str) -> List[Dict]:
    """Print and return every ACE of a target."""
    aces = store.get_aces(target)
    inheritance = "enabled" if store.get_inheritance(target) else "disabled"
    print(f"Inheritance: {inheritance}")

    if aces:
        print(f"\n✅ Found {len(aces)} ACE(s) in ACL:")
        print("=" * 60)
        for i, ace in enumerate(aces, 1):
            print(f"\nACE {i}:")
            print_ace_details(ace)
            print("-" * 40)
    else:
        print("ℹ️  No ACEs found for this item (empty ACL)")

    return aces


def grant_permissions(store: AclStore, target: str, prefix: str, delimiter: str,
                      suffixes: Dict[str, Optional[str]], applies_to: str = DEFAULT_APPLIES_TO,
                      name: Optional[str] = None,
                      transaction: Optional[Transaction] = None) -> List[Tuple[str, str]]:
    """
    Add one ACE per requested tier, granting the tier's rights to its group.

    Args:
        store: ACL store collaborator
        target: Full path of the directory or file
        prefix: Group name prefix
        delimiter: Separator between prefix, object name and suffix
        suffixes: Tier -> suffix mapping, None marks a tier as not requested
        applies_to: Propagation scope of the new ACEs
        name: Object name overriding the leaf name of ``target``
        transaction: Records the removal of every granted ACE as undo

    Returns:
        (group name, tier) pairs that were granted

    Raises:
        PrincipalNotFoundError: if a group does not exist; ACEs granted before
        the failure stay in place
    """
    if applies_to not in APPLIES_TO:
        raise ValueError(f"Invalid applies_to: {applies_to}")

    object_name = object_name_for(target, name)
    granted = []
    for tier, group_name in group_names_for(prefix, delimiter, object_name, suffixes):
        rights = TIER_RIGHTS[tier]
        store.add_ace(target, group_name, rights, applies_to)
        record(transaction, f"grant {tier} to {group_name}",
               lambda group_name=group_name, rights=rights: store.remove_aces(target, group_name, rights))
        print(f"✅ Granted {rights_name(rights)} to {group_name} ({applies_to})")
        granted.append((group_name, tier))
    return granted


def _remove_principal(store: AclStore, target: str, principal: str, explicit: List[Dict],
                      transaction: Optional[Transaction]) -> int:
    """Remove the explicit ACEs of one principal, recording how to restore them."""
    count = store.remove_aces(target, principal)
    restore = [
        ace for ace in explicit
        if ace["principal"].lower() == principal.lower() and ace.get("ace_type", "grant") == "grant"
    ]
    if count and restore:
        def undo(restore=restore):
            for ace in restore:
                store.add_ace(target, ace["principal"], ace["rights"], ace["applies_to"])
        record(transaction, f"revoke {principal}", undo)
    return count


def revoke_permissions(store: AclStore, target: str, prefix: str, delimiter: str,
                       suffixes: Optional[Dict[str, Optional[str]]] = None,
                       unpublish_all: bool = False, name: Optional[str] = None,
                       transaction: Optional[Transaction] = None) -> List[str]:
    """
    Remove the ACEs of the convention groups from a target.

    With ``unpublish_all`` every explicit ACE whose principal is a permission
    group of the object is removed, whatever its tier. Otherwise only the
    ACEs of the requested tiers' groups are removed, matched by exact name.

    Returns:
        Names of the principals whose ACEs were removed
    """
    object_name = object_name_for(target, name)
    explicit = [ace for ace in store.get_aces(target) if not ace["inherited"]]
    removed = []

    if unpublish_all:
        principals = []
        for ace in explicit:
            if ace["principal"] in principals:
                continue
            if follows_convention(ace["principal"], prefix, delimiter, object_name):
                principals.append(ace["principal"])
        for principal in principals:
            count = _remove_principal(store, target, principal, explicit, transaction)
            print(f"✅ Removed {count} ACE(s) of {principal}")
            removed.append(principal)
    else:
        for tier, group_name in group_names_for(prefix, delimiter, object_name, suffixes or {}):
            count = _remove_principal(store, target, group_name, explicit, transaction)
            if count:
                print(f"✅ Removed {count} ACE(s) of {group_name} ({tier})")
                removed.append(group_name)
            else:
                print(f"ℹ️  No ACE found for {group_name} ({tier})")

    if not removed:
        print("ℹ️  No permissions to revoke")
    return removed
