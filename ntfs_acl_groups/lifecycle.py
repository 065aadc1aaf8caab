"""
Install / Uninstall: group creation and ACE grants as one operation.

By default a failure leaves every completed step in place. With
``rollback=True`` the completed steps are undone in reverse order before the
original error is re-raised.
"""

from typing import Dict, Optional

from .backends import AclStore, GroupDirectory
from .groups import create_groups, delete_groups
from .naming import DEFAULT_APPLIES_TO
from .permissions import grant_permissions, revoke_permissions
from .transaction import Transaction


def install(directory: GroupDirectory, store: AclStore, target: str, prefix: str, delimiter: str,
            suffixes: Dict[str, Optional[str]], description: str = "",
            applies_to: str = DEFAULT_APPLIES_TO, name: Optional[str] = None,
            rollback: bool = False) -> Dict:
    """
    Create the permission groups of a target, then grant their ACEs.

    Returns:
        {'groups': created group records, 'granted': (group, tier) pairs}
    """
    with Transaction(enabled=rollback) as tx:
        groups = create_groups(directory, target, prefix, delimiter, suffixes, description,
                               name, transaction=tx)
        granted = grant_permissions(store, target, prefix, delimiter, suffixes, applies_to,
                                    name, transaction=tx)
    return {"groups": groups, "granted": granted}


def uninstall(directory: GroupDirectory, store: AclStore, target: str, prefix: str, delimiter: str,
              suffixes: Optional[Dict[str, Optional[str]]] = None, unpublish_all: bool = False,
              name: Optional[str] = None, rollback: bool = False) -> Dict:
    """
    Revoke the ACEs of a target's permission groups, then delete the groups.

    ``unpublish_all`` removes every convention group of the object instead of
    only the requested tiers.

    Returns:
        {'revoked': principal names, 'groups': deleted group records}
    """
    with Transaction(enabled=rollback) as tx:
        revoked = revoke_permissions(store, target, prefix, delimiter, suffixes, unpublish_all,
                                     name, transaction=tx)
        groups = delete_groups(directory, target, prefix, delimiter, suffixes,
                               remove_all=unpublish_all, name=name, transaction=tx)
    return {"revoked": revoked, "groups": groups}
