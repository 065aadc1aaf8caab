"""
Collaborator interfaces for the group directory and the ACL store.

Every operation in this package receives its collaborators explicitly; the
Windows implementations live in win_groups and win_acl and are only imported
by get_backends().
"""

import sys
from typing import Dict, List, Optional, Tuple

from .errors import PlatformNotSupportedError


class GroupDirectory:
    """Local security groups, addressed by name."""

    def create_group(self, name: str, description: str) -> None:
        """Create a local group. Raises GroupExistsError on a name collision."""
        raise NotImplementedError

    def list_groups(self) -> List[Dict]:
        """Return every local group as {'name': ..., 'description': ...}."""
        raise NotImplementedError

    def delete_group(self, name: str) -> None:
        """Delete a local group. Raises GroupNotFoundError if it does not exist."""
        raise NotImplementedError


class AclStore:
    """
    DACLs of filesystem objects.

    ACEs are exchanged as dicts with the keys principal, sid, rights,
    inherited, applies_to and ace_type ('grant' or 'deny').
    """

    def get_aces(self, path: str) -> List[Dict]:
        """Return every ACE of ``path`` in DACL order."""
        raise NotImplementedError

    def add_ace(self, path: str, principal: str, rights: int, applies_to: str) -> None:
        """Add an explicit grant ACE. Raises PrincipalNotFoundError for unknown principals."""
        raise NotImplementedError

    def remove_aces(self, path: str, principal: str, rights: Optional[int] = None) -> int:
        """
        Remove the explicit ACEs of ``principal`` (only those with ``rights``
        when given). Returns the number of ACEs removed.
        """
        raise NotImplementedError

    def get_inheritance(self, path: str) -> bool:
        """True if ``path`` inherits ACEs from its parent."""
        raise NotImplementedError

    def set_inheritance(self, path: str, enabled: bool, clear: bool = False) -> None:
        """
        Enable or disable inheritance on ``path``.

        When disabling, ``clear`` drops the inherited ACEs instead of keeping
        them as explicit copies. When enabling, ``clear`` drops every explicit
        ACE so that only inherited ones remain.
        """
        raise NotImplementedError


def get_backends() -> Tuple[GroupDirectory, AclStore]:
    """
    Instantiate the Windows group directory and ACL store.

    Raises:
        PlatformNotSupportedError: when not running on Windows
    """
    if sys.platform != "win32":
        raise PlatformNotSupportedError(
            f"NTFS ACL management needs Windows (running on {sys.platform})"
        )

    from .win_acl import WinAclStore
    from .win_groups import WinGroupDirectory

    return WinGroupDirectory(), WinAclStore()
