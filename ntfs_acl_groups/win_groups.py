"""
Local group directory backed by the Windows NetLocalGroup API (pywin32).
"""

from typing import Dict, List, Optional

import pywintypes
import win32net

from .backends import GroupDirectory
from .errors import AclGroupsError, GroupExistsError, GroupNotFoundError

# lmerr.h / winerror.h
NERR_GroupExists = 2223
ERROR_ALIAS_EXISTS = 1379
NERR_GroupNotFound = 2220
ERROR_NO_SUCH_ALIAS = 1376


class WinGroupDirectory(GroupDirectory):
    """Groups of the local machine (server=None)."""

    def __init__(self, server: Optional[str] = None):
        self.server = server

    def create_group(self, name: str, description: str) -> None:
        try:
            win32net.NetLocalGroupAdd(self.server, 1, {"name": name, "comment": description})
        except pywintypes.error as exc:
            if exc.winerror in (NERR_GroupExists, ERROR_ALIAS_EXISTS):
                raise GroupExistsError(f"Group already exists: {name}") from exc
            raise AclGroupsError(f"Failed to create group {name}: {exc.strerror}") from exc

    def list_groups(self) -> List[Dict]:
        groups = []
        resume = 0
        while True:
            entries, _total, resume = win32net.NetLocalGroupEnum(self.server, 1, resume)
            for entry in entries:
                groups.append({"name": entry["name"], "description": entry.get("comment", "")})
            if not resume:
                break
        return groups

    def delete_group(self, name: str) -> None:
        try:
            win32net.NetLocalGroupDel(self.server, name)
        except pywintypes.error as exc:
            if exc.winerror in (NERR_GroupNotFound, ERROR_NO_SUCH_ALIAS):
                raise GroupNotFoundError(f"Group not found: {name}") from exc
            raise AclGroupsError(f"Failed to delete group {name}: {exc.strerror}") from exc
