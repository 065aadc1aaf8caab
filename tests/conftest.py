"""
In-memory group directory and ACL store used by the test suite.
"""

import os

import pytest

from ntfs_acl_groups.backends import AclStore, GroupDirectory
from ntfs_acl_groups.errors import GroupExistsError, GroupNotFoundError, PrincipalNotFoundError
from ntfs_acl_groups.naming import CREATOR_OWNER, CREATOR_OWNER_SID, SYSTEM, SYSTEM_SID

WELL_KNOWN = {
    SYSTEM_SID: SYSTEM,
    CREATOR_OWNER_SID: CREATOR_OWNER,
    "S-1-5-32-544": "Administrators",
    "S-1-5-32-545": "Users",
    "S-1-1-0": "Everyone",
}


class FakeGroupDirectory(GroupDirectory):
    """Local groups kept in a dict, names compared case-insensitively."""

    def __init__(self):
        self.groups = {}

    def create_group(self, name, description):
        if name.lower() in self.groups:
            raise GroupExistsError(f"Group already exists: {name}")
        self.groups[name.lower()] = {"name": name, "description": description}

    def list_groups(self):
        return [dict(group) for group in self.groups.values()]

    def delete_group(self, name):
        if name.lower() not in self.groups:
            raise GroupNotFoundError(f"Group not found: {name}")
        del self.groups[name.lower()]

    def names(self):
        return sorted(group["name"] for group in self.groups.values())


class FakeAclStore(AclStore):
    """
    DACLs kept per normalised path. Principals resolve against the well-known
    SIDs, the groups of an attached directory and any extra accounts.
    """

    def __init__(self, directory=None, accounts=()):
        self.directory = directory
        self.accounts = {name.lower(): name for name in accounts}
        self.entries = {}
        self.issued = {}

    def _entry(self, path):
        key = os.path.normpath(path)
        if key not in self.entries:
            self.entries[key] = {"explicit": [], "inherited": [], "protected": False}
        return self.entries[key]

    def _resolve(self, principal):
        if principal.upper().startswith("S-1-"):
            if principal in WELL_KNOWN:
                return WELL_KNOWN[principal], principal
            if principal in self.issued:
                return self.issued[principal], principal
            raise PrincipalNotFoundError(f"Invalid user/group or sid: {principal}")
        for sid, name in WELL_KNOWN.items():
            if name.lower() == principal.lower():
                return name, sid
        if principal.lower() in self.accounts:
            name = self.accounts[principal.lower()]
            return name, f"S-1-5-21-100-{name}"
        if self.directory is not None and principal.lower() in self.directory.groups:
            name = self.directory.groups[principal.lower()]["name"]
            return name, f"S-1-5-21-200-{name}"
        raise PrincipalNotFoundError(f"Invalid user/group or sid: {principal}")

    def _ace(self, principal, rights, applies_to, inherited):
        name, sid = self._resolve(principal)
        self.issued[sid] = name
        return {
            "principal": name,
            "sid": sid,
            "rights": rights,
            "inherited": inherited,
            "applies_to": applies_to,
            "ace_type": "grant",
        }

    # test helpers

    def seed(self, path, principal, rights, applies_to="this_folder_subfolders_files", inherited=False):
        """Place an ACE on a path without going through add_ace."""
        entry = self._entry(path)
        ace = self._ace(principal, rights, applies_to, inherited)
        if inherited:
            entry["inherited"].append(ace)
        else:
            entry["explicit"].append(ace)

    def explicit(self, path):
        return [dict(ace) for ace in self._entry(path)["explicit"]]

    def snapshot(self):
        return {
            path: {
                "explicit": [dict(ace) for ace in entry["explicit"]],
                "protected": entry["protected"],
            }
            for path, entry in self.entries.items()
        }

    # AclStore

    def get_aces(self, path):
        entry = self._entry(path)
        aces = [dict(ace) for ace in entry["explicit"]]
        if not entry["protected"]:
            aces += [dict(ace) for ace in entry["inherited"]]
        return aces

    def add_ace(self, path, principal, rights, applies_to):
        ace = self._ace(principal, rights, applies_to, inherited=False)
        self._entry(path)["explicit"].append(ace)

    def remove_aces(self, path, principal, rights=None):
        _name, sid = self._resolve(principal)
        entry = self._entry(path)
        kept = [
            ace for ace in entry["explicit"]
            if not (ace["sid"] == sid and (rights is None or ace["rights"] == rights))
        ]
        removed = len(entry["explicit"]) - len(kept)
        entry["explicit"] = kept
        return removed

    def get_inheritance(self, path):
        return not self._entry(path)["protected"]

    def set_inheritance(self, path, enabled, clear=False):
        entry = self._entry(path)
        if enabled:
            entry["protected"] = False
            if clear:
                entry["explicit"] = []
        else:
            if not clear and not entry["protected"]:
                for ace in entry["inherited"]:
                    copied = dict(ace)
                    copied["inherited"] = False
                    entry["explicit"].append(copied)
            entry["protected"] = True


@pytest.fixture
def directory():
    return FakeGroupDirectory()


@pytest.fixture
def store(directory):
    return FakeAclStore(directory, accounts=["alice", "bob"])
