"""
ACL store backed by GetNamedSecurityInfo / SetNamedSecurityInfo (pywin32).

Removals edit the DACL that was read, so ACEs of types not managed here
(object, callback and conditional ACEs) are kept. Additions rebuild the
explicit part in canonical order and refuse to run when that would drop such
an ACE. When the DACL is unprotected Windows recomputes the inherited part
from the parent.
"""

from typing import Dict, List, Optional, Tuple

import pywintypes
import win32security

from .backends import AclStore
from .errors import AclAccessError, PrincipalNotFoundError
from .naming import APPLIES_TO

ERROR_FILE_NOT_FOUND = 2
ERROR_PATH_NOT_FOUND = 3
ERROR_ACCESS_DENIED = 5
ERROR_NONE_MAPPED = 1332

# OBJECT_INHERIT | CONTAINER_INHERIT | NO_PROPAGATE_INHERIT | INHERIT_ONLY
PROPAGATION_MASK = 0x000F

ACE_TYPES = {
    win32security.ACCESS_ALLOWED_ACE_TYPE: "grant",
    win32security.ACCESS_DENIED_ACE_TYPE: "deny",
}

# (ace_type, ace_flags, mask, PySID)
RawAce = Tuple[Optional[int], int, int, object]


def _applies_to_name(ace_flags: int) -> str:
    propagation = ace_flags & PROPAGATION_MASK
    for name, value in APPLIES_TO.items():
        if value == propagation:
            return name
    return f"special_0x{propagation:X}"


def get_sid(principal: str):
    """
    Resolve an account name or string SID to a PySID.

    Raises:
        PrincipalNotFoundError: if the principal cannot be resolved
    """
    try:
        if principal.upper().startswith("S-1-"):
            return win32security.ConvertStringSidToSid(principal)
        return win32security.LookupAccountName(None, principal)[0]
    except pywintypes.error as exc:
        raise PrincipalNotFoundError(f"Invalid user/group or sid: {principal}") from exc


def get_name(sid) -> str:
    """Account name (without domain) for a PySID, or its string SID if unmapped."""
    try:
        return win32security.LookupAccountSid(None, sid)[0]
    except pywintypes.error as exc:
        if exc.winerror == ERROR_NONE_MAPPED:
            return win32security.ConvertSidToStringSid(sid)
        raise AclAccessError(f"Cannot look up account of {sid}: {exc.strerror}") from exc


def _entries(dacl) -> List[Tuple[int, RawAce, bool]]:
    """Index, raw ACE and whether it is a plain allow/deny ACE, for every ACE of a DACL."""
    entries = []
    if dacl is None:
        return entries
    for i in range(dacl.GetAceCount()):
        try:
            ace = dacl.GetAce(i)
        except NotImplementedError:
            # callback and conditional ACEs cannot be decoded by pywin32
            entries.append((i, (None, 0, 0, None), False))
            continue
        (ace_type, ace_flags), mask = ace[0], ace[1]
        managed = ace_type in ACE_TYPES
        entries.append((i, (ace_type, ace_flags, mask, ace[2] if managed else None), managed))
    return entries


def _is_inherited(raw: RawAce) -> bool:
    return bool(raw[1] & win32security.INHERITED_ACE)


class WinAclStore(AclStore):
    """DACLs of files and directories on the local machine."""

    def _read(self, path: str) -> Tuple[object, bool]:
        """Return the DACL and whether it is protected."""
        try:
            sd = win32security.GetNamedSecurityInfo(
                path, win32security.SE_FILE_OBJECT, win32security.DACL_SECURITY_INFORMATION
            )
        except pywintypes.error as exc:
            if exc.winerror in (ERROR_FILE_NOT_FOUND, ERROR_PATH_NOT_FOUND):
                raise AclAccessError(f"System cannot find {path}") from exc
            raise AclAccessError(f"Cannot read ACL of {path}: {exc.strerror}") from exc

        control, _revision = sd.GetSecurityDescriptorControl()
        return sd.GetSecurityDescriptorDacl(), bool(control & win32security.SE_DACL_PROTECTED)

    def _save(self, path: str, dacl, protected: bool) -> None:
        if protected:
            info = win32security.DACL_SECURITY_INFORMATION | win32security.PROTECTED_DACL_SECURITY_INFORMATION
        else:
            info = win32security.DACL_SECURITY_INFORMATION | win32security.UNPROTECTED_DACL_SECURITY_INFORMATION

        try:
            win32security.SetNamedSecurityInfo(
                path, win32security.SE_FILE_OBJECT, info, None, None, dacl, None
            )
        except pywintypes.error as exc:
            raise AclAccessError(f"Cannot write ACL of {path}: {exc.strerror}") from exc

    def _rebuild(self, path: str, entries, aces: List[RawAce], protected: bool) -> None:
        """
        Write a new DACL made of ``aces`` in canonical order.

        Raises:
            AclAccessError: if the current DACL holds ACEs that cannot be
                carried over (object, callback or conditional ACEs)
        """
        if any(not managed and (protected or not _is_inherited(raw)) for _i, raw, managed in entries):
            raise AclAccessError(
                f"ACL of {path} holds object or callback ACEs, refusing to rewrite it"
            )
        dacl = win32security.ACL()
        # explicit deny before explicit allow
        ordered = [a for a in aces if a[0] == win32security.ACCESS_DENIED_ACE_TYPE]
        ordered += [a for a in aces if a[0] != win32security.ACCESS_DENIED_ACE_TYPE]
        for ace_type, ace_flags, mask, sid in ordered:
            flags = ace_flags & ~win32security.INHERITED_ACE
            if ace_type == win32security.ACCESS_DENIED_ACE_TYPE:
                dacl.AddAccessDeniedAceEx(win32security.ACL_REVISION_DS, flags, mask, sid)
            else:
                dacl.AddAccessAllowedAceEx(win32security.ACL_REVISION_DS, flags, mask, sid)
        self._save(path, dacl, protected)

    def _delete(self, path: str, dacl, indices: List[int], protected: bool) -> None:
        """Delete ACEs by index from the DACL read, leaving every other ACE untouched."""
        for i in sorted(indices, reverse=True):
            dacl.DeleteAce(i)
        self._save(path, dacl, protected)

    def get_aces(self, path: str) -> List[Dict]:
        dacl, _protected = self._read(path)
        aces = []
        for _i, (ace_type, ace_flags, mask, sid), managed in _entries(dacl):
            if not managed:
                continue
            aces.append({
                "principal": get_name(sid),
                "sid": win32security.ConvertSidToStringSid(sid),
                "rights": mask,
                "inherited": bool(ace_flags & win32security.INHERITED_ACE),
                "applies_to": _applies_to_name(ace_flags),
                "ace_type": ACE_TYPES[ace_type],
            })
        return aces

    def add_ace(self, path: str, principal: str, rights: int, applies_to: str) -> None:
        if applies_to not in APPLIES_TO:
            raise ValueError(f"Invalid applies_to: {applies_to}")
        sid = get_sid(principal)
        dacl, protected = self._read(path)
        entries = _entries(dacl)
        explicit = [raw for _i, raw, _m in entries if not _is_inherited(raw)]
        explicit.append((win32security.ACCESS_ALLOWED_ACE_TYPE, APPLIES_TO[applies_to], rights, sid))
        self._rebuild(path, entries, explicit, protected)

    def remove_aces(self, path: str, principal: str, rights: Optional[int] = None) -> int:
        sid = get_sid(principal)
        dacl, protected = self._read(path)
        matched = [
            i for i, raw, managed in _entries(dacl)
            if managed and not _is_inherited(raw)
            and raw[3] == sid and (rights is None or raw[2] == rights)
        ]
        if matched:
            self._delete(path, dacl, matched, protected)
        return len(matched)

    def get_inheritance(self, path: str) -> bool:
        _dacl, protected = self._read(path)
        return not protected

    def set_inheritance(self, path: str, enabled: bool, clear: bool = False) -> None:
        dacl, _protected = self._read(path)
        entries = _entries(dacl)
        if enabled:
            if clear:
                self._save(path, win32security.ACL(), protected=False)
            else:
                # Windows recomputes the inherited ACEs from the parent
                self._save(path, dacl if dacl is not None else win32security.ACL(), protected=False)
        elif clear:
            inherited = [i for i, raw, _m in entries if _is_inherited(raw)]
            if dacl is None:
                self._save(path, win32security.ACL(), protected=True)
            else:
                self._delete(path, dacl, inherited, protected=True)
        else:
            self._rebuild(path, entries, [raw for _i, raw, _m in entries], protected=True)
