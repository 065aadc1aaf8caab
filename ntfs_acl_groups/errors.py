"""
Exceptions raised by the group directory and ACL store collaborators.
"""


class AclGroupsError(Exception):
    """Base class for every failure reported by ntfs_acl_groups."""


class GroupExistsError(AclGroupsError):
    """A local group with the requested name already exists."""


class GroupNotFoundError(AclGroupsError):
    """The named local group does not exist."""


class PrincipalNotFoundError(AclGroupsError):
    """A user, group or SID could not be resolved."""


class AclAccessError(AclGroupsError):
    """The security descriptor of a path could not be read or written."""


class PlatformNotSupportedError(AclGroupsError):
    """The Windows security APIs are not available on this platform."""
