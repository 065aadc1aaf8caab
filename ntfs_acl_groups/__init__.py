"""
NTFS ACL Group Management Package

This package manages Windows NTFS permissions through local security groups
that follow a naming convention tied to the folder they protect and to a
permission tier (Read, Write, Modify, FullControl).

Modules:
- acl_manager: Command line interface (create, delete, grant, revoke, install, uninstall, reset, scan)
- naming: Group naming convention, tier rights and propagation flags
- groups: Permission group lifecycle
- permissions: ACE lifecycle and ACL listing
- lifecycle: Install / uninstall with optional rollback
- reset: Hard and soft reset of an ACL tree
- scanner: Find directories with non-inherited permissions
- config_utils: Shared configuration utilities
- win_groups, win_acl: pywin32 implementations of the group directory and ACL store
"""

__version__ = "1.0.0"
__author__ = "NTFS ACL Groups Project"
