#!/usr/bin/env python3
"""
NTFS ACL Manager - permission groups named after the folders they protect.

This script manages NTFS permissions through local groups that follow a naming
convention: <prefix><delim><folder><delim><suffix>, one group per permission tier
(Read, Write, Modify, FullControl). It can:
1. Create and delete the permission groups of a folder
2. Grant and revoke the matching ACEs on the folder
3. Install / uninstall both in one go
4. Reset an ACL tree to an inherited baseline (hard or soft)
5. Find directories whose permissions no longer follow inheritance

Prerequisites:
- Windows with pywin32 installed (pip install pywin32)
- An elevated prompt (managing local groups and ACLs needs admin rights)
- Optional defaults in ~/.config/ntfs-acl-groups/config.ini

Usage:
    python -m ntfs_acl_groups.acl_manager <command> <target>... [options]

Commands:
    list <target>...                 - List the ACL of the target(s)
    create-groups <target>...        - Create the permission groups of the target(s)
    delete-groups <target>...        - Delete the permission groups of the target(s)
    grant <target>...                - Grant the permission groups their ACEs
    revoke <target>...               - Revoke the ACEs of the permission groups
    install <target>...              - create-groups followed by grant
    uninstall <target>...            - revoke followed by delete-groups
    hard-reset <target>...           - Make the target the only ACL authority of its tree
    soft-reset <target>...           - Remove every principal outside the naming convention
    find-non-inherited <target>...   - Log directories with non-inherited permissions

Examples:
    python -m ntfs_acl_groups.acl_manager install "D:\\Shares\\Finance"
    python -m ntfs_acl_groups.acl_manager install "D:\\Shares\\Finance" --no-full-control --rollback
    python -m ntfs_acl_groups.acl_manager uninstall "D:\\Shares\\Finance" --unpublish-all
    python -m ntfs_acl_groups.acl_manager delete-groups "D:\\Shares\\Finance" --remove-all --dry-run
    python -m ntfs_acl_groups.acl_manager hard-reset "D:\\Shares\\Finance" --limit-owner
    python -m ntfs_acl_groups.acl_manager find-non-inherited "D:\\Shares" --depth 3
    dir /b /s /ad D:\\Shares | python -m ntfs_acl_groups.acl_manager list -
"""

import argparse
import sys
from typing import Callable, Dict, List, Optional, Tuple

from .backends import AclStore, GroupDirectory, get_backends
from .config_utils import load_settings
from .errors import AclGroupsError
from .groups import create_groups, delete_groups
from .lifecycle import install, uninstall
from .naming import APPLIES_TO, TIERS, tier_suffixes
from .permissions import grant_permissions, list_acl, revoke_permissions
from .reset import hard_reset, soft_reset
from .scanner import find_non_inherited_directories

TIER_OPTIONS = {
    "Read": "read",
    "Write": "write",
    "Modify": "modify",
    "FullControl": "full_control",
}


def read_targets(targets: List[str]) -> List[str]:
    """Expand '-' into the targets piped on stdin, one per line."""
    expanded = []
    for target in targets:
        if target == "-":
            expanded.extend(line.strip() for line in sys.stdin if line.strip())
        else:
            expanded.append(target)
    return expanded


def resolve_suffixes(args: argparse.Namespace, settings: Dict) -> Dict[str, Optional[str]]:
    """
    Tier suffixes from the command line, falling back to the configured defaults.

    --no-<tier> marks a tier as not requested.
    """
    values = {}
    for tier in TIERS:
        option = TIER_OPTIONS[tier]
        if getattr(args, f"no_{option}", False):
            values[option] = None
        elif getattr(args, option, None) is not None:
            values[option] = getattr(args, option)
        else:
            values[option] = settings[option]
    return tier_suffixes(**values)


def process_multiple_targets(targets: List[str], processor_func: Callable[[str], bool],
                             operation_name: str) -> Dict:
    """
    Generic function to process multiple targets with a given processor function.

    A failing target is reported and counted; processing continues with the next one.

    Args:
        targets: List of paths to process, in input order
        processor_func: Function that processes a single target (target) -> bool
        operation_name: Name of the operation for logging (e.g., "group creation")

    Returns:
        Dict with success/failure counts and summary
    """
    successful_items = 0
    failed_items = 0

    for i, target in enumerate(targets, 1):
        print(f"\n{'='*80}")
        print(f"Processing target {i}/{len(targets)}: {target}")
        print(f"{'='*80}")

        try:
            success = processor_func(target)
            if success:
                successful_items += 1
            else:
                failed_items += 1
        except (AclGroupsError, OSError, ValueError) as e:
            print(f"❌ Error processing {target}: {e}")
            failed_items += 1

    print(f"\n{'='*80}")
    print(f"=== {operation_name.title()} Summary ===")
    print(f"Total targets processed: {len(targets)}")
    print(f"Successful: {successful_items}")
    print(f"Failed: {failed_items}")

    if successful_items > 0:
        print(f"✅ Successfully processed {successful_items} target(s)")
    if failed_items > 0:
        print(f"❌ Failed to process {failed_items} target(s)")

    return {
        'successful': successful_items,
        'failed': failed_items,
        'total': len(targets)
    }


def print_group_records(records: List[Dict]) -> None:
    """Print the audit records of created or deleted groups."""
    if not records:
        return
    print(f"\n{'Name':<40} {'Status':<8} Description")
    print("-" * 80)
    for group in records:
        print(f"{group['name']:<40} {group['status']:<8} {group.get('description', '')}")


def build_processor(args: argparse.Namespace, settings: Dict, directory: GroupDirectory,
                    store: AclStore) -> Tuple[Callable[[str], bool], str]:
    """Return the per-target processor and operation name for the parsed command."""
    prefix = args.prefix if args.prefix is not None else settings["prefix"]
    delimiter = args.delimiter if args.delimiter is not None else settings["delimiter"]
    suffixes = resolve_suffixes(args, settings)
    description = getattr(args, "description", None) or settings["description"]
    applies_to = getattr(args, "applies_to", None) or settings["applies_to"]
    name = args.name

    if args.command == 'list':
        def processor(target):
            list_acl(store, target)
            return True
        return processor, "ACL listing"

    if args.command == 'create-groups':
        def processor(target):
            print_group_records(create_groups(directory, target, prefix, delimiter, suffixes,
                                              description, name))
            return True
        return processor, "group creation"

    if args.command == 'delete-groups':
        def processor(target):
            records = delete_groups(directory, target, prefix, delimiter, suffixes,
                                    remove_all=args.remove_all, name=name, dry_run=args.dry_run)
            print_group_records(records)
            return True
        return processor, "group deletion"

    if args.command == 'grant':
        def processor(target):
            grant_permissions(store, target, prefix, delimiter, suffixes, applies_to, name)
            return True
        return processor, "permission grant"

    if args.command == 'revoke':
        def processor(target):
            revoke_permissions(store, target, prefix, delimiter, suffixes,
                               unpublish_all=args.unpublish_all, name=name)
            return True
        return processor, "permission revocation"

    if args.command == 'install':
        def processor(target):
            result = install(directory, store, target, prefix, delimiter, suffixes, description,
                             applies_to, name, rollback=args.rollback)
            print_group_records(result["groups"])
            return True
        return processor, "install"

    if args.command == 'uninstall':
        def processor(target):
            result = uninstall(directory, store, target, prefix, delimiter, suffixes,
                               unpublish_all=args.unpublish_all, name=name, rollback=args.rollback)
            print_group_records(result["groups"])
            return True
        return processor, "uninstall"

    if args.command == 'hard-reset':
        def processor(target):
            hard_reset(store, target, limit_owner=args.limit_owner, verbose=args.verbose)
            return True
        return processor, "hard reset"

    if args.command == 'soft-reset':
        def processor(target):
            soft_reset(store, target, prefix, delimiter, limit_owner=args.limit_owner,
                       name=name, dry_run=args.dry_run)
            return True
        return processor, "soft reset"

    if args.command == 'find-non-inherited':
        depth = args.depth if args.depth is not None else settings["depth"]
        log_dir = args.log_dir or settings["log_dir"]

        def processor(target):
            find_non_inherited_directories(store, target, depth, log_dir, verbose=args.verbose)
            return True
        return processor, "non-inherited scan"

    raise ValueError(f"Unknown command: {args.command}")


def build_parser() -> argparse.ArgumentParser:
    """Command line parser with one subcommand per operation."""
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("targets", nargs="+", help="One or more paths ('-' reads paths from stdin)")
    common.add_argument("--config", default=None, help="Configuration file (default: ~/.config/ntfs-acl-groups/config.ini)")
    common.add_argument("--verbose", "-v", action="store_true", help="Print every ACE read or changed")

    naming = argparse.ArgumentParser(add_help=False)
    naming.add_argument("--prefix", default=None, help="Group name prefix (default: from config, AclGroup)")
    naming.add_argument("--delimiter", default=None, help="Separator between name parts (default: from config, -)")
    naming.add_argument("--name", default=None, help="Object name used in group names (default: leaf name of the target)")

    tiers = argparse.ArgumentParser(add_help=False)
    for tier, option in TIER_OPTIONS.items():
        flag = option.replace("_", "-")
        tiers.add_argument(f"--{flag}", dest=option, default=None, metavar="SUFFIX",
                           help=f"Suffix of the {tier} group (default: from config)")
        tiers.add_argument(f"--no-{flag}", dest=f"no_{option}", action="store_true",
                           help=f"Skip the {tier} tier")

    describe = argparse.ArgumentParser(add_help=False)
    describe.add_argument("--description", default=None,
                          help="Group description, {path} and {tier} are expanded")

    scope = argparse.ArgumentParser(add_help=False)
    scope.add_argument("--applies-to", default=None, choices=list(APPLIES_TO),
                       help="Propagation of granted ACEs (default: this_folder_subfolders_files)")

    parser = argparse.ArgumentParser(description="Manage NTFS permissions through naming-convention groups")
    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    subparsers.add_parser('list', parents=[common], help='List the ACL of the target(s)')

    subparsers.add_parser('create-groups', parents=[common, naming, tiers, describe],
                          help='Create the permission groups of the target(s)')

    delete_parser = subparsers.add_parser('delete-groups', parents=[common, naming, tiers],
                                          help='Delete the permission groups of the target(s)')
    delete_parser.add_argument("--remove-all", action="store_true", help="Delete groups of every suffix")
    delete_parser.add_argument("--dry-run", action="store_true", help="Show what would be deleted without making changes")

    subparsers.add_parser('grant', parents=[common, naming, tiers, scope],
                          help='Grant the permission groups their ACEs on the target(s)')

    revoke_parser = subparsers.add_parser('revoke', parents=[common, naming, tiers],
                                          help='Revoke the ACEs of the permission groups')
    revoke_parser.add_argument("--unpublish-all", action="store_true", help="Revoke every convention group, whatever its tier")

    install_parser = subparsers.add_parser('install', parents=[common, naming, tiers, describe, scope],
                                           help='Create the groups and grant their ACEs')
    install_parser.add_argument("--rollback", action="store_true", help="Undo completed steps if a later step fails")

    uninstall_parser = subparsers.add_parser('uninstall', parents=[common, naming, tiers],
                                             help='Revoke the ACEs and delete the groups')
    uninstall_parser.add_argument("--unpublish-all", action="store_true", help="Remove every convention group, whatever its tier")
    uninstall_parser.add_argument("--rollback", action="store_true", help="Undo completed steps if a later step fails")

    hard_parser = subparsers.add_parser('hard-reset', parents=[common],
                                        help='Make the target the only ACL authority of its tree')
    hard_parser.add_argument("--limit-owner", action="store_true", help="Limit CREATOR OWNER to Modify")

    soft_parser = subparsers.add_parser('soft-reset', parents=[common, naming],
                                        help='Remove every principal outside the naming convention')
    soft_parser.add_argument("--limit-owner", action="store_true", help="Limit CREATOR OWNER to Modify")
    soft_parser.add_argument("--dry-run", action="store_true", help="Show what would be removed without making changes")

    find_parser = subparsers.add_parser('find-non-inherited', parents=[common],
                                        help='Log directories with non-inherited permissions')
    find_parser.add_argument("--depth", type=int, default=None, help="Levels below the target to scan (default: from config, 2)")
    find_parser.add_argument("--log-dir", default=None, help="Directory of the log file (default: from config)")

    return parser


def main(argv: Optional[List[str]] = None,
         backends: Optional[Tuple[GroupDirectory, AclStore]] = None) -> int:
    """Main function"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    # commands without naming options still resolve defaults from config
    for attr in ("prefix", "delimiter", "name"):
        if not hasattr(args, attr):
            setattr(args, attr, None)

    print("NTFS ACL Manager")
    print("=" * 50)

    settings = load_settings(args.config)
    if settings is None:
        return 1

    if backends is None:
        try:
            backends = get_backends()
        except AclGroupsError as e:
            print(f"❌ {e}")
            return 1
        except ImportError:
            print("❌ pywin32 library not found")
            print("Please install it: pip install pywin32")
            return 1
    directory, store = backends

    targets = read_targets(args.targets)
    if not targets:
        print("ℹ️  No targets given")
        return 1

    try:
        processor, operation_name = build_processor(args, settings, directory, store)
    except ValueError as e:
        print(f"❌ {e}")
        return 1

    summary = process_multiple_targets(targets, processor, operation_name)

    print("\n=== ACL Management Complete ===")
    return 0 if summary['failed'] == 0 else 1


if __name__ == "__main__":
    sys.exit(main())
