#!/usr/bin/env python3
"""
Shared configuration utilities for the NTFS ACL group tools.

This module provides shared functions for:
- Locating the configuration file
- Reading naming convention defaults (prefix, delimiter, tier suffixes)
- Validating propagation scope, log directory and scan depth settings
"""

import configparser
import os
from typing import Dict, Optional

from .naming import APPLIES_TO, DEFAULT_APPLIES_TO, DEFAULT_SUFFIXES

CONFIG_ENV_VAR = "NTFS_ACL_GROUPS_CONFIG"
DEFAULT_CONFIG_PATH = "~/.config/ntfs-acl-groups/config.ini"

DEFAULTS = {
    "prefix": "AclGroup",
    "delimiter": "-",
    "read": DEFAULT_SUFFIXES["Read"],
    "write": DEFAULT_SUFFIXES["Write"],
    "modify": DEFAULT_SUFFIXES["Modify"],
    "full_control": DEFAULT_SUFFIXES["FullControl"],
    "description": "Permission group for {path}",
    "applies_to": DEFAULT_APPLIES_TO,
    "log_dir": "~/ntfs-acl-groups-logs",
    "depth": "2",
}


def find_config_path(config_path: Optional[str] = None) -> str:
    """
    Resolve which configuration file to read.

    Args:
        config_path: Explicit path. If None, the NTFS_ACL_GROUPS_CONFIG
                     environment variable and then the default location are used.

    Returns:
        Expanded path of the configuration file (it may not exist)
    """
    if config_path is None:
        config_path = os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH)
    return os.path.expanduser(config_path)


def load_settings(config_path: Optional[str] = None) -> Optional[Dict]:
    """
    Read the [defaults] section of the configuration file.

    Missing keys (or a missing file) fall back to the built-in defaults.

    Args:
        config_path: Path of the configuration file, see find_config_path

    Returns:
        Settings dictionary if valid, None otherwise
    """
    conf_path = find_config_path(config_path)
    settings = dict(DEFAULTS)

    if os.path.exists(conf_path):
        config = configparser.ConfigParser(interpolation=None)
        try:
            config.read(conf_path, encoding="utf-8")
        except configparser.Error as e:
            print(f"Error: Could not parse config file {conf_path}: {e}")
            return None

        if config.has_section("defaults"):
            for key, value in config["defaults"].items():
                if key not in DEFAULTS:
                    print(f"Warning: Ignoring unknown setting '{key}' in {conf_path}")
                    continue
                settings[key] = value
    elif config_path is not None:
        print(f"Error: config file not found at {conf_path}")
        return None

    if not validate_settings(settings, conf_path):
        return None

    settings["depth"] = int(settings["depth"])
    settings["log_dir"] = os.path.expanduser(settings["log_dir"])
    return settings


def validate_settings(settings: Dict, conf_path: str) -> bool:
    """
    Validate settings values.

    Args:
        settings: Raw settings (strings as read from the file)
        conf_path: Path used in error messages

    Returns:
        True if settings are valid, False otherwise
    """
    if settings["applies_to"] not in APPLIES_TO:
        print(f"Error: Invalid applies_to '{settings['applies_to']}' in {conf_path}")
        print(f"Valid values: {', '.join(APPLIES_TO)}")
        return False

    try:
        depth = int(settings["depth"])
    except ValueError:
        print(f"Error: depth must be an integer, got '{settings['depth']}' in {conf_path}")
        return False
    if depth < 0:
        print(f"Error: depth must not be negative in {conf_path}")
        return False

    delimiter = settings["delimiter"]
    for key in ("read", "write", "modify", "full_control"):
        if delimiter and delimiter in settings[key]:
            print(f"Error: suffix '{settings[key]}' for {key} contains the delimiter '{delimiter}'")
            return False

    return True
