"""Configuration path helpers for devstrap."""

import os
from pathlib import Path


def get_config_dir() -> Path:
    """Return XDG-style config directory: ~/.config/devstrap"""
    return Path.home() / ".config" / "devstrap"


def get_packaged_manifest_path() -> Path:
    """Return path to packaged default manifest (read-only fallback)"""
    return Path(__file__).parent / "data" / "manifest.yaml"


def get_manifest_path() -> Path:
    """Return path to the user manifest.

    Priority:
    1. DEVSTRAP_MANIFEST environment variable (if set)
    2. ~/.config/devstrap/manifest.yaml
    """
    if "DEVSTRAP_MANIFEST" in os.environ:
        return Path(os.environ["DEVSTRAP_MANIFEST"]).expanduser()
    return get_config_dir() / "manifest.yaml"


def get_log_path() -> Path:
    """Return path of the failure log: DEVSTRAP_LOG or ~/setup_log.txt"""
    if "DEVSTRAP_LOG" in os.environ:
        return Path(os.environ["DEVSTRAP_LOG"]).expanduser()
    return Path.home() / "setup_log.txt"
