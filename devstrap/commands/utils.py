"""Shared utility functions for commands."""

import logging
from pathlib import Path

import click

from devstrap.config import BatchConfig, Manifest, load_manifest
from devstrap.installers import CommandInstaller, get_installer
from devstrap.paths import get_manifest_path, get_packaged_manifest_path

_logging = logging.getLogger(__name__)

MANIFEST_OPTION_HELP = (
    "Manifest file (default: $DEVSTRAP_MANIFEST, ~/.config/devstrap/manifest.yaml, "
    "then the packaged defaults)"
)


def resolve_manifest_path(path: Path | None) -> Path:
    """Pick the manifest to load.

    An explicit path always wins. Otherwise the user manifest is used when it
    exists, falling back to the packaged default manifest.
    """
    if path is not None:
        return path
    user_path = get_manifest_path()
    if user_path.exists():
        return user_path
    _logging.debug(f"No manifest at {user_path}, using packaged defaults")
    return get_packaged_manifest_path()


def load_selected_manifest(path: Path | None) -> tuple[Path, Manifest]:
    manifest_path = resolve_manifest_path(path)
    return manifest_path, load_manifest(manifest_path)


def build_installers(
    batches: list[BatchConfig],
) -> list[tuple[BatchConfig, CommandInstaller]]:
    """Resolve an installer per batch up front so bad ecosystems fail before any install.

    Raises:
        ConfigError: If a batch names an unknown ecosystem without custom commands
    """
    return [(batch, get_installer(batch.ecosystem, batch.commands)) for batch in batches]


def ecosystem_options(func):
    """Attach the --only/--skip ecosystem filters."""
    func = click.option(
        "--skip",
        multiple=True,
        metavar="ECOSYSTEM",
        help="Skip a batch by ecosystem name (repeatable)",
    )(func)
    func = click.option(
        "--only",
        multiple=True,
        metavar="ECOSYSTEM",
        help="Run only the named ecosystem batches (repeatable)",
    )(func)
    return func
