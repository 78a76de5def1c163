"""Validate manifest command implementation."""

import sys
from pathlib import Path

import click

from devstrap import ConfigError, format_error
from devstrap.commands.utils import build_installers, load_selected_manifest


@click.command(name="validate")
@click.argument(
    "manifest_path",
    required=False,
    type=click.Path(path_type=Path, dir_okay=False),
)
def config_validate(manifest_path: Path | None):
    """Check a manifest for errors and summarize its batches."""
    try:
        path, manifest = load_selected_manifest(manifest_path)
        build_installers(manifest.batches)
    except ConfigError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)

    click.echo(f"✅ {path} is valid")
    for batch in manifest.batches:
        settings = manifest.settings_for(batch)
        click.echo(
            f"  {batch.ecosystem}: {len(batch.targets)} packages "
            f"(concurrency {settings.concurrency}, "
            f"{settings.max_attempts} attempts, "
            f"{settings.backoff} backoff {settings.backoff_seconds:g}s)"
        )
