"""Initialize manifest command implementation."""

import shutil
import sys

import click

from devstrap import format_error
from devstrap.paths import get_manifest_path, get_packaged_manifest_path


@click.command(name="init")
@click.option(
    "--force",
    "-f",
    is_flag=True,
    help="Overwrite an existing manifest (creates backup first)",
)
def config_init(force: bool):
    """Create the user manifest from the packaged defaults.

    Writes ~/.config/devstrap/manifest.yaml, or $DEVSTRAP_MANIFEST if set.
    """
    manifest_path = get_manifest_path()

    if manifest_path.exists() and not force:
        click.echo(f"Manifest already exists: {manifest_path}")
        click.echo("Use --force to re-initialize (creates backup first).")
        sys.exit(1)

    try:
        if manifest_path.exists():
            backup_path = manifest_path.with_name(manifest_path.name + ".bak")
            click.echo(f"Backing up existing manifest to {backup_path}...")
            manifest_path.rename(backup_path)
            click.echo("✅ Backup created")

        click.echo(f"Initializing manifest at {manifest_path}...")
        manifest_path.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(get_packaged_manifest_path(), manifest_path)
    except OSError as e:
        click.echo(format_error(f"initialization failed: {e}"), err=True)
        sys.exit(1)

    click.echo("✅ Manifest initialized successfully")
