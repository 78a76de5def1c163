"""Status command implementation."""

import asyncio
import sys
from pathlib import Path

import click

from devstrap import ConfigError, format_error, setup_logging
from devstrap.commands.utils import (
    MANIFEST_OPTION_HELP,
    build_installers,
    ecosystem_options,
    load_selected_manifest,
)
from devstrap.engine import Installer, Target

DEFAULT_STATUS_CONCURRENCY = 8


@click.command()
@click.option(
    "--manifest",
    "-m",
    "manifest_path",
    type=click.Path(path_type=Path, dir_okay=False),
    help=MANIFEST_OPTION_HELP,
)
@ecosystem_options
@click.option(
    "--concurrency",
    "-j",
    type=click.IntRange(min=1),
    default=DEFAULT_STATUS_CONCURRENCY,
    show_default=True,
    help="Presence checks run in parallel",
)
@click.option("--quiet", "-q", is_flag=True, help="Show only missing packages")
@click.pass_context
def status(
    ctx,
    manifest_path: Path | None,
    only: tuple[str, ...],
    skip: tuple[str, ...],
    concurrency: int,
    quiet: bool,
):
    """Show which manifest packages are installed."""
    debug = ctx.obj.get("debug", False)
    try:
        asyncio.run(run_status(manifest_path, only, skip, concurrency, quiet, debug))
    except ConfigError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)


async def check_presence(
    installer: Installer, targets: list[Target], concurrency: int
) -> list[bool]:
    """Run presence checks with at most ``concurrency`` in flight, in target order."""
    semaphore = asyncio.Semaphore(concurrency)

    async def _check(target: Target) -> bool:
        async with semaphore:
            return await installer.is_present(target)

    return await asyncio.gather(*[_check(t) for t in targets])


async def run_status(
    manifest_path: Path | None,
    only: tuple[str, ...],
    skip: tuple[str, ...],
    concurrency: int,
    quiet: bool,
    debug: bool,
):
    setup_logging(debug)
    _, manifest = load_selected_manifest(manifest_path)
    plan = build_installers(manifest.select(only, skip))

    total = 0
    missing = 0
    for batch, installer in plan:
        results = await check_presence(installer, batch.targets, concurrency)
        if not quiet:
            click.echo(f"{batch.ecosystem}:")
        for target, present in zip(batch.targets, results):
            total += 1
            if present:
                if not quiet:
                    click.echo(f"  ✅ {target.display_name}")
            else:
                missing += 1
                click.echo(f"  ⚪ {target.display_name}: not installed")

    if missing:
        click.echo(f"\n{missing} of {total} package(s) not installed.")
    else:
        click.echo(f"\nAll {total} package(s) installed.")
