"""Install command implementation."""

import asyncio
import logging
import signal
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
from devstrap.engine import CancelToken, Scheduler
from devstrap.paths import get_log_path
from devstrap.reporting import (
    append_failure_log,
    render_batch,
    render_outcome,
    render_report,
)

_logging = logging.getLogger(__name__)

_SIGNALS = (signal.SIGINT, signal.SIGTERM)


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
    help="Packages installed in parallel per batch (overrides manifest)",
)
@click.option(
    "--max-attempts",
    type=click.IntRange(min=1),
    help="Attempts per package before giving up (overrides manifest)",
)
@click.option(
    "--backoff",
    "backoff_seconds",
    type=click.FloatRange(min=0),
    help="Seconds to wait between attempts (overrides manifest)",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path, dir_okay=False),
    help="Append failures to this file (default: $DEVSTRAP_LOG or ~/setup_log.txt)",
)
@click.option("--dry-run", is_flag=True, help="List the packages without installing")
@click.option("--strict", is_flag=True, help="Exit with status 1 if any package failed")
@click.pass_context
def install(
    ctx,
    manifest_path: Path | None,
    only: tuple[str, ...],
    skip: tuple[str, ...],
    concurrency: int | None,
    max_attempts: int | None,
    backoff_seconds: float | None,
    log_file: Path | None,
    dry_run: bool,
    strict: bool,
):
    """Install every package batch in the manifest.

    Packages that are already installed are skipped. Failed packages are
    retried, logged, and never stop the remaining installs.
    """
    debug = ctx.obj.get("debug", False)
    try:
        failed = asyncio.run(
            run_install(
                manifest_path,
                only,
                skip,
                concurrency,
                max_attempts,
                backoff_seconds,
                log_file,
                dry_run,
                debug,
            )
        )
    except ConfigError as e:
        click.echo(format_error(str(e)), err=True)
        sys.exit(1)

    if failed and strict:
        sys.exit(1)


def _install_signal_handlers(token: CancelToken) -> list[signal.Signals]:
    loop = asyncio.get_running_loop()

    def _on_signal():
        if not token.cancelled:
            click.echo(
                "\nInstallation interrupted. Finishing in-flight installs...", err=True
            )
        token.cancel()

    installed = []
    for sig in _SIGNALS:
        try:
            loop.add_signal_handler(sig, _on_signal)
        except (NotImplementedError, RuntimeError, ValueError):
            _logging.debug(f"Cannot install handler for {sig!r}")
            continue
        installed.append(sig)
    return installed


def _remove_signal_handlers(signals: list[signal.Signals]) -> None:
    loop = asyncio.get_running_loop()
    for sig in signals:
        loop.remove_signal_handler(sig)


async def run_install(
    manifest_path: Path | None,
    only: tuple[str, ...],
    skip: tuple[str, ...],
    concurrency: int | None,
    max_attempts: int | None,
    backoff_seconds: float | None,
    log_file: Path | None,
    dry_run: bool,
    debug: bool,
) -> int:
    """Run the selected batches in manifest order. Returns the number of failures."""
    setup_logging(debug)
    path, manifest = load_selected_manifest(manifest_path)
    _logging.debug(f"Using manifest {path}")

    batches = manifest.select(only, skip)
    if not batches:
        click.echo("No batches selected.")
        return 0

    if dry_run:
        for batch in batches:
            click.echo(render_batch(batch.ecosystem, batch.targets))
            click.echo("")
        return 0

    plan = build_installers(batches)
    log_path = log_file or manifest.log_file or get_log_path()
    token = CancelToken()
    signals = _install_signal_handlers(token)
    total_failed = 0

    try:
        for batch, installer in plan:
            settings = manifest.settings_for(
                batch,
                concurrency=concurrency,
                max_attempts=max_attempts,
                backoff_seconds=backoff_seconds,
            )
            click.echo(
                f"\nInstalling {batch.ecosystem} packages "
                f"({len(batch.targets)}, {settings.concurrency} at a time)..."
            )
            scheduler = Scheduler(
                installer,
                settings.policy(),
                concurrency=settings.concurrency,
                token=token,
                on_outcome=lambda outcome: click.echo(render_outcome(outcome)),
            )
            report = await scheduler.run(batch.targets)
            click.echo(render_report(batch.ecosystem, report))

            try:
                append_failure_log(log_path, batch.ecosystem, report)
            except OSError as e:
                _logging.warning(f"Could not write failure log {log_path}: {e}")

            total_failed += report.counts.failed
    finally:
        _remove_signal_handlers(signals)

    click.echo("")
    if token.cancelled:
        click.secho("⏹️  Installation cancelled.", fg="yellow", bold=True)
    if total_failed:
        click.secho(
            f"⚠️  {total_failed} package(s) failed to install. Check the log at {log_path}",
            fg="yellow",
        )
    else:
        click.secho("✅ All packages installed.", fg="green")
    return total_failed
