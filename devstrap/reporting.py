"""Rendering of batches and reports, and the failure log."""

import logging
from collections.abc import Sequence
from datetime import datetime
from pathlib import Path

from devstrap.engine import InstallOutcome, OutcomeKind, Report, Target

_logging = logging.getLogger(__name__)


def render_outcome(outcome: InstallOutcome) -> str:
    name = outcome.target.display_name
    if outcome.kind == OutcomeKind.INSTALLED:
        suffix = "" if outcome.attempts <= 1 else f" (after {outcome.attempts} attempts)"
        return f"{outcome.status_icon} {name} installed{suffix}"
    if outcome.kind == OutcomeKind.ALREADY_PRESENT:
        return f"{outcome.status_icon} {name} already installed, skipping"
    if outcome.cancelled:
        return f"{outcome.status_icon} {name} cancelled"
    return f"{outcome.status_icon} {name} failed after {outcome.attempts} attempt(s): {outcome.reason}"


def render_batch(name: str, targets: Sequence[Target]) -> str:
    lines = [f"Batch: {name} ({len(targets)} packages)"]
    for i, target in enumerate(targets, 1):
        line = f"  {i}. {target.display_name}"
        if target.source:
            line += f"  [{target.source}]"
        lines.append(line)
    return "\n".join(lines)


def render_report(name: str, report: Report) -> str:
    counts = report.counts
    lines = [
        f"{name}: {counts.installed} installed, {counts.present} already present, "
        f"{counts.failed} failed"
    ]
    if counts.cancelled:
        lines[0] += f" ({counts.cancelled} cancelled)"

    failures = report.failures
    if failures:
        lines.append("Failures:")
        for record in failures:
            if record.cancelled:
                lines.append(f"  ⏹️  {record.target.display_name}: cancelled")
            else:
                lines.append(
                    f"  ❌ {record.target.display_name}: {record.reason} "
                    f"({record.attempts} attempt(s))"
                )
    return "\n".join(lines)


def append_failure_log(path: Path, ecosystem: str, report: Report) -> int:
    """Append one timestamped line per failure to ``path``.

    Returns:
        Number of lines written
    """
    failures = report.failures
    if not failures:
        return 0

    stamp = datetime.now().strftime("%Y-%m-%d %H:%M:%S")
    lines = []
    for record in failures:
        if record.cancelled:
            detail = "cancelled"
        else:
            detail = f"after {record.attempts} attempt(s): {record.reason}"
        lines.append(
            f"[{stamp}] ERROR: Failed to install {ecosystem} package "
            f"{record.target.name} {detail}\n"
        )

    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "a", encoding="utf-8") as f:
        f.writelines(lines)
    _logging.debug(f"Appended {len(lines)} failure(s) to {path}")
    return len(lines)


__all__ = [
    "render_outcome",
    "render_batch",
    "render_report",
    "append_failure_log",
]
