"""Installer adapter driven by shell command templates."""

import logging
import shlex
from collections.abc import Iterable

from devstrap.engine import Failure, Target
from devstrap.execution import CHECK_TIMEOUT, INSTALL_TIMEOUT, run_command_async

_logging = logging.getLogger(__name__)

MAX_REASON_LENGTH = 200


def render_command(template: str, target: Target) -> str:
    """Fill ``{name}`` and ``{source}`` placeholders with shell-quoted values.

    ``{source}`` falls back to the target name when no source hint is set.
    """
    return template.format(
        name=shlex.quote(target.name),
        source=shlex.quote(target.source or target.name),
    )


def _summarize(output: str) -> str:
    lines = [line.strip() for line in output.splitlines() if line.strip()]
    if not lines:
        return "command failed with no output"
    reason = lines[-1]
    if len(reason) > MAX_REASON_LENGTH:
        reason = reason[: MAX_REASON_LENGTH - 3] + "..."
    return reason


class CommandInstaller:
    """Installer that shells out to a package manager.

    ``check`` must exit 0 exactly when the package is installed. Output of a
    failed ``install`` is scanned for ``already_exists_markers`` (the package
    is present under another name or path) and ``terminal_markers`` (retrying
    cannot help, e.g. the package does not exist).
    """

    def __init__(
        self,
        ecosystem: str,
        check: str,
        install: str,
        timeout: float = INSTALL_TIMEOUT,
        check_timeout: float = CHECK_TIMEOUT,
        already_exists_markers: Iterable[str] = (),
        terminal_markers: Iterable[str] = (),
    ):
        self.ecosystem = ecosystem
        self.check = check
        self.install_template = install
        self.timeout = timeout
        self.check_timeout = check_timeout
        self.already_exists_markers = tuple(already_exists_markers)
        self.terminal_markers = tuple(terminal_markers)

    def __repr__(self) -> str:
        return f"CommandInstaller(ecosystem={self.ecosystem!r})"

    async def is_present(self, target: Target) -> bool:
        command = render_command(self.check, target)
        _, returncode = await run_command_async(command, timeout=self.check_timeout)
        return returncode == 0

    async def install(self, target: Target) -> Failure | None:
        command = render_command(self.install_template, target)
        output, returncode = await run_command_async(command, timeout=self.timeout)
        if returncode == 0:
            _logging.debug(f"[{self.ecosystem}] installed {target.name}")
            return None
        return self.classify(output)

    def classify(self, output: str) -> Failure:
        """Turn the output of a failed install into a Failure."""
        lowered = output.lower()
        already_exists = any(m.lower() in lowered for m in self.already_exists_markers)
        terminal = any(m.lower() in lowered for m in self.terminal_markers)
        return Failure(
            reason=_summarize(output),
            already_exists=already_exists,
            retryable=not terminal,
        )


__all__ = [
    "CommandInstaller",
    "render_command",
]
