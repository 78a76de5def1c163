"""Async command execution utilities."""

import asyncio
import logging
import os
import signal
from typing import Tuple

DEFAULT_TIMEOUT = 30
CHECK_TIMEOUT = 60
INSTALL_TIMEOUT = 1800

_logging = logging.getLogger(__name__)


def _kill_group(process: asyncio.subprocess.Process) -> None:
    """Kill the shell and every child it spawned."""
    try:
        os.killpg(process.pid, signal.SIGKILL)
    except ProcessLookupError:
        pass


async def run_command_async(
    command: str, timeout: float = DEFAULT_TIMEOUT
) -> Tuple[str, int]:
    """Run a shell command and return its combined output and return code.

    stderr is appended to stdout so callers can inspect package manager
    diagnostics. A timeout or spawn error is reported as return code 1.
    """
    process = None
    try:
        _logging.debug(f"Running command: {command}")
        process = await asyncio.create_subprocess_shell(
            command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            start_new_session=True,
        )
        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(), timeout=timeout
            )
        except asyncio.TimeoutError:
            _kill_group(process)
            _ = await process.wait()
            _logging.error(f"Command timed out after {timeout} seconds: {command}")
            return f"Command timed out after {timeout} seconds", 1

        output = stdout.decode(errors="replace").strip()
        err = stderr.decode(errors="replace").strip()
        if err:
            _logging.debug(f"stderr: {err}")
            output = f"{output}\n{err}" if output else err
        return output, process.returncode if process.returncode is not None else 1
    except OSError as e:
        _logging.error(f"Command execution failed: {type(e).__name__}: {e} | Command: {command}")
        return f"Error: {str(e)}", 1
    finally:
        if process:
            transport = getattr(process, "_transport", None)
            if transport:
                transport.close()


__all__ = [
    "DEFAULT_TIMEOUT",
    "CHECK_TIMEOUT",
    "INSTALL_TIMEOUT",
    "run_command_async",
]
