"""devstrap: idempotent, retryable, parallel package installation for workstations."""

import logging
import sys

from devstrap.config import (
    BatchConfig,
    ConfigError,
    EngineSettings,
    Manifest,
    load_manifest,
    validate_manifest,
)
from devstrap.engine import (
    AttemptPolicy,
    CancelToken,
    Failure,
    FailureRecord,
    InstallOutcome,
    Installer,
    OutcomeKind,
    Report,
    ReportCounts,
    Scheduler,
    Target,
    build_policy,
    dispatch,
    fixed_backoff,
    linear_backoff,
    run_batch,
    tally,
)
from devstrap.errors import format_error, format_suggestion
from devstrap.execution import INSTALL_TIMEOUT, run_command_async

__version__ = "0.3.0"

_debug_enabled = False


def set_debug(enabled: bool):
    """Enable or disable debug mode globally."""
    global _debug_enabled
    _debug_enabled = enabled


def is_debug() -> bool:
    """Check if debug mode is enabled."""
    return _debug_enabled


def setup_logging(debug: bool = False) -> None:
    """Configure root logging for CLI runs.

    Debug mode logs every command and retry to stderr; otherwise only
    warnings and errors are shown.
    """
    set_debug(debug)
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.WARNING,
        format="[%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
        force=True,
    )


__all__ = [
    "__version__",
    "set_debug",
    "is_debug",
    "setup_logging",
    "ConfigError",
    "EngineSettings",
    "BatchConfig",
    "Manifest",
    "load_manifest",
    "validate_manifest",
    "Target",
    "Failure",
    "OutcomeKind",
    "InstallOutcome",
    "Installer",
    "AttemptPolicy",
    "build_policy",
    "fixed_backoff",
    "linear_backoff",
    "CancelToken",
    "dispatch",
    "Scheduler",
    "run_batch",
    "Report",
    "ReportCounts",
    "FailureRecord",
    "tally",
    "format_error",
    "format_suggestion",
    "INSTALL_TIMEOUT",
    "run_command_async",
]
