"""Idempotent, retryable, bounded-parallel package installation engine."""

from .cancellation import CancelToken
from .dispatcher import dispatch
from .models import (
    CANCELLED_REASON,
    Failure,
    InstallOutcome,
    Installer,
    OutcomeKind,
    Target,
)
from .policy import (
    AttemptPolicy,
    build_policy,
    default_is_retryable,
    fixed_backoff,
    linear_backoff,
)
from .report import FailureRecord, Report, ReportCounts, tally
from .scheduler import Scheduler, run_batch

__all__ = [
    "CANCELLED_REASON",
    "Target",
    "Failure",
    "OutcomeKind",
    "InstallOutcome",
    "Installer",
    "AttemptPolicy",
    "build_policy",
    "default_is_retryable",
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
]
