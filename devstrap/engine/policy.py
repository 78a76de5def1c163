"""Retry policy: attempt bound, backoff, and retryability."""

from collections.abc import Callable
from dataclasses import dataclass, field

from .models import Failure

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BACKOFF_SECONDS = 2.0
BACKOFF_STRATEGIES = ("fixed", "linear")

Backoff = Callable[[int], float]


def fixed_backoff(seconds: float) -> Backoff:
    """Same delay after every failed attempt."""
    if seconds < 0:
        raise ValueError("backoff seconds must be >= 0")

    def _delay(attempt: int) -> float:
        return seconds

    return _delay


def linear_backoff(step: float, initial: float = 0.0) -> Backoff:
    """Delay grows by ``step`` with each attempt: initial + step * attempt."""
    if step < 0 or initial < 0:
        raise ValueError("backoff step and initial delay must be >= 0")

    def _delay(attempt: int) -> float:
        return initial + step * attempt

    return _delay


def default_is_retryable(failure: Failure) -> bool:
    return failure.retryable


@dataclass(frozen=True)
class AttemptPolicy:
    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    backoff: Backoff = field(default=fixed_backoff(DEFAULT_BACKOFF_SECONDS))
    is_retryable: Callable[[Failure], bool] = default_is_retryable

    def __post_init__(self):
        if (
            isinstance(self.max_attempts, bool)
            or not isinstance(self.max_attempts, int)
            or self.max_attempts < 1
        ):
            raise ValueError("max_attempts must be an integer >= 1")

    def delay_for(self, attempt: int) -> float:
        """Seconds to wait after the given 1-based attempt failed."""
        return max(0.0, float(self.backoff(attempt)))

    def should_retry(self, failure: Failure, attempt: int) -> bool:
        if attempt >= self.max_attempts:
            return False
        return bool(self.is_retryable(failure))


def build_policy(
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    backoff_seconds: float = DEFAULT_BACKOFF_SECONDS,
    strategy: str = "fixed",
) -> AttemptPolicy:
    """Build a policy from plain configuration values.

    Args:
        max_attempts: Attempts per target, at least 1
        backoff_seconds: Fixed delay, or per-attempt step for "linear"
        strategy: One of BACKOFF_STRATEGIES

    Raises:
        ValueError: If any value is out of range or the strategy is unknown
    """
    if strategy == "fixed":
        backoff = fixed_backoff(backoff_seconds)
    elif strategy == "linear":
        backoff = linear_backoff(backoff_seconds)
    else:
        raise ValueError(
            f"Unknown backoff strategy '{strategy}'. "
            f"Expected one of: {', '.join(BACKOFF_STRATEGIES)}"
        )
    return AttemptPolicy(max_attempts=max_attempts, backoff=backoff)


__all__ = [
    "DEFAULT_MAX_ATTEMPTS",
    "DEFAULT_BACKOFF_SECONDS",
    "BACKOFF_STRATEGIES",
    "AttemptPolicy",
    "fixed_backoff",
    "linear_backoff",
    "default_is_retryable",
    "build_policy",
]
