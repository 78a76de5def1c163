"""Data models for the installation engine."""

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

CANCELLED_REASON = "cancelled"


@dataclass(frozen=True)
class Target:
    """One installable unit submitted to the engine."""

    name: str
    source: str | None = None
    label: str | None = None

    def __post_init__(self):
        if not self.name or not isinstance(self.name, str):
            raise ValueError("name must be a non-empty string")

    @property
    def display_name(self) -> str:
        return self.label or self.name


@dataclass(frozen=True)
class Failure:
    """Why a single install attempt did not succeed.

    ``already_exists`` is set by installer adapters when the package manager
    reports that the artifact is already there under another name or path.
    ``retryable`` is the adapter's own classification, read by the default
    retry predicate.
    """

    reason: str
    already_exists: bool = False
    retryable: bool = True


class OutcomeKind(Enum):
    ALREADY_PRESENT = "already_present"
    INSTALLED = "installed"
    FAILED = "failed"


@dataclass(frozen=True)
class InstallOutcome:
    target: Target
    kind: OutcomeKind
    reason: str | None = None
    attempts: int = 0
    cancelled: bool = False

    @classmethod
    def already_present(cls, target: Target, attempts: int = 0) -> "InstallOutcome":
        return cls(target, OutcomeKind.ALREADY_PRESENT, attempts=attempts)

    @classmethod
    def installed(cls, target: Target, attempts: int) -> "InstallOutcome":
        return cls(target, OutcomeKind.INSTALLED, attempts=attempts)

    @classmethod
    def failed(
        cls, target: Target, reason: str, attempts: int, cancelled: bool = False
    ) -> "InstallOutcome":
        return cls(
            target,
            OutcomeKind.FAILED,
            reason=reason,
            attempts=attempts,
            cancelled=cancelled,
        )

    @classmethod
    def cancelled_before(cls, target: Target, attempts: int = 0) -> "InstallOutcome":
        return cls.failed(target, CANCELLED_REASON, attempts, cancelled=True)

    @property
    def is_failed(self) -> bool:
        return self.kind == OutcomeKind.FAILED

    @property
    def status_icon(self) -> str:
        if self.kind == OutcomeKind.INSTALLED:
            return "✅"
        if self.kind == OutcomeKind.ALREADY_PRESENT:
            return "⏭️"
        if self.cancelled:
            return "⏹️"
        return "❌"


class Installer(Protocol):
    """Presence check and install for a Target, one per package manager."""

    async def is_present(self, target: Target) -> bool:
        """Return True when the target is already installed. Must not mutate state."""
        ...

    async def install(self, target: Target) -> Failure | None:
        """Install the target. Returns None on success, a Failure otherwise."""
        ...


__all__ = [
    "CANCELLED_REASON",
    "Target",
    "Failure",
    "OutcomeKind",
    "InstallOutcome",
    "Installer",
]
