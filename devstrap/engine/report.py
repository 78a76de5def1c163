"""Aggregation of install outcomes into a batch report."""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from .models import InstallOutcome, OutcomeKind, Target

_logging = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportCounts:
    present: int = 0
    installed: int = 0
    failed: int = 0
    cancelled: int = 0

    @property
    def total(self) -> int:
        return self.present + self.installed + self.failed

    def as_dict(self) -> dict[str, int]:
        return {
            "present": self.present,
            "installed": self.installed,
            "failed": self.failed,
            "cancelled": self.cancelled,
        }


@dataclass(frozen=True)
class FailureRecord:
    target: Target
    reason: str
    attempts: int
    cancelled: bool = False


def tally(outcomes: Iterable[InstallOutcome]) -> ReportCounts:
    """Count outcomes by kind. ``cancelled`` is a subset of ``failed``."""
    present = installed = failed = cancelled = 0
    for outcome in outcomes:
        if outcome.kind == OutcomeKind.ALREADY_PRESENT:
            present += 1
        elif outcome.kind == OutcomeKind.INSTALLED:
            installed += 1
        else:
            failed += 1
            if outcome.cancelled:
                cancelled += 1
    return ReportCounts(present, installed, failed, cancelled)


class Report:
    """Outcomes of one batch run, keyed by target name.

    Populated incrementally while the batch runs and read-only once
    finalized. Ordered views always follow batch submission order.
    """

    def __init__(self, batch: Iterable[Target]):
        self._targets: dict[str, Target] = {}
        for target in batch:
            if target.name in self._targets:
                _logging.warning(f"Duplicate target '{target.name}' in batch, ignoring")
                continue
            self._targets[target.name] = target
        self._outcomes: dict[str, InstallOutcome] = {}
        self._counts = {kind: 0 for kind in OutcomeKind}
        self._cancelled = 0
        self._final = False

    @classmethod
    def from_outcomes(
        cls, batch: Iterable[Target], outcomes: Iterable[InstallOutcome]
    ) -> "Report":
        report = cls(batch)
        for outcome in outcomes:
            report.record(outcome)
        report.finalize()
        return report

    def record(self, outcome: InstallOutcome) -> None:
        name = outcome.target.name
        if self._final:
            raise ValueError("Report is finalized")
        if name not in self._targets:
            raise ValueError(f"Target '{name}' is not part of this batch")
        if name in self._outcomes:
            raise ValueError(f"Target '{name}' already has an outcome")

        self._outcomes[name] = outcome
        self._counts[outcome.kind] += 1
        if outcome.cancelled:
            self._cancelled += 1

    def finalize(self) -> None:
        self._final = True

    @property
    def is_final(self) -> bool:
        return self._final

    @property
    def targets(self) -> tuple[Target, ...]:
        return tuple(self._targets.values())

    @property
    def outcomes(self) -> list[InstallOutcome]:
        return [self._outcomes[n] for n in self._targets if n in self._outcomes]

    @property
    def pending(self) -> list[Target]:
        return [t for n, t in self._targets.items() if n not in self._outcomes]

    @property
    def counts(self) -> ReportCounts:
        return ReportCounts(
            present=self._counts[OutcomeKind.ALREADY_PRESENT],
            installed=self._counts[OutcomeKind.INSTALLED],
            failed=self._counts[OutcomeKind.FAILED],
            cancelled=self._cancelled,
        )

    def recount(self) -> ReportCounts:
        return tally(self._outcomes.values())

    @property
    def failures(self) -> list[FailureRecord]:
        return [
            FailureRecord(o.target, o.reason or "unknown error", o.attempts, o.cancelled)
            for o in self.outcomes
            if o.is_failed
        ]

    @property
    def ok(self) -> bool:
        return self._counts[OutcomeKind.FAILED] == 0

    def get(self, name: str) -> InstallOutcome | None:
        return self._outcomes.get(name)

    def __getitem__(self, name: str) -> InstallOutcome:
        return self._outcomes[name]

    def __contains__(self, name: object) -> bool:
        return name in self._outcomes

    def __len__(self) -> int:
        return len(self._outcomes)


__all__ = [
    "ReportCounts",
    "FailureRecord",
    "Report",
    "tally",
]
