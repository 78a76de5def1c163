"""Bounded worker pool fanning a batch out to dispatchers."""

import asyncio
import logging
from collections.abc import Callable, Sequence

from .cancellation import CancelToken
from .dispatcher import dispatch
from .models import InstallOutcome, Installer, Target
from .policy import AttemptPolicy
from .report import Report

_logging = logging.getLogger(__name__)

OutcomeCallback = Callable[[InstallOutcome], None]


class Scheduler:
    """Run every target of a batch with at most ``concurrency`` in flight.

    A failed target never stops the batch. Only the cancel token ends it
    early, and even then every target still receives an outcome.
    """

    def __init__(
        self,
        installer: Installer,
        policy: AttemptPolicy | None = None,
        concurrency: int = 1,
        token: CancelToken | None = None,
        on_outcome: OutcomeCallback | None = None,
    ):
        if isinstance(concurrency, bool) or not isinstance(concurrency, int) or concurrency < 1:
            raise ValueError("concurrency must be an integer >= 1")
        self.installer = installer
        self.policy = policy or AttemptPolicy()
        self.concurrency = concurrency
        self.token = token or CancelToken()
        self.on_outcome = on_outcome

    def cancel(self) -> None:
        self.token.cancel()

    async def run(self, batch: Sequence[Target]) -> Report:
        report = Report(batch)
        queue: asyncio.Queue[Target] = asyncio.Queue()
        for target in report.targets:
            queue.put_nowait(target)

        worker_count = min(self.concurrency, len(report.targets))
        _logging.debug(
            f"Dispatching {len(report.targets)} targets on {worker_count} workers"
        )
        workers = [
            asyncio.create_task(self._worker(queue, report))
            for _ in range(worker_count)
        ]
        if workers:
            await asyncio.gather(*workers)

        report.finalize()
        return report

    async def _worker(self, queue: asyncio.Queue[Target], report: Report) -> None:
        while True:
            try:
                target = queue.get_nowait()
            except asyncio.QueueEmpty:
                return

            if self.token.cancelled:
                outcome = InstallOutcome.cancelled_before(target)
            else:
                outcome = await self._dispatch(target)

            report.record(outcome)
            self._notify(outcome)

    async def _dispatch(self, target: Target) -> InstallOutcome:
        try:
            return await dispatch(target, self.installer, self.policy, self.token)
        except Exception as e:
            reason = f"{type(e).__name__}: {e}"
            _logging.error(f"Dispatch failed for {target.name}: {reason}")
            return InstallOutcome.failed(target, reason, 0)

    def _notify(self, outcome: InstallOutcome) -> None:
        if self.on_outcome is None:
            return
        try:
            self.on_outcome(outcome)
        except Exception as e:
            _logging.warning(
                f"Outcome callback failed for {outcome.target.name}: {type(e).__name__}: {e}"
            )


async def run_batch(
    batch: Sequence[Target],
    installer: Installer,
    policy: AttemptPolicy | None = None,
    concurrency: int = 1,
    token: CancelToken | None = None,
) -> Report:
    scheduler = Scheduler(installer, policy, concurrency=concurrency, token=token)
    return await scheduler.run(batch)


__all__ = [
    "Scheduler",
    "run_batch",
]
