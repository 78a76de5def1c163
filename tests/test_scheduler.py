"""Tests for the bounded batch scheduler."""

import asyncio

import pytest

from devstrap.engine import (
    AttemptPolicy,
    CancelToken,
    Failure,
    InstallOutcome,
    OutcomeKind,
    Scheduler,
    Target,
    fixed_backoff,
    run_batch,
)
from tests.fakes import FakeInstaller, wait_until


def test_concurrency_must_be_positive():
    with pytest.raises(ValueError, match="concurrency"):
        Scheduler(FakeInstaller(), concurrency=0)
    with pytest.raises(ValueError, match="concurrency"):
        Scheduler(FakeInstaller(), concurrency=True)


class TestSchedulerRun:
    @pytest.mark.asyncio
    async def test_scenario_present_recovered_failed(self, no_wait_policy):
        batch = [Target("A"), Target("B"), Target("C")]
        installer = FakeInstaller(
            present={"A"},
            scripts={
                "B": [Failure("lock held"), Failure("lock held")],
                "C": Failure("build failed"),
            },
        )

        report = await Scheduler(installer, no_wait_policy).run(batch)

        assert report["A"].kind == OutcomeKind.ALREADY_PRESENT
        assert report["B"].kind == OutcomeKind.INSTALLED
        assert installer.calls_for("B") == 3
        assert report["C"].kind == OutcomeKind.FAILED
        assert report["C"].attempts == 3
        assert installer.calls_for("A") == 0
        counts = report.counts
        assert (counts.present, counts.installed, counts.failed) == (1, 1, 1)
        assert report.is_final

    @pytest.mark.asyncio
    async def test_one_failure_does_not_abort_batch(self, no_wait_policy):
        batch = [Target(f"pkg{i}") for i in range(8)]
        installer = FakeInstaller(scripts={"pkg3": Failure("broken")})

        report = await Scheduler(installer, no_wait_policy, concurrency=3).run(batch)

        assert len(report) == 8
        failed = [o for o in report.outcomes if o.is_failed]
        assert [o.target.name for o in failed] == ["pkg3"]
        assert report.counts.installed == 7

    @pytest.mark.asyncio
    @pytest.mark.parametrize("concurrency", [1, 2, 4])
    async def test_in_flight_installs_never_exceed_concurrency(
        self, no_wait_policy, concurrency
    ):
        batch = [Target(f"pkg{i}") for i in range(12)]
        installer = FakeInstaller(delay=0.01)

        await Scheduler(installer, no_wait_policy, concurrency=concurrency).run(batch)

        assert installer.max_in_flight <= concurrency
        assert len(installer.install_calls) == 12

    @pytest.mark.asyncio
    async def test_parallel_batch_uses_the_pool(self, no_wait_policy):
        batch = [Target(f"pkg{i}") for i in range(8)]
        installer = FakeInstaller(delay=0.02)

        await Scheduler(installer, no_wait_policy, concurrency=4).run(batch)

        assert installer.max_in_flight == 4

    @pytest.mark.asyncio
    async def test_failures_follow_batch_order(self, no_wait_policy):
        batch = [Target("slow"), Target("fast"), Target("ok")]

        class Timed(FakeInstaller):
            async def install(self, target):
                await asyncio.sleep(0.05 if target.name == "slow" else 0)
                return Failure(f"{target.name} failed") if target.name != "ok" else None

        report = await Scheduler(Timed(), no_wait_policy, concurrency=3).run(batch)

        assert [f.target.name for f in report.failures] == ["slow", "fast"]

    @pytest.mark.asyncio
    async def test_empty_batch(self, no_wait_policy):
        report = await Scheduler(FakeInstaller(), no_wait_policy, concurrency=4).run([])
        assert len(report) == 0
        assert report.is_final
        assert report.ok

    @pytest.mark.asyncio
    async def test_duplicate_names_get_one_outcome(self, no_wait_policy):
        installer = FakeInstaller()
        report = await Scheduler(installer, no_wait_policy).run(
            [Target("git"), Target("git", label="again")]
        )
        assert len(report) == 1
        assert installer.install_calls == ["git"]

    @pytest.mark.asyncio
    async def test_broken_retry_predicate_still_returns_full_report(self):
        def broken(failure):
            raise RuntimeError("predicate broke")

        policy = AttemptPolicy(max_attempts=2, backoff=fixed_backoff(0), is_retryable=broken)
        installer = FakeInstaller(scripts={"b": [Failure("lock held")]})

        report = await Scheduler(installer, policy, concurrency=2).run(
            [Target("a"), Target("b"), Target("c")]
        )

        assert report.is_final
        assert len(report) == 3
        assert report["a"].kind == OutcomeKind.INSTALLED
        assert report["c"].kind == OutcomeKind.INSTALLED
        assert report["b"].kind == OutcomeKind.FAILED
        assert "predicate broke" in report["b"].reason

    @pytest.mark.asyncio
    async def test_dispatch_errors_become_failed_outcomes(self, no_wait_policy, monkeypatch):
        async def exploding_dispatch(target, *args):
            if target.name == "b":
                raise RuntimeError("dispatcher bug")
            return InstallOutcome.installed(target, 1)

        monkeypatch.setattr("devstrap.engine.scheduler.dispatch", exploding_dispatch)

        report = await Scheduler(FakeInstaller(), no_wait_policy).run(
            [Target("a"), Target("b"), Target("c")]
        )

        assert len(report) == 3
        assert report["b"].kind == OutcomeKind.FAILED
        assert report["b"].reason == "RuntimeError: dispatcher bug"
        assert report.counts.installed == 2

    @pytest.mark.asyncio
    async def test_callback_receives_every_outcome(self, no_wait_policy, targets):
        seen = []
        scheduler = Scheduler(
            FakeInstaller(), no_wait_policy, concurrency=2, on_outcome=seen.append
        )
        await scheduler.run(targets)
        assert sorted(o.target.name for o in seen) == sorted(t.name for t in targets)

    @pytest.mark.asyncio
    async def test_callback_errors_are_ignored(self, no_wait_policy, targets):
        def explode(outcome):
            raise RuntimeError("display broke")

        scheduler = Scheduler(FakeInstaller(), no_wait_policy, on_outcome=explode)
        report = await scheduler.run(targets)
        assert report.counts.installed == len(targets)

    @pytest.mark.asyncio
    async def test_run_batch_helper(self, no_wait_policy, targets):
        report = await run_batch(targets, FakeInstaller(present={"jq"}), no_wait_policy, 2)
        assert report.counts.present == 1
        assert report.counts.installed == 3


class TestSchedulerCancellation:
    @pytest.mark.asyncio
    async def test_cancel_during_backoff_cancels_remaining(self):
        batch = [Target("a"), Target("b"), Target("c")]
        installer = FakeInstaller(scripts={"a": Failure("timeout")})
        policy = AttemptPolicy(max_attempts=3, backoff=fixed_backoff(30))
        scheduler = Scheduler(installer, policy, concurrency=1)

        task = asyncio.create_task(scheduler.run(batch))
        await wait_until(lambda: installer.calls_for("a") == 1)
        scheduler.cancel()
        report = await asyncio.wait_for(task, timeout=2)

        assert installer.install_calls == ["a"]
        assert report["a"].cancelled and report["a"].attempts == 1
        assert report["b"].cancelled and report["b"].attempts == 0
        assert report["c"].cancelled
        assert report.counts.failed == 3
        assert report.counts.cancelled == 3
        assert report.is_final

    @pytest.mark.asyncio
    async def test_in_flight_install_finishes_after_cancel(self, no_wait_policy):
        batch = [Target("a"), Target("b")]
        installer = FakeInstaller(delay=0.1)
        scheduler = Scheduler(installer, no_wait_policy, concurrency=1)

        task = asyncio.create_task(scheduler.run(batch))
        await wait_until(lambda: installer.in_flight == 1)
        scheduler.cancel()
        report = await asyncio.wait_for(task, timeout=2)

        assert report["a"].kind == OutcomeKind.INSTALLED
        assert report["b"].cancelled
        assert installer.install_calls == ["a"]

    @pytest.mark.asyncio
    async def test_shared_token_cancels_later_batches(self, no_wait_policy, targets):
        token = CancelToken()
        token.cancel()
        installer = FakeInstaller()

        report = await Scheduler(installer, no_wait_policy, token=token).run(targets)

        assert report.counts.cancelled == len(targets)
        assert installer.check_calls == []
        assert installer.install_calls == []
