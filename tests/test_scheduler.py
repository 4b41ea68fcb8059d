"""Tests for the background sync scheduler."""

import asyncio

import pytest

from src.modules.collector.scheduler import ScheduledJob, SyncScheduler


class TestSyncScheduler:
    """Tests for SyncScheduler."""

    async def test_runs_job_repeatedly_until_stopped(self) -> None:
        calls: list[int] = []
        ran_twice = asyncio.Event()

        async def job() -> None:
            calls.append(1)
            if len(calls) >= 2:
                ran_twice.set()

        scheduler = SyncScheduler()
        scheduler.add_job("commits", job, interval_seconds=0.01)
        scheduler.start()

        await asyncio.wait_for(ran_twice.wait(), timeout=2)
        await scheduler.stop()

        assert not scheduler.running
        count = len(calls)
        await asyncio.sleep(0.05)
        assert len(calls) == count

    async def test_failing_job_keeps_running(self) -> None:
        attempts: list[int] = []
        recovered = asyncio.Event()

        async def flaky() -> None:
            attempts.append(1)
            if len(attempts) == 1:
                raise RuntimeError("first run fails")
            recovered.set()

        scheduler = SyncScheduler()
        scheduler.add_job("deployments", flaky, interval_seconds=0.01)
        scheduler.start()

        await asyncio.wait_for(recovered.wait(), timeout=2)
        await scheduler.stop()

        assert len(attempts) >= 2

    async def test_initial_delay_postpones_first_run(self) -> None:
        calls: list[int] = []

        async def job() -> None:
            calls.append(1)

        scheduler = SyncScheduler()
        scheduler.add_job("users", job, interval_seconds=60, initial_delay_seconds=60)
        scheduler.start()
        await asyncio.sleep(0.02)
        await scheduler.stop()

        assert calls == []

    async def test_cannot_add_jobs_while_running(self) -> None:
        async def job() -> None:
            return None

        scheduler = SyncScheduler()
        scheduler.add_job("users", job, interval_seconds=60, initial_delay_seconds=60)
        scheduler.start()
        try:
            with pytest.raises(RuntimeError):
                scheduler.add_job("other", job, interval_seconds=1)
        finally:
            await scheduler.stop()

        assert [j.name for j in scheduler.jobs] == ["users"]

    async def test_run_once_swallows_errors(self) -> None:
        async def broken() -> None:
            raise ValueError("bad data")

        await SyncScheduler.run_once(ScheduledJob("incidents", broken, interval_seconds=1))

    async def test_stop_without_start(self) -> None:
        await SyncScheduler().stop()
