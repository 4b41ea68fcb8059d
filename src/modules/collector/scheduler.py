"""Periodic background execution of the sync jobs."""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import structlog

from src.infrastructure.observability import get_tracer, start_span

logger = structlog.get_logger()
tracer = get_tracer(__name__)


@dataclass
class ScheduledJob:
    """A coroutine run after an initial delay, then at a fixed interval.

    The interval is measured from the end of one run to the start of the
    next, so a job never overlaps itself.
    """

    name: str
    run: Callable[[], Awaitable[object]]
    interval_seconds: float
    initial_delay_seconds: float = 0.0


class SyncScheduler:
    """Runs scheduled jobs as asyncio tasks on the application's event loop."""

    def __init__(self) -> None:
        self._jobs: list[ScheduledJob] = []
        self._tasks: list[asyncio.Task[None]] = []

    @property
    def running(self) -> bool:
        return bool(self._tasks)

    @property
    def jobs(self) -> list[ScheduledJob]:
        return list(self._jobs)

    def add_job(
        self,
        name: str,
        run: Callable[[], Awaitable[object]],
        *,
        interval_seconds: float,
        initial_delay_seconds: float = 0.0,
    ) -> None:
        """Register a job; must be called before ``start``."""
        if self.running:
            raise RuntimeError("Cannot add jobs to a running scheduler")
        self._jobs.append(
            ScheduledJob(
                name=name,
                run=run,
                interval_seconds=interval_seconds,
                initial_delay_seconds=initial_delay_seconds,
            )
        )

    def start(self) -> None:
        if self.running:
            return
        for job in self._jobs:
            self._tasks.append(asyncio.create_task(self._loop(job), name=job.name))
        logger.info("scheduler_started", jobs=[job.name for job in self._jobs])

    async def stop(self) -> None:
        """Cancel all job tasks and wait for them to finish."""
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        if tasks:
            logger.info("scheduler_stopped", jobs=len(tasks))

    async def _loop(self, job: ScheduledJob) -> None:
        await asyncio.sleep(job.initial_delay_seconds)
        while True:
            await self.run_once(job)
            await asyncio.sleep(job.interval_seconds)

    @staticmethod
    async def run_once(job: ScheduledJob) -> None:
        """Run a job in its own span; failures are logged and never propagate."""
        logger.info("scheduled_job_started", job=job.name)
        try:
            async with start_span(tracer, f"sync.{job.name}", {"sync.job": job.name}):
                await job.run()
        except Exception as e:
            logger.exception("scheduled_job_failed", job=job.name, error=str(e))
            return
        logger.info("scheduled_job_finished", job=job.name)
