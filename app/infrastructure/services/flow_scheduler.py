"""Flow scheduler: asyncio loop that claims due runs and executes them on a cron schedule.

One tick = reap stale runs, claim a batch, execute each claimed run
sequentially in its own session. A tick never raises: failures are logged
and the loop waits for the next fire time.

stop() lets the in-flight run finish within the grace period. Claimed runs
that have not started go back to queued; a run cut off by cancellation is
recorded as error run_cancelled, so shutdown never leaves a run running.

The process owns exactly one scheduler through init_scheduler(), which
stores the handle on its owner (FastAPI app.state) instead of a module
global.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from datetime import datetime
from typing import Any

from croniter import croniter
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.application.dtos.flow import FlowRunResult
from app.core.config import Settings
from app.infrastructure.external.channels.protocols import ChannelDispatcher
from app.infrastructure.persistence.repositories.flow_run_repo import FlowRunRepository
from app.infrastructure.services.flow_executor import (
    RUN_CANCELLED,
    FlowExecutor,
    build_executor,
)
from app.infrastructure.services.run_claimer import RunClaimer
from app.shared.telemetry.logging import get_logger
from app.shared.telemetry.tracing import TracedOperation, add_span_attributes
from app.shared.utils.datetime import utc_now

logger = get_logger(__name__)

ExecutorFactory = Callable[[AsyncSession], FlowExecutor]


class FlowScheduler:
    """Periodic claim-and-execute loop. Use start()/stop(), or tick() for a single pass."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        executor_factory: ExecutorFactory,
        *,
        cron: str = "* * * * *",
        batch_size: int = 5,
        stale_run_threshold_seconds: int = 0,
        stale_run_action: str = "fail",
        stop_grace_seconds: float = 10.0,
        claimer: RunClaimer | None = None,
    ) -> None:
        if not croniter.is_valid(cron):
            raise ValueError(f"Invalid scheduler cron expression: {cron!r}")
        self._session_factory = session_factory
        self._executor_factory = executor_factory
        self._cron = cron
        self._stale_threshold = stale_run_threshold_seconds
        self._stale_action = stale_run_action
        self._stop_grace = stop_grace_seconds
        self._claimer = claimer or RunClaimer(session_factory, batch_size=batch_size)
        self._task: asyncio.Task[None] | None = None
        self._stopping = asyncio.Event()

    @classmethod
    def from_settings(
        cls,
        session_factory: async_sessionmaker[AsyncSession],
        dispatcher: ChannelDispatcher,
        settings: Settings,
    ) -> FlowScheduler:
        return cls(
            session_factory,
            lambda session: build_executor(session, dispatcher, settings),
            cron=settings.scheduler_cron,
            batch_size=settings.scheduler_batch_size,
            stale_run_threshold_seconds=settings.stale_run_threshold_seconds,
            stale_run_action=settings.stale_run_action,
            stop_grace_seconds=settings.scheduler_stop_grace_seconds,
        )

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def next_fire_time(self, now: datetime | None = None) -> datetime:
        """Next cron fire time strictly after now (UTC)."""
        return croniter(self._cron, now or utc_now()).get_next(datetime)

    # Lifecycle

    async def start(self) -> None:
        if self.running:
            logger.info("Flow scheduler already started")
            return
        self._stopping.clear()
        self._task = asyncio.create_task(self._loop(), name="flows-scheduler")
        logger.info("Flow scheduler started (cron=%r)", self._cron)

    async def stop(self) -> None:
        """Wait up to the grace period for the in-flight tick, then cancel the loop."""
        task = self._task
        if task is not None:
            self._stopping.set()
            try:
                await asyncio.wait_for(asyncio.shield(task), self._stop_grace)
            except TimeoutError:
                logger.warning(
                    "Flow scheduler tick still running after %.1fs; cancelling",
                    self._stop_grace,
                )
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
            self._task = None
        logger.info("Flow scheduler stopped")

    async def _loop(self) -> None:
        while not self._stopping.is_set():
            now = utc_now()
            delay = max((self.next_fire_time(now) - now).total_seconds(), 0.0)
            try:
                await asyncio.wait_for(self._stopping.wait(), delay)
            except TimeoutError:
                await self.tick()

    # Core tick

    async def tick(self) -> int:
        """Run one pass. Returns the number of runs executed; never raises.

        Cancellation is re-raised after the claimed runs are resolved.
        """
        processed = 0
        with TracedOperation("flows.scheduler.tick"):
            try:
                await self._reap_stale()
                claimed = await self._claimer.claim()
                add_span_attributes(**{"runs.claimed": len(claimed)})
                for index, run in enumerate(claimed):
                    if self._stopping.is_set():
                        await self._release(claimed[index:])
                        break
                    try:
                        await self._execute_one(run)
                    except asyncio.CancelledError:
                        await asyncio.shield(self._abandon(run, claimed[index + 1 :]))
                        raise
                    processed += 1
            except Exception:
                logger.exception("Flow scheduler tick failed")
        return processed

    async def _reap_stale(self) -> None:
        if self._stale_threshold <= 0:
            return
        async with self._session_factory() as session:
            async with session.begin():
                await FlowRunRepository(session).reap_stale(
                    self._stale_threshold, action=self._stale_action
                )

    async def _execute_one(self, run: FlowRunResult) -> None:
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    await self._executor_factory(session).execute(run)
        except Exception:
            # Storage failure while recording the outcome; the reaper resolves the run later.
            logger.exception("Run %s could not be finalized", run.id)

    async def _release(self, unstarted: list[FlowRunResult]) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                await FlowRunRepository(session).release_claimed([r.id for r in unstarted])

    async def _abandon(self, current: FlowRunResult, unstarted: list[FlowRunResult]) -> None:
        """End the cancelled run as error and release the runs queued behind it."""
        try:
            async with self._session_factory() as session:
                async with session.begin():
                    repo = FlowRunRepository(session)
                    await repo.mark_error(
                        current.id, current.organization_id, RUN_CANCELLED, steps=[]
                    )
                    await repo.release_claimed([r.id for r in unstarted])
        except Exception:
            logger.exception("Runs of the cancelled tick could not be resolved")


async def init_scheduler(
    owner: Any,
    session_factory: async_sessionmaker[AsyncSession],
    dispatcher: ChannelDispatcher,
    settings: Settings,
) -> FlowScheduler:
    """Create and start the owner's scheduler, or return the one already running.

    The handle lives on owner.flow_scheduler (e.g. app.state), so repeated
    initialization in one process never starts a second loop.
    """
    existing: FlowScheduler | None = getattr(owner, "flow_scheduler", None)
    if existing is not None and existing.running:
        logger.info("Flow scheduler already started")
        return existing
    scheduler = existing or FlowScheduler.from_settings(
        session_factory, dispatcher, settings
    )
    owner.flow_scheduler = scheduler
    await scheduler.start()
    return scheduler
