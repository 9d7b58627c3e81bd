"""Run claimer: atomically move due runs from pending/queued to running.

The select and the update happen in one transaction and the select uses
FOR UPDATE SKIP LOCKED, so concurrent claimers (other ticks, other
processes) never receive the same run and never wait on each other's
locks: a locked row is left for the next tick.
"""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.application.dtos.flow import FlowRunResult
from app.infrastructure.persistence.models.flow_run import FlowRun
from app.infrastructure.persistence.repositories.flow_run_repo import run_to_result
from app.shared.enums import FlowRunStatus
from app.shared.telemetry.logging import get_logger
from app.shared.utils.datetime import utc_now

logger = get_logger(__name__)


async def claim_due_runs(
    session: AsyncSession,
    limit: int,
    *,
    now: datetime | None = None,
    organization_id: str | None = None,
) -> list[FlowRunResult]:
    """Lock up to `limit` due runs and mark them running inside the caller's transaction.

    Due means status pending/queued, a non-null flow, and started_at unset
    or not in the future. Order: started_at ascending (nulls last), then id.
    """
    if limit < 1:
        return []
    current = now or utc_now()
    q = (
        select(FlowRun)
        .where(
            FlowRun.status.in_([s.value for s in FlowRunStatus.claimable()]),
            FlowRun.flow_id.is_not(None),
            or_(FlowRun.started_at.is_(None), FlowRun.started_at <= current),
        )
        .order_by(FlowRun.started_at.asc().nulls_last(), FlowRun.id.asc())
        .limit(limit)
        .with_for_update(skip_locked=True)
    )
    if organization_id is not None:
        q = q.where(FlowRun.organization_id == organization_id)
    result = await session.execute(q)
    runs = list(result.scalars().all())
    for run in runs:
        run.status = FlowRunStatus.RUNNING.value
        run.claimed_at = current
        run.attempts = (run.attempts or 0) + 1
    if runs:
        await session.flush()
    return [run_to_result(r) for r in runs]


class RunClaimer:
    """Claims batches of runs, each batch in its own committed transaction."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        batch_size: int = 5,
    ) -> None:
        self._session_factory = session_factory
        self.batch_size = batch_size

    async def claim(
        self,
        *,
        organization_id: str | None = None,
        now: datetime | None = None,
    ) -> list[FlowRunResult]:
        """Claim up to batch_size runs and commit the transition before returning them."""
        async with self._session_factory() as session:
            async with session.begin():
                claimed = await claim_due_runs(
                    session,
                    self.batch_size,
                    now=now,
                    organization_id=organization_id,
                )
        if claimed:
            logger.info(
                "Claimed %d run(s): %s",
                len(claimed),
                ", ".join(r.id for r in claimed),
            )
        return claimed
