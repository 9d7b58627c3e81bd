"""Flow run repository: run creation, terminal transitions, listing and stale-run reaping."""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dtos.flow import FlowRunResult
from app.domain.exceptions import ValidationException
from app.infrastructure.persistence.models.flow_run import FlowRun
from app.infrastructure.persistence.repositories.base import BaseRepository
from app.shared.enums import FlowRunStatus
from app.shared.telemetry.logging import get_logger
from app.shared.utils.datetime import ensure_utc, utc_now

logger = get_logger(__name__)

STALE_RUN_ERROR = "stale_run_timeout"
_TERMINAL = (FlowRunStatus.OK.value, FlowRunStatus.ERROR.value)


def run_to_result(r: FlowRun) -> FlowRunResult:
    """Map FlowRun ORM to FlowRunResult."""
    return FlowRunResult(
        id=r.id,
        flow_id=r.flow_id,
        organization_id=r.organization_id,
        status=r.status,
        error=r.error,
        meta=dict(r.meta or {}),
        started_at=ensure_utc(r.started_at),
        finished_at=ensure_utc(r.finished_at),
        claimed_at=ensure_utc(r.claimed_at),
        attempts=r.attempts or 0,
    )


class FlowRunRepository(BaseRepository[FlowRun]):
    """Flow run repository. Transitions only move forward; terminal runs are never rewritten."""

    resource_name = "run"

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, FlowRun)

    async def get_by_id(self, run_id: str, organization_id: str) -> FlowRunResult | None:
        row = await self.get_entity(run_id, organization_id)
        return run_to_result(row) if row else None

    async def list_by_organization(
        self,
        organization_id: str,
        skip: int = 0,
        limit: int = 100,
        *,
        status: str | None = None,
        flow_id: str | None = None,
    ) -> list[FlowRunResult]:
        """Return runs for the organization, most recent first."""
        q = select(FlowRun).where(FlowRun.organization_id == organization_id)
        if status is not None:
            if status not in FlowRunStatus.values():
                raise ValidationException(f"unknown status: {status}", field="status")
            q = q.where(FlowRun.status == status)
        if flow_id is not None:
            q = q.where(FlowRun.flow_id == flow_id)
        q = q.order_by(FlowRun.started_at.desc().nulls_last(), FlowRun.id.desc())
        result = await self.db.execute(q.offset(skip).limit(limit))
        return [run_to_result(r) for r in result.scalars().all()]

    async def create_queued(
        self, organization_id: str, flow_id: str, meta: dict[str, Any]
    ) -> FlowRunResult:
        """Create a queued run; started_at defaults to now so it is immediately due."""
        run = FlowRun(
            organization_id=organization_id,
            flow_id=flow_id,
            status=FlowRunStatus.QUEUED.value,
            meta=meta,
            started_at=utc_now(),
        )
        created = await self.create(run)
        return run_to_result(created)

    async def create_finished(
        self,
        organization_id: str,
        status: str,
        meta: dict[str, Any],
        *,
        error: str | None = None,
    ) -> FlowRunResult:
        """Record a flow-less run that is already terminal (built-in event handlers)."""
        if status not in _TERMINAL:
            raise ValidationException(f"not a terminal status: {status}", field="status")
        now = utc_now()
        run = FlowRun(
            organization_id=organization_id,
            flow_id=None,
            status=status,
            error=error,
            meta=meta,
            started_at=now,
            finished_at=now,
        )
        created = await self.create(run)
        return run_to_result(created)

    async def _finish(
        self,
        run_id: str,
        organization_id: str,
        status: FlowRunStatus,
        error: str | None,
        steps: list[dict[str, Any]],
    ) -> bool:
        run = await self.get_entity(run_id, organization_id)
        if run is None:
            logger.warning("Run %s not found for organization %s", run_id, organization_id)
            return False
        if run.status in _TERMINAL:
            logger.warning(
                "Run %s already terminal (%s); not moving to %s",
                run_id,
                run.status,
                status.value,
            )
            return False
        run.status = status.value
        run.error = error
        run.finished_at = utc_now()
        run.meta = {**(run.meta or {}), "steps": steps}
        await self.db.flush()
        return True

    async def mark_ok(
        self, run_id: str, organization_id: str, *, steps: list[dict[str, Any]]
    ) -> bool:
        """Move the run to ok (error cleared, finished_at set). False if already terminal."""
        return await self._finish(run_id, organization_id, FlowRunStatus.OK, None, steps)

    async def mark_error(
        self,
        run_id: str,
        organization_id: str,
        error: str,
        *,
        steps: list[dict[str, Any]],
    ) -> bool:
        """Move the run to error with `error` as message. False if already terminal."""
        return await self._finish(
            run_id, organization_id, FlowRunStatus.ERROR, error, steps
        )

    async def release_claimed(self, run_ids: list[str]) -> list[str]:
        """Put claimed runs that never started executing back to queued (all organizations).

        Only runs still in running are touched. Returns the released ids.
        """
        if not run_ids:
            return []
        result = await self.db.execute(
            select(FlowRun)
            .where(
                FlowRun.id.in_(run_ids),
                FlowRun.status == FlowRunStatus.RUNNING.value,
            )
            .with_for_update()
        )
        runs = list(result.scalars().all())
        for run in runs:
            run.status = FlowRunStatus.QUEUED.value
            run.claimed_at = None
        if runs:
            await self.db.flush()
            logger.info("Released %d claimed run(s) back to queued", len(runs))
        return [r.id for r in runs]

    async def reap_stale(
        self,
        threshold_seconds: int,
        *,
        action: str = "fail",
        now: datetime | None = None,
        limit: int = 100,
    ) -> list[str]:
        """Resolve runs stuck in running longer than threshold_seconds (all organizations).

        action "fail" ends them with error stale_run_timeout; "requeue" puts
        them back to queued for the next claim. Rows locked by another worker
        are skipped. Returns the affected run ids.
        """
        if threshold_seconds <= 0:
            return []
        current = now or utc_now()
        cutoff = current - timedelta(seconds=threshold_seconds)
        result = await self.db.execute(
            select(FlowRun)
            .where(
                FlowRun.status == FlowRunStatus.RUNNING.value,
                or_(
                    FlowRun.claimed_at < cutoff,
                    (FlowRun.claimed_at.is_(None)) & (FlowRun.started_at < cutoff),
                ),
            )
            .order_by(FlowRun.claimed_at.asc().nulls_first(), FlowRun.id.asc())
            .limit(limit)
            .with_for_update(skip_locked=True)
        )
        runs = list(result.scalars().all())
        for run in runs:
            if action == "requeue":
                run.status = FlowRunStatus.QUEUED.value
                run.claimed_at = None
            else:
                run.status = FlowRunStatus.ERROR.value
                run.error = STALE_RUN_ERROR
                run.finished_at = current
        if runs:
            await self.db.flush()
            logger.warning(
                "Reaped %d stale run(s) (action=%s, threshold=%ss)",
                len(runs),
                action,
                threshold_seconds,
            )
        return [r.id for r in runs]
