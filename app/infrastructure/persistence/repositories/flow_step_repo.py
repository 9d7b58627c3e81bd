"""Flow step repository: ordered steps of a flow, replaced as a whole."""

from __future__ import annotations

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dtos.flow import FlowStepCreate, FlowStepResult
from app.domain.exceptions import ResourceNotFoundException, ValidationException
from app.infrastructure.persistence.models.flow import Flow, FlowStep
from app.infrastructure.persistence.repositories.base import BaseRepository


def _step_to_result(s: FlowStep) -> FlowStepResult:
    return FlowStepResult(
        id=s.id,
        flow_id=s.flow_id,
        organization_id=s.organization_id,
        position=s.position,
        step_type=s.step_type,
        config=dict(s.config or {}),
    )


def validate_positions(steps: list[FlowStepCreate]) -> None:
    """Positions must be exactly 1..n (contiguous, no duplicates); every step needs a type."""
    positions = sorted(s.position for s in steps)
    if positions != list(range(1, len(steps) + 1)):
        raise ValidationException(
            "step positions must be contiguous starting at 1", field="position"
        )
    for s in steps:
        if not (s.step_type or "").strip():
            raise ValidationException("step type is required", field="type")


class FlowStepRepository(BaseRepository[FlowStep]):
    """Flow step repository. Steps are denormalized with organizacion_id for isolation."""

    resource_name = "flow_step"

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, FlowStep)

    async def list_for_flow(
        self, flow_id: str, organization_id: str
    ) -> list[FlowStepResult]:
        """Return the flow's steps ordered by position."""
        result = await self.db.execute(
            select(FlowStep)
            .where(
                FlowStep.flow_id == flow_id,
                FlowStep.organization_id == organization_id,
            )
            .order_by(FlowStep.position.asc())
        )
        return [_step_to_result(s) for s in result.scalars().all()]

    async def replace_steps(
        self, flow_id: str, organization_id: str, steps: list[FlowStepCreate]
    ) -> list[FlowStepResult]:
        """Delete the flow's steps and insert `steps` in their place.

        Raises:
            ResourceNotFoundException: If the flow is not in the organization.
            ValidationException: If positions are not 1..n or a type is empty.
        """
        flow_exists = await self.db.execute(
            select(Flow.id).where(
                Flow.id == flow_id, Flow.organization_id == organization_id
            )
        )
        if flow_exists.scalar_one_or_none() is None:
            raise ResourceNotFoundException("flow", flow_id)
        validate_positions(steps)

        await self.db.execute(
            delete(FlowStep).where(
                FlowStep.flow_id == flow_id,
                FlowStep.organization_id == organization_id,
            )
        )
        rows = [
            FlowStep(
                flow_id=flow_id,
                organization_id=organization_id,
                position=s.position,
                step_type=s.step_type.strip(),
                config=dict(s.config or {}),
            )
            for s in sorted(steps, key=lambda s: s.position)
        ]
        self.db.add_all(rows)
        await self.db.flush()
        return [_step_to_result(r) for r in rows]
