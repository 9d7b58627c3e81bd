"""Flow repository. Returns application DTOs."""

from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dtos.flow import FlowResult
from app.domain.exceptions import ValidationException
from app.infrastructure.persistence.models.flow import Flow
from app.infrastructure.persistence.repositories.base import BaseRepository


def _flow_to_result(f: Flow) -> FlowResult:
    """Map Flow ORM to FlowResult."""
    return FlowResult(
        id=f.id,
        organization_id=f.organization_id,
        name=f.name,
        trigger=f.trigger,
        active=f.active,
        meta=dict(f.meta or {}),
        created_by=f.created_by,
        created_at=f.created_at,
        updated_at=f.updated_at,
    )


def _require_trigger(trigger: str | None) -> str:
    value = (trigger or "").strip()
    if not value:
        raise ValidationException("trigger is required", field="trigger")
    return value


class FlowRepository(BaseRepository[Flow]):
    """Flow repository. All access organization-scoped via parameters."""

    resource_name = "flow"

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, Flow)

    async def get_by_id(self, flow_id: str, organization_id: str) -> FlowResult | None:
        """Return flow by ID if it belongs to the organization."""
        row = await self.get_entity(flow_id, organization_id)
        return _flow_to_result(row) if row else None

    async def list_by_organization(
        self,
        organization_id: str,
        skip: int = 0,
        limit: int = 100,
        *,
        trigger: str | None = None,
        active: bool | None = None,
    ) -> list[FlowResult]:
        """Return flows for the organization, newest first, with optional filters."""
        q = (
            select(Flow)
            .where(Flow.organization_id == organization_id)
            .order_by(Flow.created_at.desc(), Flow.id.desc())
        )
        if trigger is not None:
            q = q.where(Flow.trigger == trigger)
        if active is not None:
            q = q.where(Flow.active.is_(active))
        result = await self.db.execute(q.offset(skip).limit(limit))
        return [_flow_to_result(f) for f in result.scalars().all()]

    async def get_active_by_trigger(
        self, organization_id: str, trigger: str
    ) -> list[FlowResult]:
        """Return active flows listening for `trigger` (exact match), oldest first."""
        result = await self.db.execute(
            select(Flow)
            .where(
                Flow.organization_id == organization_id,
                Flow.trigger == trigger,
                Flow.active.is_(True),
            )
            .order_by(Flow.created_at.asc(), Flow.id.asc())
        )
        return [_flow_to_result(f) for f in result.scalars().all()]

    async def create_flow(
        self,
        organization_id: str,
        name: str,
        trigger: str,
        *,
        active: bool = True,
        meta: dict[str, Any] | None = None,
        created_by: str | None = None,
    ) -> FlowResult:
        """Create a flow. Raises ValidationException when name or trigger is empty."""
        if not (name or "").strip():
            raise ValidationException("name is required", field="name")
        flow = Flow(
            organization_id=organization_id,
            name=name.strip(),
            trigger=_require_trigger(trigger),
            active=active,
            meta=meta or {},
            created_by=created_by,
        )
        created = await self.create(flow)
        return _flow_to_result(created)

    async def update_flow(
        self,
        flow_id: str,
        organization_id: str,
        *,
        name: str | None = None,
        trigger: str | None = None,
        active: bool | None = None,
        meta: dict[str, Any] | None = None,
    ) -> FlowResult:
        """Patch a flow. Raises ResourceNotFoundException if absent in the organization."""
        flow = await self.get_entity_or_raise(flow_id, organization_id)
        if name is not None:
            if not name.strip():
                raise ValidationException("name is required", field="name")
            flow.name = name.strip()
        if trigger is not None:
            flow.trigger = _require_trigger(trigger)
        if active is not None:
            flow.active = active
        if meta is not None:
            flow.meta = meta
        await self.db.flush()
        await self.db.refresh(flow)
        return _flow_to_result(flow)

    async def delete_flow(self, flow_id: str, organization_id: str) -> None:
        """Delete a flow (steps cascade, runs keep history with flow_id NULL)."""
        flow = await self.get_entity_or_raise(flow_id, organization_id)
        await self.delete(flow)
