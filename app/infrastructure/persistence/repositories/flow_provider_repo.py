"""Flow provider repository: per-organization channel connections."""

from __future__ import annotations

from typing import Any

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.application.dtos.flow import ProviderConnectionResult
from app.domain.exceptions import ValidationException
from app.infrastructure.persistence.models.flow_provider import FlowProvider
from app.infrastructure.persistence.repositories.base import BaseRepository
from app.shared.enums import ProviderConnectionStatus, ProviderKind


def _provider_to_result(p: FlowProvider) -> ProviderConnectionResult:
    return ProviderConnectionResult(
        organization_id=p.organization_id,
        provider=p.provider,
        status=p.status,
        credentials=dict(p.credentials or {}),
        updated_at=p.updated_at,
    )


class FlowProviderRepository(BaseRepository[FlowProvider]):
    """One connection row per (organization, provider kind)."""

    resource_name = "provider"

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, FlowProvider)

    async def _get_row(self, organization_id: str, provider: str) -> FlowProvider | None:
        result = await self.db.execute(
            select(FlowProvider).where(
                FlowProvider.organization_id == organization_id,
                FlowProvider.provider == provider,
            )
        )
        return result.scalar_one_or_none()

    async def get_connection(
        self, organization_id: str, provider: str
    ) -> ProviderConnectionResult | None:
        row = await self._get_row(organization_id, provider)
        return _provider_to_result(row) if row else None

    async def list_by_organization(
        self, organization_id: str
    ) -> list[ProviderConnectionResult]:
        result = await self.db.execute(
            select(FlowProvider)
            .where(FlowProvider.organization_id == organization_id)
            .order_by(FlowProvider.provider.asc())
        )
        return [_provider_to_result(p) for p in result.scalars().all()]

    async def upsert(
        self,
        organization_id: str,
        provider: str,
        *,
        status: str,
        credentials: dict[str, Any] | None = None,
    ) -> ProviderConnectionResult:
        """Create or update the organization's connection for a provider kind.

        credentials=None keeps the stored blob; a dict replaces it.
        """
        if provider not in ProviderKind.values():
            raise ValidationException(f"unknown provider: {provider}", field="provider")
        if status not in ProviderConnectionStatus.values():
            raise ValidationException(f"unknown status: {status}", field="status")
        row = await self._get_row(organization_id, provider)
        if row is None:
            row = FlowProvider(
                organization_id=organization_id,
                provider=provider,
                status=status,
                credentials=credentials or {},
            )
            row = await self.create(row)
            return _provider_to_result(row)
        row.status = status
        if credentials is not None:
            row.credentials = credentials
        await self.db.flush()
        await self.db.refresh(row)
        return _provider_to_result(row)
