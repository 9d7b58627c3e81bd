"""Provider connection API: per-organization channel credentials."""

from typing import Annotated

from fastapi import APIRouter, Depends

from app.api.v1.dependencies import (
    get_flow_provider_repo,
    get_flow_provider_repo_for_write,
    get_organization_id,
)
from app.application.dtos.flow import ProviderConnectionResult
from app.infrastructure.persistence.repositories import FlowProviderRepository
from app.schemas.flow import ProviderResponse, ProviderUpsertRequest
from app.shared.enums import ProviderConnectionStatus

router = APIRouter()


def _provider_response(conn: ProviderConnectionResult) -> ProviderResponse:
    return ProviderResponse(
        provider=conn.provider,
        status=conn.status,
        connected=conn.status == ProviderConnectionStatus.CONNECTED.value,
        updated_at=conn.updated_at,
    )


@router.get("", response_model=list[ProviderResponse])
async def list_providers(
    organization_id: Annotated[str, Depends(get_organization_id)],
    provider_repo: Annotated[FlowProviderRepository, Depends(get_flow_provider_repo)],
):
    """Connection state of every provider the organization has configured."""
    connections = await provider_repo.list_by_organization(organization_id)
    return [_provider_response(c) for c in connections]


@router.put("/{kind}", response_model=ProviderResponse)
async def upsert_provider(
    kind: str,
    body: ProviderUpsertRequest,
    organization_id: Annotated[str, Depends(get_organization_id)],
    provider_repo: Annotated[
        FlowProviderRepository, Depends(get_flow_provider_repo_for_write)
    ],
):
    """Connect a provider or update its status/credentials. Omitted credentials are kept."""
    conn = await provider_repo.upsert(
        organization_id, kind, status=body.status, credentials=body.credentials
    )
    return _provider_response(conn)
