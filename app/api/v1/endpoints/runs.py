"""Flow run API (read-only; runs are created by ingestion and advanced by the scheduler)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query

from app.api.v1.dependencies import get_flow_run_repo, get_organization_id
from app.domain.exceptions import ResourceNotFoundException
from app.infrastructure.persistence.repositories import FlowRunRepository
from app.schemas.flow import FlowRunResponse

router = APIRouter()


@router.get("", response_model=list[FlowRunResponse])
async def list_runs(
    organization_id: Annotated[str, Depends(get_organization_id)],
    run_repo: Annotated[FlowRunRepository, Depends(get_flow_run_repo)],
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    status: str | None = None,
    flow_id: str | None = None,
):
    """List runs, most recent first, optionally filtered by status or flow."""
    runs = await run_repo.list_by_organization(
        organization_id, skip=skip, limit=limit, status=status, flow_id=flow_id
    )
    return [FlowRunResponse.model_validate(r) for r in runs]


@router.get("/{run_id}", response_model=FlowRunResponse)
async def get_run(
    run_id: str,
    organization_id: Annotated[str, Depends(get_organization_id)],
    run_repo: Annotated[FlowRunRepository, Depends(get_flow_run_repo)],
):
    run = await run_repo.get_by_id(run_id, organization_id)
    if not run:
        raise ResourceNotFoundException("run", run_id)
    return FlowRunResponse.model_validate(run)
