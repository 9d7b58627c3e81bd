"""Flow API: thin routes delegating to repositories. Organization comes from the caller."""

from typing import Annotated

from fastapi import APIRouter, Depends, Query, Response

from app.api.v1.dependencies import (
    get_current_caller,
    get_flow_repo,
    get_flow_repo_for_write,
    get_flow_step_repo,
    get_flow_step_repo_for_write,
    get_organization_id,
)
from app.application.dtos.flow import FlowStepCreate, FlowStepResult
from app.domain.exceptions import ResourceNotFoundException
from app.infrastructure.persistence.repositories import (
    FlowRepository,
    FlowStepRepository,
)
from app.infrastructure.security.auth import CallerIdentity
from app.schemas.flow import (
    FlowCreateRequest,
    FlowResponse,
    FlowStepResponse,
    FlowStepsReplaceRequest,
    FlowUpdateRequest,
)

router = APIRouter()


def _step_response(step: FlowStepResult) -> FlowStepResponse:
    return FlowStepResponse(
        id=step.id,
        flow_id=step.flow_id,
        organization_id=step.organization_id,
        position=step.position,
        type=step.step_type,
        config=step.config,
    )


@router.post("", response_model=FlowResponse, status_code=201)
async def create_flow(
    body: FlowCreateRequest,
    caller: Annotated[CallerIdentity, Depends(get_current_caller)],
    flow_repo: Annotated[FlowRepository, Depends(get_flow_repo_for_write)],
):
    """Create a flow in the caller's organization."""
    flow = await flow_repo.create_flow(
        caller.organization_id,
        body.name,
        body.trigger,
        active=body.active,
        meta=body.meta,
        created_by=caller.user_id,
    )
    return FlowResponse.model_validate(flow)


@router.get("", response_model=list[FlowResponse])
async def list_flows(
    organization_id: Annotated[str, Depends(get_organization_id)],
    flow_repo: Annotated[FlowRepository, Depends(get_flow_repo)],
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=1000),
    trigger: str | None = None,
    active: bool | None = None,
):
    """List flows (newest first), optionally filtered by trigger or active flag."""
    flows = await flow_repo.list_by_organization(
        organization_id, skip=skip, limit=limit, trigger=trigger, active=active
    )
    return [FlowResponse.model_validate(f) for f in flows]


@router.get("/{flow_id}", response_model=FlowResponse)
async def get_flow(
    flow_id: str,
    organization_id: Annotated[str, Depends(get_organization_id)],
    flow_repo: Annotated[FlowRepository, Depends(get_flow_repo)],
):
    flow = await flow_repo.get_by_id(flow_id, organization_id)
    if not flow:
        raise ResourceNotFoundException("flow", flow_id)
    return FlowResponse.model_validate(flow)


@router.put("/{flow_id}", response_model=FlowResponse)
async def update_flow(
    flow_id: str,
    body: FlowUpdateRequest,
    organization_id: Annotated[str, Depends(get_organization_id)],
    flow_repo: Annotated[FlowRepository, Depends(get_flow_repo_for_write)],
):
    """Update name, trigger, active flag or meta. Omitted fields are kept."""
    flow = await flow_repo.update_flow(
        flow_id,
        organization_id,
        name=body.name,
        trigger=body.trigger,
        active=body.active,
        meta=body.meta,
    )
    return FlowResponse.model_validate(flow)


@router.delete("/{flow_id}", status_code=204)
async def delete_flow(
    flow_id: str,
    organization_id: Annotated[str, Depends(get_organization_id)],
    flow_repo: Annotated[FlowRepository, Depends(get_flow_repo_for_write)],
):
    """Delete a flow. Steps are removed; past runs keep their history with no flow."""
    await flow_repo.delete_flow(flow_id, organization_id)
    return Response(status_code=204)


@router.get("/{flow_id}/steps", response_model=list[FlowStepResponse])
async def list_flow_steps(
    flow_id: str,
    organization_id: Annotated[str, Depends(get_organization_id)],
    flow_repo: Annotated[FlowRepository, Depends(get_flow_repo)],
    step_repo: Annotated[FlowStepRepository, Depends(get_flow_step_repo)],
):
    """Return the flow's steps in execution order."""
    if not await flow_repo.get_by_id(flow_id, organization_id):
        raise ResourceNotFoundException("flow", flow_id)
    steps = await step_repo.list_for_flow(flow_id, organization_id)
    return [_step_response(s) for s in steps]


@router.put("/{flow_id}/steps", response_model=list[FlowStepResponse])
async def replace_flow_steps(
    flow_id: str,
    body: FlowStepsReplaceRequest,
    organization_id: Annotated[str, Depends(get_organization_id)],
    step_repo: Annotated[FlowStepRepository, Depends(get_flow_step_repo_for_write)],
):
    """Replace all steps of the flow. Positions must be exactly 1..n."""
    steps = await step_repo.replace_steps(
        flow_id,
        organization_id,
        [
            FlowStepCreate(position=s.position, step_type=s.type, config=s.config)
            for s in body.steps
        ],
    )
    return [_step_response(s) for s in steps]
