"""Event API: manual emission and external event ingestion."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response

from app.api.v1.dependencies import (
    get_event_caller,
    get_event_ingestion_use_case,
    get_organization_id,
)
from app.application.use_cases.flows import EventIngestionUseCase
from app.core.limiter import limit_events
from app.domain.exceptions import ValidationException
from app.infrastructure.security.auth import CallerIdentity
from app.schemas.flow import (
    EmitRequest,
    EmitResponse,
    EventIngestRequest,
    EventIngestResponse,
)

router = APIRouter()


@router.post(
    "/emit",
    response_model=EmitResponse,
    responses={202: {"model": EmitResponse, "description": "Runs queued"}},
)
async def emit_event(
    body: EmitRequest,
    response: Response,
    organization_id: Annotated[str, Depends(get_organization_id)],
    ingestion: Annotated[EventIngestionUseCase, Depends(get_event_ingestion_use_case)],
):
    """Queue a run for every active flow of the caller's organization listening for event.

    202 when at least one run was queued, 200 otherwise.
    """
    result = await ingestion.emit(organization_id, body.event, body.payload)
    response.status_code = 202 if result.created_any else 200
    return EmitResponse(
        matched_flows=result.matched_flows, created_runs=result.created_runs
    )


@router.post(
    "/events",
    response_model=EventIngestResponse,
    responses={202: {"model": EventIngestResponse, "description": "Event handled"}},
)
@limit_events
async def ingest_event(
    request: Request,
    body: EventIngestRequest,
    response: Response,
    caller: Annotated[CallerIdentity | None, Depends(get_event_caller)],
    ingestion: Annotated[EventIngestionUseCase, Depends(get_event_ingestion_use_case)],
):
    """Ingest an external event (events token or authenticated caller).

    With the shared events token the organization is payload.org_id;
    otherwise it is the caller's organization.
    """
    if caller is not None:
        organization_id = caller.organization_id
    else:
        org = body.payload.get("org_id")
        if org is None or str(org) == "":
            raise ValidationException("org_id is required", field="payload.org_id")
        organization_id = str(org)

    result = await ingestion.ingest(body.source, body.event, body.payload, organization_id)
    response.status_code = 202 if result.handled or result.created_any else 200
    return EventIngestResponse(
        event=result.event,
        source=result.source,
        handled=result.handled,
        matched_flows=result.matched_flows,
        created_runs=result.created_runs,
    )
