"""Flow API schemas: flows, steps, runs, providers, event emission and webhooks."""

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field

# Accepts both spellings: FastAPI re-validates responses after dumping by alias.
_ORGANIZATION_ALIASES = AliasChoices("organization_id", "organizacion_id")


class FlowCreateRequest(BaseModel):
    """Request body for creating a flow."""

    name: str = Field(..., min_length=1, max_length=500)
    trigger: str = Field(..., min_length=1, max_length=200)
    active: bool = True
    meta: dict[str, Any] = Field(default_factory=dict)


class FlowUpdateRequest(BaseModel):
    """Request body for updating a flow (partial)."""

    name: str | None = Field(default=None, min_length=1, max_length=500)
    trigger: str | None = Field(default=None, min_length=1, max_length=200)
    active: bool | None = None
    meta: dict[str, Any] | None = None


class FlowResponse(BaseModel):
    """Flow response. organizacion_id is the wire name of the organization."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    organization_id: str = Field(
        validation_alias=_ORGANIZATION_ALIASES, serialization_alias="organizacion_id"
    )
    name: str
    trigger: str
    active: bool
    meta: dict[str, Any]
    created_by: str | None
    created_at: datetime | None
    updated_at: datetime | None


class FlowStepRequest(BaseModel):
    """One step in a replace-steps request."""

    position: int = Field(..., ge=1)
    type: str = Field(..., min_length=1)
    config: dict[str, Any] = Field(default_factory=dict)


class FlowStepsReplaceRequest(BaseModel):
    """Request body for PUT /flows/{id}/steps. Positions must be 1..n."""

    steps: list[FlowStepRequest]


class FlowStepResponse(BaseModel):
    """Step record: {flow_id, organizacion_id, position, type, config}."""

    id: str
    flow_id: str
    organization_id: str = Field(
        validation_alias=_ORGANIZATION_ALIASES, serialization_alias="organizacion_id"
    )
    position: int
    type: str
    config: dict[str, Any]


class FlowRunResponse(BaseModel):
    """Run record: {id, flow_id, organizacion_id, status, error, meta, started_at, finished_at}."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    flow_id: str | None
    organization_id: str = Field(
        validation_alias=_ORGANIZATION_ALIASES, serialization_alias="organizacion_id"
    )
    status: str
    error: str | None
    meta: dict[str, Any]
    started_at: datetime | None
    finished_at: datetime | None
    attempts: int = 0


class ProviderResponse(BaseModel):
    """Provider connection state. Credentials are never returned."""

    provider: str
    status: str
    connected: bool
    updated_at: datetime | None


class ProviderUpsertRequest(BaseModel):
    """Connect or update a provider (e.g. {"credentials": {"webhook_url": ...}})."""

    status: str = "connected"
    credentials: dict[str, Any] | None = None


class EmitRequest(BaseModel):
    """Manual trigger emission."""

    event: str = ""
    payload: dict[str, Any] = Field(default_factory=dict)


class EmitResponse(BaseModel):
    ok: bool = True
    matched_flows: list[str]
    created_runs: list[str]


class EventIngestRequest(BaseModel):
    """External event: {source, event, payload}."""

    source: str = ""
    event: str = ""
    payload: dict[str, Any] = Field(default_factory=dict)


class EventIngestResponse(BaseModel):
    ok: bool = True
    event: str
    source: str
    handled: bool
    matched_flows: list[str]
    created_runs: list[str]


class GmailMessage(BaseModel):
    """Message summary sent by the Gmail watcher."""

    model_config = ConfigDict(extra="allow")

    from_name: str | None = None
    from_address: str | None = None
    subject: str | None = None
    snippet: str | None = None


class GmailWebhookRequest(BaseModel):
    """Gmail watcher notification ({"type": "gmail.message.created", "email": {...}})."""

    model_config = ConfigDict(extra="allow")

    type: str
    email: GmailMessage = Field(default_factory=GmailMessage)
    org_id: str | int | None = None


class GmailWebhookResponse(BaseModel):
    ok: bool = True
    forwarded: bool
    out: EventIngestResponse


class PasswordResetWebhookRequest(BaseModel):
    """Core service password reset notification."""

    email: str | None = None
    reset_url: str | None = None
    token: str | None = None
    org_id: str | int | None = None


class PasswordResetWebhookResponse(BaseModel):
    ok: bool = True
    sent: bool
    message_id: str | None = None
