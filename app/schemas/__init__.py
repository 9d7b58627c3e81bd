"""Pydantic request/response schemas for the API."""

from app.schemas.flow import (
    EmitRequest,
    EmitResponse,
    EventIngestRequest,
    EventIngestResponse,
    FlowCreateRequest,
    FlowResponse,
    FlowRunResponse,
    FlowStepRequest,
    FlowStepResponse,
    FlowStepsReplaceRequest,
    FlowUpdateRequest,
    GmailWebhookRequest,
    GmailWebhookResponse,
    PasswordResetWebhookRequest,
    PasswordResetWebhookResponse,
    ProviderResponse,
    ProviderUpsertRequest,
)
from app.schemas.health import HealthResponse

__all__ = [
    "EmitRequest",
    "EmitResponse",
    "EventIngestRequest",
    "EventIngestResponse",
    "FlowCreateRequest",
    "FlowResponse",
    "FlowRunResponse",
    "FlowStepRequest",
    "FlowStepResponse",
    "FlowStepsReplaceRequest",
    "FlowUpdateRequest",
    "GmailWebhookRequest",
    "GmailWebhookResponse",
    "HealthResponse",
    "PasswordResetWebhookRequest",
    "PasswordResetWebhookResponse",
    "ProviderResponse",
    "ProviderUpsertRequest",
]
