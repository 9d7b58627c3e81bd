"""Inbound webhooks authenticated by a shared secret in X-VEX-SECRET."""

from typing import Annotated
from urllib.parse import quote

from fastapi import APIRouter, Depends, Header, HTTPException, Request

from app.api.v1.dependencies import (
    get_dispatcher,
    get_event_ingestion_use_case,
    require_webhook_secret,
)
from app.application.use_cases.flows import EventIngestionUseCase
from app.core.config import get_settings
from app.core.limiter import limit_events
from app.domain.exceptions import ValidationException
from app.infrastructure.external.channels import ChannelDispatcher
from app.schemas.flow import (
    EventIngestResponse,
    GmailWebhookRequest,
    GmailWebhookResponse,
    PasswordResetWebhookRequest,
    PasswordResetWebhookResponse,
)
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()

GMAIL_EVENT = "gmail.message.created"


def _secret(value) -> str | None:
    return value.get_secret_value() if value is not None else None


@router.post("/gmail", response_model=GmailWebhookResponse)
@limit_events
async def gmail_webhook(
    request: Request,
    body: GmailWebhookRequest,
    ingestion: Annotated[EventIngestionUseCase, Depends(get_event_ingestion_use_case)],
    x_vex_secret: Annotated[str | None, Header()] = None,
):
    """Forward a Gmail watcher notification into event ingestion as gmail.message.created."""
    settings = get_settings()
    require_webhook_secret(_secret(settings.gmail_webhook_secret), x_vex_secret)
    if body.type != GMAIL_EVENT:
        raise HTTPException(status_code=400, detail="bad_type")

    org = settings.gmail_webhook_organization_id or body.org_id
    if org is None or str(org) == "":
        raise ValidationException("org_id is required", field="org_id")

    payload = body.model_dump(exclude_none=True)
    payload["leadDefaults"] = {
        "source": "gmail",
        "owner_email": settings.gmail_default_owner_email,
    }
    result = await ingestion.ingest("gmail", GMAIL_EVENT, payload, str(org))
    return GmailWebhookResponse(
        forwarded=True,
        out=EventIngestResponse(
            event=result.event,
            source=result.source,
            handled=result.handled,
            matched_flows=result.matched_flows,
            created_runs=result.created_runs,
        ),
    )


def build_reset_link(
    base: str | None, token: str | None, email: str, reset_url: str | None
) -> str | None:
    """Explicit reset_url wins; otherwise base?token=..&email=.. when both are known."""
    if reset_url:
        return reset_url
    if base and token:
        return f"{base}?token={quote(token, safe='')}&email={quote(email, safe='')}"
    return None


@router.post("/core/password-reset", response_model=PasswordResetWebhookResponse)
@limit_events
async def password_reset_webhook(
    request: Request,
    body: PasswordResetWebhookRequest,
    dispatcher: Annotated[ChannelDispatcher, Depends(get_dispatcher)],
    x_vex_secret: Annotated[str | None, Header()] = None,
):
    """Email a password reset link on behalf of the core service."""
    settings = get_settings()
    require_webhook_secret(_secret(settings.password_reset_webhook_secret), x_vex_secret)
    if not body.email:
        raise ValidationException("email is required", field="email")

    link = build_reset_link(
        settings.password_reset_url_base, body.token, body.email, body.reset_url
    )
    if not link:
        raise ValidationException("reset_url or token is required", field="reset_url")

    lines = [
        "Hello,",
        "",
        "Use this link to reset your password:",
        link,
        "",
        "If you did not request this, ignore this email.",
    ]
    if body.org_id:
        lines.append(f"Org: {body.org_id}")

    out = await dispatcher.send_email(
        body.email, settings.password_reset_email_subject, "\n".join(lines)
    )
    logger.info("Password reset email sent (org=%s)", body.org_id)
    return PasswordResetWebhookResponse(sent=True, message_id=out.get("message_id"))
