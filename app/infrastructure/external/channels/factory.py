"""Channel dispatcher: composes the email, Slack and WhatsApp channels."""

from __future__ import annotations

from typing import Any

import httpx

from app.core.config import Settings
from app.infrastructure.external.channels.email import SmtpEmailChannel
from app.infrastructure.external.channels.slack import SlackWebhookChannel
from app.infrastructure.external.channels.whatsapp import WhatsAppChannel
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class ProviderChannelDispatcher:
    """ChannelDispatcher backed by real providers (implements ChannelDispatcher)."""

    def __init__(
        self,
        email: SmtpEmailChannel,
        slack: SlackWebhookChannel,
        whatsapp: WhatsAppChannel,
    ) -> None:
        self._email = email
        self._slack = slack
        self._whatsapp = whatsapp

    async def send_email(self, to: str | None, subject: str, text: str) -> dict[str, Any]:
        return await self._email.send(to, subject, text)

    async def send_slack(self, webhook: str | None, text: str) -> dict[str, Any]:
        return await self._slack.send(webhook, text)

    async def send_whatsapp(self, to: str | None, message: str) -> dict[str, Any]:
        return await self._whatsapp.send(to, message)


def _secret(value: Any) -> str | None:
    if value is None:
        return None
    raw = value.get_secret_value() if hasattr(value, "get_secret_value") else str(value)
    return raw or None


class ChannelDispatcherFactory:
    """Builds the process-wide dispatcher from settings and a shared httpx client."""

    @classmethod
    def create(
        cls, settings: Settings, http_client: httpx.AsyncClient
    ) -> ProviderChannelDispatcher:
        timeout = settings.provider_timeout_seconds
        email = SmtpEmailChannel(
            settings.smtp_host,
            settings.smtp_from,
            port=settings.smtp_port,
            secure=settings.smtp_secure,
            user=settings.smtp_user,
            password=_secret(settings.smtp_password),
            timeout=timeout,
        )
        whatsapp = WhatsAppChannel(
            http_client,
            account_sid=settings.twilio_account_sid,
            auth_token=_secret(settings.twilio_auth_token),
            from_number=settings.twilio_whatsapp_from,
            api_base=settings.twilio_api_base,
            timeout=timeout,
        )
        logger.info(
            "Channel dispatcher ready (smtp=%s, whatsapp=%s)",
            "configured" if email.configured else "disabled",
            "twilio" if whatsapp.configured else "stub",
        )
        return ProviderChannelDispatcher(
            email=email,
            slack=SlackWebhookChannel(http_client, timeout=timeout),
            whatsapp=whatsapp,
        )
