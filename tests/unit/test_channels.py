"""Notification channels against httpx.MockTransport (no network)."""

import base64
import json
from urllib.parse import parse_qs

import httpx
import pytest

from app.application.dtos.flow import ProviderConnectionResult
from app.domain.exceptions import ValidationException
from app.infrastructure.exceptions import ProviderError
from app.infrastructure.external.channels import (
    SlackWebhookChannel,
    SmtpEmailChannel,
    WhatsAppChannel,
)
from app.infrastructure.services.provider_credentials import ProviderCredentialResolver

WEBHOOK = "https://hooks.slack.test/services/T/B/x"


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


# Slack


async def test_slack_posts_text_json() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, text="ok")

    async with _client(handler) as http:
        result = await SlackWebhookChannel(http).send(WEBHOOK, "hello")

    assert result == {"status": 200}
    assert str(seen[0].url) == WEBHOOK
    assert seen[0].method == "POST"
    assert json.loads(seen[0].read()) == {"text": "hello"}


async def test_slack_missing_webhook() -> None:
    async with _client(lambda r: httpx.Response(200)) as http:
        with pytest.raises(ProviderError) as exc_info:
            await SlackWebhookChannel(http).send(None, "hello")
    assert exc_info.value.reason == "missing_webhook"


async def test_slack_non_2xx_is_post_failed() -> None:
    async with _client(lambda r: httpx.Response(404, text="no_service")) as http:
        with pytest.raises(ProviderError) as exc_info:
            await SlackWebhookChannel(http).send(WEBHOOK, "hello")
    assert exc_info.value.reason == "post_failed"
    assert exc_info.value.details["detail"] == "status=404"


async def test_slack_timeout() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("slow", request=request)

    async with _client(handler) as http:
        with pytest.raises(ProviderError) as exc_info:
            await SlackWebhookChannel(http).send(WEBHOOK, "hello")
    assert exc_info.value.reason == "timeout"


async def test_slack_connection_error_is_post_failed() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    async with _client(handler) as http:
        with pytest.raises(ProviderError) as exc_info:
            await SlackWebhookChannel(http).send(WEBHOOK, "hello")
    assert exc_info.value.reason == "post_failed"


# WhatsApp


async def test_whatsapp_stub_without_credentials() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("stub must not call the network")

    async with _client(handler) as http:
        channel = WhatsAppChannel(http)
        result = await channel.send("+5491100000000", "Hola")

    assert not channel.configured
    assert result == {
        "status": 200,
        "data": {"mock": True, "to": "+5491100000000", "message": "Hola"},
    }


async def test_whatsapp_requires_recipient() -> None:
    async with _client(lambda r: httpx.Response(200)) as http:
        with pytest.raises(ValidationException):
            await WhatsAppChannel(http).send("", "Hola")


async def test_whatsapp_twilio_request() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(201, json={"sid": "SM123"})

    async with _client(handler) as http:
        channel = WhatsAppChannel(
            http,
            account_sid="AC1",
            auth_token="tok",
            from_number="+15550001111",
            api_base="https://twilio.test/",
        )
        result = await channel.send("+5491100000000", "Hola")

    assert result == {"status": 201, "sid": "SM123"}
    request = seen[0]
    assert str(request.url) == "https://twilio.test/2010-04-01/Accounts/AC1/Messages.json"
    form = parse_qs(request.read().decode())
    assert form == {
        "From": ["whatsapp:+15550001111"],
        "To": ["whatsapp:+5491100000000"],
        "Body": ["Hola"],
    }
    expected = base64.b64encode(b"AC1:tok").decode()
    assert request.headers["Authorization"] == f"Basic {expected}"


async def test_whatsapp_twilio_rejection_is_send_failed() -> None:
    async with _client(lambda r: httpx.Response(400, json={"code": 21211})) as http:
        channel = WhatsAppChannel(
            http, account_sid="AC1", auth_token="tok", from_number="whatsapp:+1555"
        )
        with pytest.raises(ProviderError) as exc_info:
            await channel.send("+1666", "x")
    assert exc_info.value.reason == "send_failed"


# Email


async def test_email_requires_recipient() -> None:
    with pytest.raises(ValidationException):
        await SmtpEmailChannel("smtp.test", "noreply@test").send(None, "s", "t")


async def test_email_unconfigured() -> None:
    channel = SmtpEmailChannel(None, None)
    assert not channel.configured
    with pytest.raises(ProviderError) as exc_info:
        await channel.send("a@b.c", "s", "t")
    assert exc_info.value.reason == "smtp_not_configured"


async def test_email_delivery_returns_message_id(monkeypatch) -> None:
    delivered = []
    channel = SmtpEmailChannel("smtp.test", "noreply@test")
    monkeypatch.setattr(channel, "_deliver", lambda msg: delivered.append(msg))

    result = await channel.send("a@b.c", "Subject", "Body")

    assert result["message_id"] == delivered[0]["Message-ID"]
    assert delivered[0]["To"] == "a@b.c"
    assert delivered[0]["From"] == "noreply@test"
    assert delivered[0].get_content().strip() == "Body"


async def test_email_os_error_is_send_failed(monkeypatch) -> None:
    def _refuse(msg):
        raise ConnectionRefusedError("refused")

    channel = SmtpEmailChannel("smtp.test", "noreply@test")
    monkeypatch.setattr(channel, "_deliver", _refuse)

    with pytest.raises(ProviderError) as exc_info:
        await channel.send("a@b.c", "s", "t")
    assert exc_info.value.reason == "send_failed"


# Credentials


class _ProviderRepo:
    def __init__(self, connection: ProviderConnectionResult | None) -> None:
        self.connection = connection

    async def get_connection(self, organization_id: str, provider: str):
        return self.connection


def _slack(status: str, credentials: dict) -> ProviderConnectionResult:
    return ProviderConnectionResult(
        organization_id="org-1", provider="slack", status=status, credentials=credentials
    )


async def test_connected_provider_wins_over_fallback() -> None:
    resolver = ProviderCredentialResolver(
        _ProviderRepo(_slack("connected", {"webhook_url": WEBHOOK})),
        default_slack_webhook_url="https://fallback.test",
    )
    assert await resolver.resolve_slack_webhook("org-1") == WEBHOOK


async def test_pending_provider_uses_fallback() -> None:
    resolver = ProviderCredentialResolver(
        _ProviderRepo(_slack("pending", {"webhook_url": WEBHOOK})),
        default_slack_webhook_url="https://fallback.test",
    )
    assert await resolver.resolve_slack_webhook("org-1") == "https://fallback.test"


async def test_no_provider_and_no_fallback_is_none() -> None:
    resolver = ProviderCredentialResolver(_ProviderRepo(None))
    assert await resolver.resolve_slack_webhook("org-1") is None
