"""Notification channel protocols (provider-agnostic)."""

from typing import Any, Protocol


class ChannelDispatcher(Protocol):
    """One operation per notification capability (DIP).

    Every call is a single best-effort attempt bounded by the provider
    timeout. Failures raise ProviderError (or ValidationException for
    malformed input); retrying is the caller's decision.
    """

    async def send_email(self, to: str | None, subject: str, text: str) -> dict[str, Any]:
        """Send a plain-text email. Returns {"message_id": ...}."""
        ...

    async def send_slack(self, webhook: str | None, text: str) -> dict[str, Any]:
        """Post text to a Slack incoming webhook. Returns {"status": <http status>}."""
        ...

    async def send_whatsapp(self, to: str | None, message: str) -> dict[str, Any]:
        """Send a WhatsApp message. Returns {"status": ...}."""
        ...
