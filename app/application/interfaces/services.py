"""Service interfaces (ports) for the application layer.

Protocols define contracts for application services (DIP).
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

if TYPE_CHECKING:
    from app.application.dtos.flow import BuiltinMessage


# Slack webhook resolution (per organization, with optional fallback)
class ISlackWebhookResolver(Protocol):
    """Protocol for resolving an organization's Slack webhook at dispatch time."""

    async def resolve_slack_webhook(self, organization_id: str) -> str | None:
        """Return the webhook URL, or None when the organization has none."""


# Built-in event notifications (hard-coded per-event Slack messages)
class IBuiltinEventNotifier(Protocol):
    """Protocol for the hard-coded event handlers that notify Slack immediately."""

    def handles(self, event: str) -> bool:
        """Return True when a built-in handler exists for event."""

    def render(self, event: str, payload: dict[str, Any]) -> BuiltinMessage:
        """Render the handler's run name and Slack text for payload."""

    async def send(self, message: BuiltinMessage, webhook: str | None) -> dict[str, Any]:
        """Post the message; raises ProviderError on failure."""

