"""Built-in event handlers: event name -> (run name, Slack text) rendered with Jinja."""

from __future__ import annotations

from typing import Any

from jinja2 import Environment, Template

from app.application.dtos.flow import BuiltinMessage
from app.infrastructure.external.channels.protocols import ChannelDispatcher

# Context: payload (event payload), event (event name)
_DEFAULT_HANDLERS: dict[str, tuple[str, str]] = {
    "crm.deal.stalled": (
        "Deal stalled reminder",
        ":warning: Deal stalled: *{{ (payload.deal or {}).name or payload.deal_name or 'Deal' }}* "
        "(owner: {{ (payload.deal or {}).owner or payload.owner or 'owner' }})",
    ),
    "crm.deal.won": (
        "Deal won thank-you",
        ":checkered_flag: Deal won: *{{ (payload.deal or {}).name or payload.deal_name or 'Deal' }}*",
    ),
    "stock.product.low": (
        "Low stock reminder",
        ":package: Low stock: {{ (payload.product or {}).sku or payload.sku or 'SKU' }} "
        "(qty: {{ (payload.product or {}).qty or payload.qty or '?' }})",
    ),
    "stock.order.delayed": (
        "Order delayed reminder",
        ":hourglass: Order delayed: {{ (payload.order or {}).id or payload.order_id or 'order' }}",
    ),
}


class BuiltinEventNotifier:
    """Hard-coded Slack notifications for a fixed set of CRM and stock events."""

    def __init__(
        self,
        dispatcher: ChannelDispatcher,
        handlers: dict[str, tuple[str, str]] | None = None,
    ) -> None:
        """Initialize with optional handler dict; falls back to _DEFAULT_HANDLERS."""
        self._dispatcher = dispatcher
        self._env = Environment(autoescape=False)
        self._compiled: dict[str, tuple[str, Template]] = {
            event: (name, self._env.from_string(text))
            for event, (name, text) in (handlers or _DEFAULT_HANDLERS).items()
        }

    @property
    def events(self) -> list[str]:
        return sorted(self._compiled)

    def handles(self, event: str) -> bool:
        return event in self._compiled

    def render(self, event: str, payload: dict[str, Any]) -> BuiltinMessage:
        """Render the Slack text for event. Raises KeyError if no handler exists."""
        if event not in self._compiled:
            raise KeyError(f"No built-in handler for event: {event}")
        name, template = self._compiled[event]
        return BuiltinMessage(
            event=event,
            name=name,
            text=template.render(payload=payload or {}, event=event),
        )

    async def send(self, message: BuiltinMessage, webhook: str | None) -> dict[str, Any]:
        return await self._dispatcher.send_slack(webhook, message.text)
