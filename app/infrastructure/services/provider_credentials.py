"""Per-organization channel credential resolution."""

from __future__ import annotations

from app.application.interfaces.repositories import IFlowProviderRepository
from app.shared.enums import ProviderConnectionStatus, ProviderKind
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)


class ProviderCredentialResolver:
    """Resolve channel endpoints for an organization at dispatch time.

    A connected Slack provider wins; otherwise the configured process-wide
    fallback webhook is used when one is set. No fallback means None.
    """

    def __init__(
        self,
        provider_repo: IFlowProviderRepository,
        *,
        default_slack_webhook_url: str | None = None,
    ) -> None:
        self._provider_repo = provider_repo
        self._default_slack_webhook_url = default_slack_webhook_url or None

    async def resolve_slack_webhook(self, organization_id: str) -> str | None:
        connection = await self._provider_repo.get_connection(
            organization_id, ProviderKind.SLACK.value
        )
        if connection and connection.status == ProviderConnectionStatus.CONNECTED.value:
            creds = connection.credentials or {}
            webhook = creds.get("webhook_url") or creds.get("webhook")
            if isinstance(webhook, str) and webhook:
                return webhook
        if self._default_slack_webhook_url:
            logger.debug(
                "Organization %s has no connected Slack provider; using fallback webhook",
                organization_id,
            )
            return self._default_slack_webhook_url
        return None
