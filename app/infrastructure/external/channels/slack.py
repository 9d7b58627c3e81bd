"""Slack incoming-webhook channel."""

from __future__ import annotations

from typing import Any

import httpx

from app.infrastructure.exceptions import ProviderError
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

PROVIDER = "slack"


class SlackWebhookChannel:
    """POST {"text": ...} to a webhook URL. The URL is a credential and is never logged."""

    def __init__(self, http_client: httpx.AsyncClient, *, timeout: float = 10.0) -> None:
        self._http = http_client
        self._timeout = timeout

    async def send(self, webhook: str | None, text: str) -> dict[str, Any]:
        """Post one message. Returns {"status": <http status>}.

        Raises:
            ProviderError: missing_webhook, timeout, or post_failed.
        """
        if not webhook:
            raise ProviderError(PROVIDER, "missing_webhook")
        try:
            response = await self._http.post(
                webhook, json={"text": text}, timeout=self._timeout
            )
        except httpx.TimeoutException as e:
            raise ProviderError(PROVIDER, "timeout") from e
        except httpx.HTTPError as e:
            logger.warning("Slack webhook unreachable: %s", e.__class__.__name__)
            raise ProviderError(PROVIDER, "post_failed", e.__class__.__name__) from e
        if not response.is_success:
            logger.warning("Slack webhook rejected message (status=%s)", response.status_code)
            raise ProviderError(
                PROVIDER, "post_failed", f"status={response.status_code}"
            )
        return {"status": response.status_code}
