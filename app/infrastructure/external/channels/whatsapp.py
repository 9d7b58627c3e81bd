"""WhatsApp channel: Twilio Messages API when configured, deterministic stub otherwise."""

from __future__ import annotations

from typing import Any

import httpx

from app.domain.exceptions import ValidationException
from app.infrastructure.exceptions import ProviderError
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

PROVIDER = "whatsapp"


def _whatsapp_address(number: str) -> str:
    return number if number.startswith("whatsapp:") else f"whatsapp:{number}"


class WhatsAppChannel:
    """Send WhatsApp messages through Twilio.

    Without account_sid, auth_token and from_number the channel answers with
    {"status": 200, "data": {"mock": True, "to": ..., "message": ...}} and
    performs no network call.
    """

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        *,
        account_sid: str | None = None,
        auth_token: str | None = None,
        from_number: str | None = None,
        api_base: str = "https://api.twilio.com",
        timeout: float = 10.0,
    ) -> None:
        self._http = http_client
        self._account_sid = account_sid
        self._auth_token = auth_token
        self._from_number = from_number
        self._api_base = api_base.rstrip("/")
        self._timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self._account_sid and self._auth_token and self._from_number)

    async def send(self, to: str | None, message: str) -> dict[str, Any]:
        """Send one message. Returns {"status": ...}.

        Raises:
            ValidationException: If `to` is empty.
            ProviderError: timeout or send_failed (Twilio only).
        """
        if not to:
            raise ValidationException("to is required", field="to")
        if not self.configured:
            return {"status": 200, "data": {"mock": True, "to": to, "message": message}}

        url = f"{self._api_base}/2010-04-01/Accounts/{self._account_sid}/Messages.json"
        try:
            response = await self._http.post(
                url,
                data={
                    "From": _whatsapp_address(self._from_number or ""),
                    "To": _whatsapp_address(to),
                    "Body": message,
                },
                auth=(self._account_sid or "", self._auth_token or ""),
                timeout=self._timeout,
            )
        except httpx.TimeoutException as e:
            raise ProviderError(PROVIDER, "timeout") from e
        except httpx.HTTPError as e:
            logger.warning("Twilio unreachable: %s", e.__class__.__name__)
            raise ProviderError(PROVIDER, "send_failed", e.__class__.__name__) from e
        if not response.is_success:
            logger.warning("Twilio rejected message (status=%s)", response.status_code)
            raise ProviderError(PROVIDER, "send_failed", f"status={response.status_code}")
        body = response.json() if response.content else {}
        return {"status": response.status_code, "sid": body.get("sid")}
