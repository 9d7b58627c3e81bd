"""Email channel over SMTP.

smtplib is blocking, so delivery runs in a worker thread (asyncio.to_thread)
with the connection timeout set to the provider timeout.
"""

from __future__ import annotations

import asyncio
import smtplib
from email.message import EmailMessage
from email.utils import make_msgid
from typing import Any

from app.domain.exceptions import ValidationException
from app.infrastructure.exceptions import ProviderError
from app.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

PROVIDER = "email"


class SmtpEmailChannel:
    """Send plain-text email through one SMTP relay."""

    def __init__(
        self,
        host: str | None,
        from_address: str | None,
        *,
        port: int = 587,
        secure: bool = False,
        user: str | None = None,
        password: str | None = None,
        timeout: float = 10.0,
    ) -> None:
        self._host = host
        self._port = port
        self._secure = secure
        self._user = user
        self._password = password
        self._from_address = from_address or user
        self._timeout = timeout

    @property
    def configured(self) -> bool:
        return bool(self._host and self._from_address)

    def _build_message(self, to: str, subject: str, text: str) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self._from_address
        msg["To"] = to
        msg["Message-ID"] = make_msgid(domain=self._host or None)
        msg.set_content(text)
        return msg

    def _deliver(self, msg: EmailMessage) -> None:
        # Port 465 style implicit TLS when secure, otherwise STARTTLS if offered.
        if self._secure:
            server: smtplib.SMTP = smtplib.SMTP_SSL(
                self._host or "", self._port, timeout=self._timeout
            )
        else:
            server = smtplib.SMTP(self._host or "", self._port, timeout=self._timeout)
        try:
            if not self._secure:
                server.ehlo()
                if server.has_extn("starttls"):
                    server.starttls()
                    server.ehlo()
            if self._user and self._password:
                server.login(self._user, self._password)
            server.send_message(msg)
        finally:
            try:
                server.quit()
            except smtplib.SMTPException:
                server.close()

    async def send(self, to: str | None, subject: str, text: str) -> dict[str, Any]:
        """Deliver one message. Returns {"message_id": ...}.

        Raises:
            ValidationException: If `to` is empty.
            ProviderError: smtp_not_configured, timeout, or send_failed.
        """
        if not to:
            raise ValidationException("to is required", field="to")
        if not self.configured:
            raise ProviderError(PROVIDER, "smtp_not_configured")
        msg = self._build_message(to, subject, text)
        try:
            await asyncio.to_thread(self._deliver, msg)
        except TimeoutError as e:
            raise ProviderError(PROVIDER, "timeout") from e
        except (smtplib.SMTPException, OSError) as e:
            logger.warning("SMTP delivery failed: %s", e.__class__.__name__)
            raise ProviderError(PROVIDER, "send_failed", str(e)) from e
        message_id = msg["Message-ID"]
        logger.info("Email sent (message_id=%s)", message_id)
        return {"message_id": message_id}
