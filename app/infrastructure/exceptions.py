"""Infrastructure exceptions for notification channel providers.

Provider errors extend FlowsException so presentation can map them
to HTTP responses consistently. The message is a short reason code
(e.g. "missing_webhook") because it becomes the run's terminal error.
"""

from app.domain.exceptions import FlowsException


class ProviderException(FlowsException):
    """Base exception for notification channel operations."""


class ProviderError(ProviderException):
    """A notification channel rejected the message or was unreachable."""

    def __init__(self, provider: str, reason: str, detail: str | None = None) -> None:
        details = {"provider": provider, "reason": reason}
        if detail:
            details["detail"] = detail
        super().__init__(reason, "PROVIDER_ERROR", details)
        self.provider = provider
        self.reason = reason
