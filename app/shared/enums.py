"""Shared enumerations for the flows backend.

Cross-cutting enums used by application and infrastructure (run
lifecycle, step kinds, provider connection state).
"""

from enum import Enum


class _ValuesMixin:
    """Mixin that adds a values() classmethod to str Enums."""

    @classmethod
    def values(cls) -> list[str]:
        """Return all valid values as strings."""
        return [member.value for member in cls]


class FlowRunStatus(_ValuesMixin, str, Enum):
    """Flow run lifecycle: pending|queued -> running -> ok|error. Never moves backwards."""

    PENDING = "pending"
    QUEUED = "queued"
    RUNNING = "running"
    OK = "ok"
    ERROR = "error"

    @classmethod
    def claimable(cls) -> tuple["FlowRunStatus", ...]:
        """Statuses the run claimer may pick up."""
        return (cls.PENDING, cls.QUEUED)

    @property
    def is_terminal(self) -> bool:
        return self in (FlowRunStatus.OK, FlowRunStatus.ERROR)


class StepType(_ValuesMixin, str, Enum):
    """Known flow step kinds (the `type` column of flow_steps)."""

    SLACK_POST = "slack.post"
    WHATSAPP_SEND = "whatsapp.send"
    EMAIL_SEND = "email.send"
    TASK_CREATE = "task.create"


class ProviderKind(_ValuesMixin, str, Enum):
    """Notification channel provider kinds (flow_providers.provider_id)."""

    EMAIL = "email"
    SLACK = "slack"
    WHATSAPP = "whatsapp"


class ProviderConnectionStatus(_ValuesMixin, str, Enum):
    """Per-organization provider connection state."""

    PENDING = "pending"
    CONNECTED = "connected"
