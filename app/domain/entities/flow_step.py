"""Flow step kinds as a closed tagged union.

A stored step is (position, type, config). parse_step turns it into one of
the typed step classes below; unknown types raise UnsupportedStepException.
Consumers branch on the step class and end with assert_never.
"""

from dataclasses import dataclass, field
from typing import Any, assert_never

from app.domain.exceptions import UnsupportedStepException
from app.shared.enums import StepType


def _str_or_none(value: Any) -> str | None:
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


@dataclass(frozen=True)
class SlackPostStep:
    """Post a message to the organization's Slack webhook."""

    position: int
    template: str


@dataclass(frozen=True)
class WhatsAppSendStep:
    """Send a WhatsApp message; `to` and `template` are rendered against the run context."""

    position: int
    to: str | None
    template: str


@dataclass(frozen=True)
class EmailSendStep:
    """Send an email; subject None means the configured default subject."""

    position: int
    to: str | None
    subject: str | None
    text: str


@dataclass(frozen=True)
class TaskCreateStep:
    """Placeholder for CRM task creation. Acknowledged, no external effect."""

    position: int
    config: dict[str, Any] = field(default_factory=dict)


StepAction = SlackPostStep | WhatsAppSendStep | EmailSendStep | TaskCreateStep


def parse_step(position: int, step_type: str, config: dict[str, Any] | None) -> StepAction:
    """Build the typed step for a stored (type, config) pair.

    Raises:
        UnsupportedStepException: If step_type is not a known kind.
    """
    cfg = config or {}
    try:
        kind = StepType(step_type)
    except ValueError:
        raise UnsupportedStepException(step_type) from None

    if kind is StepType.SLACK_POST:
        return SlackPostStep(
            position=position,
            template=_str_or_none(cfg.get("template") or cfg.get("text")) or "",
        )
    if kind is StepType.WHATSAPP_SEND:
        return WhatsAppSendStep(
            position=position,
            to=_str_or_none(cfg.get("to")),
            template=_str_or_none(cfg.get("template") or cfg.get("template_id")) or "",
        )
    if kind is StepType.EMAIL_SEND:
        return EmailSendStep(
            position=position,
            to=_str_or_none(cfg.get("to")),
            subject=_str_or_none(cfg.get("subject")),
            text=_str_or_none(cfg.get("text") or cfg.get("body")) or "",
        )
    if kind is StepType.TASK_CREATE:
        return TaskCreateStep(position=position, config=dict(cfg))
    assert_never(kind)
