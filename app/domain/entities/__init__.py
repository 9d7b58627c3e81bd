"""Domain entities: typed flow steps."""

from app.domain.entities.flow_step import (
    EmailSendStep,
    SlackPostStep,
    StepAction,
    TaskCreateStep,
    WhatsAppSendStep,
    parse_step,
)

__all__ = [
    "EmailSendStep",
    "SlackPostStep",
    "StepAction",
    "TaskCreateStep",
    "WhatsAppSendStep",
    "parse_step",
]
