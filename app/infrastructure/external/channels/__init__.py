"""Notification channels (email, Slack, WhatsApp) behind one dispatcher."""

from app.infrastructure.external.channels.email import SmtpEmailChannel
from app.infrastructure.external.channels.factory import (
    ChannelDispatcherFactory,
    ProviderChannelDispatcher,
)
from app.infrastructure.external.channels.protocols import ChannelDispatcher
from app.infrastructure.external.channels.slack import SlackWebhookChannel
from app.infrastructure.external.channels.whatsapp import WhatsAppChannel

__all__ = [
    "ChannelDispatcher",
    "ChannelDispatcherFactory",
    "ProviderChannelDispatcher",
    "SlackWebhookChannel",
    "SmtpEmailChannel",
    "WhatsAppChannel",
]
