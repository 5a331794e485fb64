"""Notification sinks for reminders."""

from .base import FanoutSink, NotificationSink
from .console import ConsoleSink
from .smtp import EmailSink
from .webhook import WebhookSink

__all__ = ["ConsoleSink", "EmailSink", "FanoutSink", "NotificationSink", "WebhookSink"]
