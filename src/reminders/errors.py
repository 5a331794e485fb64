"""Reminder engine errors."""


class ReminderError(Exception):
    """Base reminder engine error."""


class ProviderError(ReminderError):
    """Point-of-interest query failed (transport, status or payload)."""


class ProviderTimeoutError(ProviderError):
    """Point-of-interest query exceeded its deadline."""


class NotificationError(ReminderError):
    """Notification sink could not deliver."""


class InvariantViolation(ReminderError):
    """Internal state reached a configuration no public call sequence allows."""
