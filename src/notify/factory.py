"""Notification sink factory."""

from .base import FanoutSink, NotificationSink


def create_sink(config) -> NotificationSink:
    """Build the sink (or fan-out of sinks) for the configured methods.

    Args:
        config: ReminderConfig
    """
    notify_cfg = config.notify
    sinks: list[NotificationSink] = []
    for method in notify_cfg.methods:
        if method == "console":
            from .console import ConsoleSink

            sinks.append(ConsoleSink())
        elif method == "webhook":
            from .webhook import WebhookSink

            sinks.append(
                WebhookSink(
                    notify_cfg.webhook_url,
                    fmt=notify_cfg.webhook_format,
                    token=notify_cfg.webhook_token,
                )
            )
        elif method == "email":
            from .smtp import EmailSink

            ec = notify_cfg.email
            sinks.append(
                EmailSink(
                    smtp_host=ec.smtp_host,
                    to_addr=ec.to,
                    username=ec.username,
                    password=ec.password,
                    smtp_port=ec.smtp_port,
                    from_addr=ec.from_addr,
                )
            )
        else:
            raise ValueError(f"Unknown notify method: {method}")

    if len(sinks) == 1:
        return sinks[0]
    return FanoutSink(sinks)
