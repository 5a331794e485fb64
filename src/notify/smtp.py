"""Email sink using stdlib smtplib."""

import asyncio
import smtplib
from email.mime.text import MIMEText

import structlog

from reminders.errors import NotificationError

from .base import NotificationSink

logger = structlog.get_logger().bind(source="email_sink")


class EmailSink(NotificationSink):
    """Send each reminder as a short plain-text email.

    smtplib is blocking, so delivery runs in a worker thread.
    """

    sink_name = "email"

    def __init__(
        self,
        smtp_host: str,
        to_addr: str,
        username: str = "",
        password: str = "",
        smtp_port: int = 587,
        from_addr: str | None = None,
    ):
        if not smtp_host or not to_addr:
            raise ValueError("EmailSink needs smtp_host and to_addr")
        self.smtp_host = smtp_host
        self.smtp_port = smtp_port
        self.username = username
        self.password = password
        self.to_addr = to_addr
        self.from_addr = from_addr or username or to_addr

    def _build(self, title: str, body: str) -> MIMEText:
        msg = MIMEText(body, "plain", "utf-8")
        msg["Subject"] = title
        msg["From"] = self.from_addr
        msg["To"] = self.to_addr
        return msg

    def _deliver(self, msg: MIMEText) -> None:
        with smtplib.SMTP(self.smtp_host, self.smtp_port, timeout=30) as server:
            server.ehlo()
            if self.smtp_port != 25:
                server.starttls()
            if self.username and self.password:
                server.login(self.username, self.password)
            server.sendmail(self.from_addr, [self.to_addr], msg.as_string())

    async def send(self, title: str, body: str) -> None:
        msg = self._build(title, body)
        try:
            await asyncio.to_thread(self._deliver, msg)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(f"email delivery failed: {e}") from e
        logger.info("email_sent", to=self.to_addr, subject=title)
