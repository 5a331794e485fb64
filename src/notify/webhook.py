"""HTTP webhook sink (ntfy-style push or generic JSON)."""

import httpx
import structlog

from reminders.errors import NotificationError

from .base import NotificationSink

logger = structlog.get_logger().bind(source="webhook_sink")

VALID_FORMATS = {"ntfy", "json"}


class WebhookSink(NotificationSink):
    """POST each reminder to a URL.

    ``ntfy`` format sends the body as plain text with a Title header;
    ``json`` sends {"title": ..., "body": ...}.
    """

    sink_name = "webhook"

    def __init__(
        self,
        url: str,
        fmt: str = "ntfy",
        token: str | None = None,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ):
        if fmt not in VALID_FORMATS:
            raise ValueError(f"Invalid webhook format: {fmt}. Must be one of {VALID_FORMATS}")
        self.url = url
        self.fmt = fmt
        self.token = token
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout)

    def _headers(self, title: str) -> dict:
        headers = {}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if self.fmt == "ntfy":
            # Header values must be latin-1; drop anything else (emoji etc.)
            headers["Title"] = title.encode("latin-1", "ignore").decode("latin-1").strip()
        return headers

    async def send(self, title: str, body: str) -> None:
        try:
            if self.fmt == "ntfy":
                response = await self.client.post(
                    self.url, content=body.encode("utf-8"), headers=self._headers(title)
                )
            else:
                response = await self.client.post(
                    self.url, json={"title": title, "body": body}, headers=self._headers(title)
                )
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise NotificationError(f"webhook returned {e.response.status_code}") from e
        except httpx.RequestError as e:
            raise NotificationError(f"webhook request failed: {e}") from e
        logger.debug("webhook_delivered", status=response.status_code)

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()
