"""
Slack Web API client for the GitHub events relay.

This module posts rendered notifications to the configured channel and
uploads raw event records that could not be rendered.
"""

from typing import Any

import httpx
import structlog

from .config import SlackConfig
from .exceptions import DeliveryError
from .models import Envelope, Notification

logger = structlog.get_logger(__name__)


class SlackClient:
    """
    Slack Web API client bound to a single channel.

    Every failed call, whether at the HTTP level or an ``"ok": false``
    response, raises ``DeliveryError``.
    """

    def __init__(
        self,
        config: SlackConfig,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Initialize the Slack client.

        Args:
            config: Slack configuration
            timeout: Request timeout in seconds
            transport: Optional httpx transport, mainly for tests
        """
        self.config = config
        self.channel = config.channel
        self._client = httpx.AsyncClient(
            headers={"Authorization": f"Bearer {config.token}"},
            timeout=timeout,
            transport=transport,
        )

    def _url(self, method: str) -> str:
        return f"{self.config.api_url.rstrip('/')}/{method}"

    async def _call(
        self,
        method: str,
        json: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Call a Web API method and return its decoded response."""
        try:
            response = await self._client.post(self._url(method), json=json, data=data)
            response.raise_for_status()
            result = response.json()
        except httpx.HTTPError as e:
            raise DeliveryError(f"Slack {method} failed: {e}", method=method) from e
        except ValueError as e:
            raise DeliveryError(
                f"Slack {method} returned invalid JSON: {e}", method=method
            ) from e

        if not isinstance(result, dict) or not result.get("ok"):
            error = result.get("error", "unknown_error") if isinstance(result, dict) else result
            raise DeliveryError(
                f"Slack {method} failed: {error}",
                method=method,
                context={"response": result},
            )
        return result

    async def post_notification(self, notification: Notification) -> str:
        """
        Post a rendered notification.

        Args:
            notification: Message to post

        Returns:
            Timestamp of the posted message
        """
        payload = {
            "channel": self.channel,
            "text": notification.text,
            "attachments": [a.model_dump() for a in notification.attachments],
            "username": notification.username,
            "icon_url": notification.icon_url,
            "mrkdwn": True,
            "unfurl_links": False,
            "unfurl_media": False,
        }
        result = await self._call("chat.postMessage", json=payload)

        logger.info(
            "Notification posted",
            channel=self.channel,
            username=notification.username,
            ts=result.get("ts"),
        )
        return str(result.get("ts", ""))

    async def upload_event(self, envelope: Envelope, comment: str) -> str:
        """
        Upload an event's raw record so it can be inspected by hand.

        Args:
            envelope: Event whose original record is uploaded
            comment: Message posted alongside the file, usually the error

        Returns:
            Slack file ID
        """
        filename = f"{envelope.type}.json"
        content = envelope.pretty_raw().encode("utf-8")

        ticket = await self._call(
            "files.getUploadURLExternal",
            data={"filename": filename, "length": len(content)},
        )
        upload_url = ticket.get("upload_url")
        file_id = ticket.get("file_id")
        if not upload_url or not file_id:
            raise DeliveryError(
                "Slack files.getUploadURLExternal returned no upload URL",
                method="files.getUploadURLExternal",
            )

        try:
            response = await self._client.post(
                upload_url, files={"file": (filename, content, "application/json")}
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            raise DeliveryError(
                f"Slack file upload failed: {e}", method="files.upload"
            ) from e

        await self._call(
            "files.completeUploadExternal",
            json={
                "files": [{"id": file_id, "title": filename}],
                "channel_id": self.channel,
                "initial_comment": comment,
            },
        )

        logger.info(
            "Event payload uploaded",
            channel=self.channel,
            event_id=envelope.id,
            filename=filename,
            file_id=file_id,
        )
        return str(file_id)

    async def aclose(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> "SlackClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()
