"""
Event dispatcher for the GitHub events relay.

This module takes envelopes off the event queue, classifies and renders
them, and hands the result to Slack. It also drains the error queue.
"""

import asyncio

import structlog

from .events import classify
from .exceptions import ClassificationError, DeliveryError, RelayError
from .links import GITHUB_WEB_URL
from .models import Envelope
from .renderer import render
from .slack_client import SlackClient

logger = structlog.get_logger(__name__)


class EventDispatcher:
    """Classifies, renders and delivers one envelope at a time."""

    def __init__(
        self,
        slack_client: SlackClient,
        errors: "asyncio.Queue[Exception | None] | None" = None,
        base_url: str = GITHUB_WEB_URL,
    ) -> None:
        """
        Initialize the dispatcher.

        Args:
            slack_client: Delivery client
            errors: Queue for delivery failures; None logs them instead
            base_url: GitHub web URL used to build links
        """
        self.slack_client = slack_client
        self.errors = errors
        self.base_url = base_url

    async def dispatch(self, envelope: Envelope) -> bool:
        """
        Deliver a single envelope.

        Returns:
            True if a notification was posted
        """
        try:
            payload = classify(envelope)
        except ClassificationError as e:
            await self._handle_unclassified(envelope, e)
            return False

        notification = render(envelope, payload, self.base_url)
        try:
            await self.slack_client.post_notification(notification)
        except DeliveryError as e:
            await self._report(e)
            return False

        logger.debug("Event delivered", event_id=envelope.id, event_type=envelope.type)
        return True

    async def _handle_unclassified(
        self, envelope: Envelope, error: ClassificationError
    ) -> None:
        logger.warning(
            "Event could not be classified",
            event_id=envelope.id,
            event_type=error.tag,
            code=error.code,
            public=envelope.public,
            error=str(error),
        )

        # Only public records are uploaded
        if not envelope.public:
            return

        try:
            await self.slack_client.upload_event(envelope, str(error))
        except DeliveryError as e:
            await self._report(e)

    async def _report(self, error: RelayError) -> None:
        if self.errors is None:
            log_error(error)
            return
        await self.errors.put(error)


def log_error(error: Exception) -> None:
    """Log a reported pipeline error."""
    if isinstance(error, RelayError):
        logger.error(
            "Pipeline error",
            error=str(error),
            code=error.code,
            error_type=type(error).__name__,
            context=error.context,
        )
    else:
        logger.error(
            "Pipeline error", error=str(error), error_type=type(error).__name__
        )


async def drain_errors(errors: "asyncio.Queue[Exception | None]") -> int:
    """
    Log errors from the queue until a ``None`` sentinel arrives.

    Returns:
        Number of errors logged
    """
    count = 0
    while True:
        error = await errors.get()
        if error is None:
            return count
        log_error(error)
        count += 1
