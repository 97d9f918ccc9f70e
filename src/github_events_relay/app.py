"""
Application wiring for the GitHub events relay.

``RelayApp`` builds the feed client, poller, dispatcher and Slack client
from settings and runs either the long-lived watch loop or a single event.
"""

import asyncio
import signal
from pathlib import Path

import structlog

from .config import Settings
from .dispatcher import EventDispatcher, drain_errors
from .events import supported_event_types
from .github_client import GitHubFeedClient
from .models import Envelope
from .polling import FeedPoller
from .renderer import render_envelope
from .slack_client import SlackClient
from .state import CheckpointStore

logger = structlog.get_logger(__name__)


class RelayApp:
    """Main application class."""

    def __init__(self, settings: Settings) -> None:
        """
        Initialize the application.

        Args:
            settings: Application settings
        """
        self.settings = settings
        self.github_client: GitHubFeedClient | None = None
        self.slack_client: SlackClient | None = None
        self.checkpoint_store: CheckpointStore | None = None
        self.poller: FeedPoller | None = None
        self.dispatcher: EventDispatcher | None = None

    def initialize_delivery(self) -> None:
        """Create the Slack client and dispatcher."""
        self.slack_client = SlackClient(
            self.settings.slack_config, timeout=self.settings.http_timeout_seconds
        )
        self.dispatcher = EventDispatcher(
            self.slack_client, base_url=self.settings.github_config.web_url
        )
        logger.info(
            "Slack client initialized",
            channel=self.settings.slack_channel,
            event_types=supported_event_types(),
        )

    def initialize_polling(self) -> None:
        """Create the feed client and a poller resumed from the checkpoint."""
        polling_config = self.settings.polling_config
        self.github_client = GitHubFeedClient(
            self.settings.github_config, timeout=self.settings.http_timeout_seconds
        )
        self.checkpoint_store = CheckpointStore(polling_config.state_file)
        self.poller = FeedPoller.from_checkpoint(
            self.github_client,
            self.checkpoint_store,
            default_interval=polling_config.interval_seconds,
        )
        logger.info(
            "Feed poller initialized",
            user=self.settings.github_user,
            state_file=str(polling_config.state_file),
        )

    def setup_signal_handlers(self) -> None:
        """Stop the poller on SIGINT/SIGTERM so it can save its checkpoint."""
        loop = asyncio.get_running_loop()

        def signal_handler(signum: int) -> None:
            logger.info("Received signal, initiating shutdown", signal=signum)
            self.request_stop()

        for signum in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(signum, signal_handler, signum)
            except NotImplementedError:
                # Event loops without signal support (e.g. Windows)
                signal.signal(
                    signum,
                    lambda s, _frame: loop.call_soon_threadsafe(signal_handler, s),
                )

    def request_stop(self) -> None:
        """Ask the watch loop to shut down."""
        if self.poller:
            self.poller.request_stop()

    async def watch(self) -> None:
        """
        Relay feed events to Slack until a stop is requested.

        The poller produces onto a bounded event queue; this coroutine
        consumes it one event at a time, so slow deliveries eventually
        block the poller. Errors are logged by a separate task.
        """
        if not self.poller or not self.dispatcher:
            raise RuntimeError("Application not initialized")

        polling_config = self.settings.polling_config
        events: asyncio.Queue[Envelope] = asyncio.Queue(
            maxsize=polling_config.event_queue_size
        )
        errors: asyncio.Queue[Exception | None] = asyncio.Queue(
            maxsize=polling_config.error_queue_size
        )
        self.dispatcher.errors = errors

        error_task = asyncio.create_task(drain_errors(errors))
        poller_task = asyncio.create_task(self.poller.run(events, errors))

        logger.info("Watching GitHub events", user=self.settings.github_user)
        try:
            await self._consume(events, poller_task)
        finally:
            if not poller_task.done():
                self.poller.request_stop()
                await asyncio.gather(poller_task, return_exceptions=True)
            await errors.put(None)
            error_count = await error_task
            logger.info("Watch loop finished", errors_reported=error_count)

    async def _consume(
        self, events: "asyncio.Queue[Envelope]", poller_task: "asyncio.Task[None]"
    ) -> None:
        assert self.dispatcher is not None

        while True:
            getter = asyncio.ensure_future(events.get())
            await asyncio.wait({getter, poller_task}, return_when=asyncio.FIRST_COMPLETED)
            if not getter.done():
                getter.cancel()
                break
            await self._dispatch(getter.result())

        # Events already handed over are past the checkpoint; deliver them
        while not events.empty():
            await self._dispatch(events.get_nowait())

    async def _dispatch(self, envelope: Envelope) -> None:
        assert self.dispatcher is not None
        try:
            await self.dispatcher.dispatch(envelope)
        except Exception:
            logger.exception(
                "Unexpected error dispatching event",
                event_id=envelope.id,
                event_type=envelope.type,
            )

    async def single(self, event_file: Path) -> None:
        """
        Render and post one event record read from a JSON file.

        Raises:
            OSError: If the file cannot be read
            EnvelopeDecodeError: If the file is not an event record
            ClassificationError: If the event cannot be classified
            DeliveryError: If Slack rejects the message
        """
        if not self.slack_client:
            raise RuntimeError("Application not initialized")

        envelope = Envelope.from_json(Path(event_file).read_bytes())
        notification = render_envelope(envelope, self.settings.github_config.web_url)
        await self.slack_client.post_notification(notification)
        logger.info("Single event posted", event_id=envelope.id, event_type=envelope.type)

    async def close(self) -> None:
        """Close HTTP clients."""
        if self.github_client:
            await self.github_client.aclose()
        if self.slack_client:
            await self.slack_client.aclose()
