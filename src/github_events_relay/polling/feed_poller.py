"""
Feed poller for the GitHub events relay.

This module runs the conditional polling loop against the received events
feed, deduplicates events against the last seen timestamp and hands new
events to the rest of the pipeline in chronological order.
"""

import asyncio
from collections.abc import Awaitable
from typing import TypeVar

import structlog

from ..exceptions import CheckpointError, IntervalDecodeError, RelayError
from ..github_client import FeedResponse, GitHubFeedClient
from ..models import Envelope, decode_batch
from ..state.checkpoint import DEFAULT_INTERVAL_SECONDS, CheckpointStore, ResumeState

logger = structlog.get_logger(__name__)

T = TypeVar("T")


class StopRequested(Exception):
    """Raised inside the poller when a stop request interrupts a wait."""


def parse_poll_interval(value: str) -> int:
    """
    Parse an ``X-Poll-Interval`` header value.

    Raises:
        IntervalDecodeError: If the value is not a positive integer
    """
    try:
        seconds = int(value.strip())
    except ValueError as e:
        raise IntervalDecodeError(value) from e
    if seconds <= 0:
        raise IntervalDecodeError(value)
    return seconds


class FeedPoller:
    """
    Polls the received events feed until asked to stop.

    The poller exclusively owns its ``ResumeState``. Other components only
    ever see copies, and the checkpoint is written from the poller's own
    task when the loop exits.
    """

    def __init__(
        self,
        client: GitHubFeedClient,
        store: CheckpointStore | None = None,
        state: ResumeState | None = None,
    ) -> None:
        """
        Initialize the feed poller.

        Args:
            client: Feed client used for the conditional requests
            store: Checkpoint store written on exit; None disables saving
            state: Initial resume state; defaults to a fresh state
        """
        self.client = client
        self.store = store
        self._state = state.model_copy() if state else ResumeState()
        self._stop_event = asyncio.Event()
        self.is_running_flag = False

    @classmethod
    def from_checkpoint(
        cls,
        client: GitHubFeedClient,
        store: CheckpointStore,
        default_interval: float = DEFAULT_INTERVAL_SECONDS,
    ) -> "FeedPoller":
        """
        Create a poller resuming from the store's last checkpoint.

        A missing checkpoint starts from scratch; an unreadable one is logged
        as a warning and also starts from scratch.
        """
        state: ResumeState | None = None
        try:
            state = store.load()
        except CheckpointError as e:
            logger.warning(
                "Checkpoint could not be loaded, starting fresh",
                path=e.path,
                error=str(e),
            )

        if state is None:
            state = ResumeState(interval=default_interval)
        return cls(client, store=store, state=state)

    @property
    def state(self) -> ResumeState:
        """Snapshot of the current resume state."""
        return self._state.model_copy()

    def is_running(self) -> bool:
        """Check if the polling loop is active."""
        return self.is_running_flag

    def request_stop(self) -> None:
        """Ask the polling loop to save its state and exit."""
        self._stop_event.set()

    async def poll_once(self) -> list[Envelope]:
        """
        Run one fetch cycle and advance the watermark past every new event.

        Response headers are applied before the body is decoded: a new ETag
        is kept even if the interval hint or the body turn out malformed.

        Returns:
            Events newer than the last seen timestamp, oldest first

        Raises:
            TransportError: If the request fails
            IntervalDecodeError: If the interval hint is malformed
            BodyDecodeError: If the response body is malformed
        """
        new_events = await self._fetch_new()
        for envelope in new_events:
            self._mark_seen(envelope)
        return new_events

    async def _fetch_new(self) -> list[Envelope]:
        """Fetch the feed and select new events without moving the watermark."""
        response = await self.client.fetch_events(self._state.etag)
        self._apply_headers(response)

        if response.not_modified:
            logger.debug("Feed not modified")
            return []

        return self._select_new(decode_batch(response.body))

    def _mark_seen(self, envelope: Envelope) -> None:
        if envelope.created_at > self._state.last_seen:
            self._state.last_seen = envelope.created_at

    def _apply_headers(self, response: FeedResponse) -> None:
        if response.etag and not response.not_modified:
            self._state.etag = response.etag

        if response.poll_interval is not None:
            interval = parse_poll_interval(response.poll_interval)
            if interval != self._state.interval:
                logger.info(
                    "Poll interval updated",
                    previous=self._state.interval,
                    interval=interval,
                )
            self._state.interval = interval

    def _select_new(self, batch: list[Envelope]) -> list[Envelope]:
        """Keep events strictly newer than the watermark, oldest first."""
        # Upstream order is newest first; ties keep their reversed order
        oldest_first = sorted(reversed(batch), key=lambda envelope: envelope.created_at)

        watermark = self._state.last_seen
        new_events = []
        for envelope in oldest_first:
            if envelope.created_at <= watermark:
                continue
            watermark = envelope.created_at
            new_events.append(envelope)

        logger.debug(
            "Selected new events",
            batch_size=len(batch),
            new_events=len(new_events),
            last_seen=self._state.last_seen.isoformat(),
        )
        return new_events

    async def run(
        self,
        events: "asyncio.Queue[Envelope]",
        errors: "asyncio.Queue[Exception | None]",
    ) -> None:
        """
        Poll until ``request_stop`` is called, then save the checkpoint.

        New events go to ``events`` and cycle failures to ``errors``, each
        in the order they occur. Both queues may be bounded: a full queue
        blocks the poller until the consumer catches up or a stop is
        requested. The saved watermark never passes an event that was not
        put on ``events``, so interrupted events are fetched again next run.
        """
        self.is_running_flag = True
        logger.info(
            "Starting feed poller",
            endpoint=self.client.endpoint,
            interval=self._state.interval,
            last_seen=self._state.last_seen.isoformat(),
        )

        try:
            while not self._stop_event.is_set():
                await self._cycle(events, errors)
                logger.debug("Sleeping until next poll", seconds=self._state.interval)
                await self._unless_stopped(asyncio.sleep(self._state.interval))
        except StopRequested:
            logger.info("Feed poller interrupted by stop request")
        finally:
            self.is_running_flag = False
            self.save_state()
            logger.info("Feed poller stopped")

    async def _cycle(
        self,
        events: "asyncio.Queue[Envelope]",
        errors: "asyncio.Queue[Exception | None]",
    ) -> None:
        try:
            new_events = await self._unless_stopped(self._fetch_new())
        except RelayError as e:
            logger.warning("Polling cycle failed", error=str(e), code=e.code)
            await self._unless_stopped(errors.put(e))
            return
        except StopRequested:
            raise
        except Exception as e:
            logger.exception("Unexpected error in polling cycle")
            await self._unless_stopped(errors.put(e))
            return

        # The watermark only moves past events the consumer has received
        for envelope in new_events:
            await self._unless_stopped(events.put(envelope))
            self._mark_seen(envelope)

        logger.info(
            "Polling cycle completed",
            new_events=len(new_events),
            last_seen=self._state.last_seen.isoformat(),
            next_poll_in_seconds=self._state.interval,
        )

    async def _unless_stopped(self, awaitable: Awaitable[T]) -> T:
        """
        Await ``awaitable`` unless a stop request comes first.

        Raises:
            StopRequested: If stop was requested before completion; the
                awaitable is cancelled
        """
        task = asyncio.ensure_future(awaitable)
        stopper = asyncio.ensure_future(self._stop_event.wait())
        try:
            await asyncio.wait({task, stopper}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            task.cancel()
            raise
        finally:
            stopper.cancel()

        if not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
            raise StopRequested()
        return task.result()

    def save_state(self) -> None:
        """Write the current state to the checkpoint store, logging failures."""
        if self.store is None:
            return
        try:
            self.store.save(self._state)
        except CheckpointError as e:
            logger.error("Failed to save checkpoint", path=e.path, error=str(e))
