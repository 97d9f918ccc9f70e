"""
Resume checkpoint for the feed poller.

The poller's state (last ETag, last seen event timestamp and current poll
interval) is written to a single JSON file on shutdown and read back on the
next start, so already delivered events are not posted again.
"""

import os
import tempfile
from datetime import UTC, datetime
from pathlib import Path

import structlog
from pydantic import BaseModel, Field, ValidationError, field_validator

from ..exceptions import CheckpointError

logger = structlog.get_logger(__name__)

EPOCH = datetime(1970, 1, 1, tzinfo=UTC)
DEFAULT_INTERVAL_SECONDS = 60.0


class ResumeState(BaseModel):
    """Poller state that survives restarts."""

    etag: str | None = Field(default=None, description="Last ETag from the feed")
    last_seen: datetime = Field(
        default=EPOCH, description="Creation time of the newest emitted event"
    )
    interval: float = Field(
        default=DEFAULT_INTERVAL_SECONDS, description="Poll interval in seconds"
    )

    @field_validator("interval")
    @classmethod
    def validate_interval(cls, v: float) -> float:
        """Validate that the interval is positive."""
        if v <= 0:
            raise ValueError(f"Poll interval must be positive, got {v}")
        return v

    @field_validator("last_seen")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        """Treat timestamps without an offset as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v


class CheckpointStore:
    """Reads and writes ``ResumeState`` snapshots to a file."""

    def __init__(self, path: Path | str) -> None:
        """
        Initialize the checkpoint store.

        Args:
            path: Checkpoint file location
        """
        self.path = Path(path)

    def load(self) -> ResumeState | None:
        """
        Load the last saved state.

        Returns:
            Saved state, or None if no checkpoint has been written yet

        Raises:
            CheckpointError: If the checkpoint exists but cannot be read
        """
        try:
            data = self.path.read_bytes()
        except FileNotFoundError:
            logger.info("No checkpoint found", path=str(self.path))
            return None
        except OSError as e:
            raise CheckpointError(
                f"Failed to read checkpoint: {e}", path=str(self.path)
            ) from e

        try:
            state = ResumeState.model_validate_json(data)
        except ValidationError as e:
            raise CheckpointError(
                f"Failed to decode checkpoint: {e}", path=str(self.path)
            ) from e

        logger.info(
            "Checkpoint loaded",
            path=str(self.path),
            last_seen=state.last_seen.isoformat(),
            interval=state.interval,
            has_etag=state.etag is not None,
        )
        return state

    def save(self, state: ResumeState) -> None:
        """
        Save a state snapshot.

        The snapshot is written to a temporary file in the same directory
        and moved over the previous checkpoint, so a crash mid-write leaves
        the old checkpoint intact.

        Raises:
            CheckpointError: If the checkpoint cannot be written
        """
        directory = self.path.parent
        tmp_name: str | None = None
        try:
            directory.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                prefix=f".{self.path.name}.", suffix=".tmp", dir=directory
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(state.model_dump_json())
            os.replace(tmp_name, self.path)
        except OSError as e:
            if tmp_name is not None and os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise CheckpointError(
                f"Failed to save checkpoint: {e}", path=str(self.path)
            ) from e

        logger.info(
            "Checkpoint saved",
            path=str(self.path),
            last_seen=state.last_seen.isoformat(),
            interval=state.interval,
        )
