"""
Data models shared across the relay.

``Envelope`` is one record of the GitHub events feed with its payload left
undecoded; ``Notification`` is the rendered, Slack-ready message.
"""

import json
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .exceptions import BodyDecodeError, EnvelopeDecodeError


class Actor(BaseModel):
    """User that triggered an event."""

    model_config = ConfigDict(extra="ignore")

    login: str = ""
    avatar_url: str = ""


class Repo(BaseModel):
    """Repository an event happened in."""

    model_config = ConfigDict(extra="ignore")

    name: str = ""


class Envelope(BaseModel):
    """A single feed record: type tag, actor, repository and raw payload."""

    model_config = ConfigDict(extra="ignore")

    id: str = ""
    type: str
    actor: Actor = Field(default_factory=Actor)
    repo: Repo = Field(default_factory=Repo)
    payload: Any = None
    created_at: datetime
    public: bool = False

    # Original record, kept for diagnostic uploads
    raw: dict[str, Any] = Field(default_factory=dict, exclude=True)

    @field_validator("created_at")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        """Treat timestamps without an offset as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v

    @classmethod
    def from_record(cls, record: Any) -> "Envelope":
        """Build an envelope from one decoded JSON record."""
        if not isinstance(record, dict):
            raise ValueError(f"event record must be an object, got {type(record).__name__}")
        envelope = cls.model_validate(record)
        envelope.raw = record
        return envelope

    @classmethod
    def from_json(cls, data: bytes | str) -> "Envelope":
        """
        Decode a standalone event record.

        Raises:
            EnvelopeDecodeError: If the data is not a valid event record
        """
        try:
            return cls.from_record(json.loads(data))
        except (ValueError, ValidationError) as e:
            raise EnvelopeDecodeError(f"Invalid event record: {e}") from e

    def pretty_raw(self) -> str:
        """Tab-indented JSON dump of the original record."""
        return json.dumps(self.raw, indent="\t", ensure_ascii=False)

    def __str__(self) -> str:
        return (
            f"Envelope(id={self.id!r}, type={self.type!r}, "
            f"actor={self.actor.login!r}, repo={self.repo.name!r}, "
            f"created_at={self.created_at.isoformat()}, public={self.public})"
        )


def decode_batch(body: bytes) -> list[Envelope]:
    """
    Decode a feed response body, keeping the upstream (newest-first) order.

    Raises:
        BodyDecodeError: If the body is not a JSON array of event records
    """
    try:
        records = json.loads(body)
    except ValueError as e:
        raise BodyDecodeError(f"Feed response is not valid JSON: {e}") from e

    if not isinstance(records, list):
        raise BodyDecodeError(
            f"Feed response must be a JSON array, got {type(records).__name__}"
        )

    try:
        return [Envelope.from_record(record) for record in records]
    except (ValueError, ValidationError) as e:
        raise BodyDecodeError(f"Feed response contains an invalid event: {e}") from e


class Attachment(BaseModel):
    """Slack message attachment block."""

    text: str
    mrkdwn_in: list[str] = Field(default_factory=lambda: ["text"])


class Notification(BaseModel):
    """Rendered message, independent of the Slack client."""

    text: str
    attachments: list[Attachment] = Field(default_factory=list)
    username: str
    icon_url: str = ""
