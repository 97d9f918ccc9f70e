"""
Base event payload class.

This module defines the interface every typed event payload implements.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator

from ..links import EventLinks
from ..models import Attachment

COMMENT_PREVIEW_LINES = 3


class PayloadModel(BaseModel):
    """
    Lenient model for pieces of a GitHub event payload.

    Unknown fields are ignored and ``null`` values fall back to the field
    default, so payloads only need the fields a message actually uses.
    """

    model_config = ConfigDict(extra="ignore")

    @model_validator(mode="before")
    @classmethod
    def drop_nulls(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return {key: value for key, value in data.items() if value is not None}
        return data


class EventPayload(PayloadModel):
    """
    Base class for typed event payloads.

    Subclasses override ``text`` and ``attachments``; the base renders an
    empty message so an unhandled variant never produces noise.
    """

    def text(self, links: EventLinks) -> str:
        """
        Build the message headline.

        Args:
            links: Link helpers for the envelope being rendered

        Returns:
            Slack mrkdwn text
        """
        return ""

    def attachments(self, links: EventLinks) -> list[Attachment]:
        """
        Build the message attachment blocks.

        Args:
            links: Link helpers for the envelope being rendered

        Returns:
            Attachment blocks, possibly empty
        """
        return []


class Comment(PayloadModel):
    html_url: str = ""
    body: str = ""

    def preview(self, max_lines: int = COMMENT_PREVIEW_LINES) -> str:
        """First ``max_lines`` lines of the body."""
        return "\n".join(self.body.split("\n")[:max_lines])
