"""
Typed GitHub event payloads.

This package decodes the payload of each supported feed event type and
knows how to describe it as a Slack message.
"""

from .base import EventPayload
from .issues import IssueCommentEvent, IssuesEvent
from .pull_requests import PullRequestEvent, PullRequestReviewCommentEvent
from .push import PushEvent
from .registry import EVENT_PAYLOADS, classify, supported_event_types

__all__ = [
    "EventPayload",
    "PushEvent",
    "IssueCommentEvent",
    "IssuesEvent",
    "PullRequestEvent",
    "PullRequestReviewCommentEvent",
    "EVENT_PAYLOADS",
    "classify",
    "supported_event_types",
]
