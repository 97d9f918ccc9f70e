"""
Event payload registry.

Maps GitHub event type tags to payload models and decodes envelopes into
typed payloads.
"""

import structlog
from pydantic import ValidationError

from ..exceptions import EventDecodeError, UnknownEventTypeError
from ..models import Envelope
from .base import EventPayload
from .issues import IssueCommentEvent, IssuesEvent
from .pull_requests import PullRequestEvent, PullRequestReviewCommentEvent
from .push import PushEvent

logger = structlog.get_logger(__name__)

EVENT_PAYLOADS: dict[str, type[EventPayload]] = {
    "PushEvent": PushEvent,
    "IssueCommentEvent": IssueCommentEvent,
    "IssuesEvent": IssuesEvent,
    "PullRequestEvent": PullRequestEvent,
    "PullRequestReviewCommentEvent": PullRequestReviewCommentEvent,
}


def supported_event_types() -> list[str]:
    """Get the event type tags the relay can render."""
    return sorted(EVENT_PAYLOADS)


def classify(envelope: Envelope) -> EventPayload:
    """
    Decode an envelope's payload into its typed model.

    Args:
        envelope: Feed record to classify

    Returns:
        Typed payload for the envelope's event type

    Raises:
        UnknownEventTypeError: If the event type has no payload model
        EventDecodeError: If the payload does not fit the model
    """
    payload_class = EVENT_PAYLOADS.get(envelope.type)
    if payload_class is None:
        raise UnknownEventTypeError(envelope.type, envelope)

    # A null or missing payload decodes to the variant defaults
    data = {} if envelope.payload is None else envelope.payload
    if not isinstance(data, dict):
        raise EventDecodeError(
            envelope.type,
            envelope,
            f"payload must be an object, got {type(data).__name__}",
        )

    try:
        payload = payload_class.model_validate(data)
    except ValidationError as e:
        raise EventDecodeError(envelope.type, envelope, str(e)) from e

    logger.debug("Classified event", event_id=envelope.id, event_type=envelope.type)
    return payload
