"""
Custom exceptions for the GitHub events relay.

Every failure the relay can hit while polling, classifying or delivering is
represented here. None of them is fatal inside the watch loop: they are
reported through the error queue or logged, and the loop carries on.
"""

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .models import Envelope


class RelayError(Exception):
    """Base exception for GitHub events relay errors."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.code = code or "RELAY_ERROR"
        self.context = context or {}


class TransportError(RelayError):
    """Exception for failed feed requests (network, timeout, bad status)."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, "TRANSPORT_ERROR", context)
        self.status_code = status_code


class IntervalDecodeError(RelayError):
    """Exception for an X-Poll-Interval header that is not a positive integer."""

    def __init__(self, value: str, context: dict[str, Any] | None = None):
        super().__init__(
            f"Invalid X-Poll-Interval header: {value!r}", "INTERVAL_DECODE_ERROR", context
        )
        self.value = value


class BodyDecodeError(RelayError):
    """Exception for a feed response body that is not a list of events."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message, "BODY_DECODE_ERROR", context)


class ClassificationError(RelayError):
    """Base exception for envelopes that cannot be turned into a payload."""

    def __init__(
        self,
        message: str,
        tag: str,
        envelope: "Envelope",
        code: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, code or "CLASSIFICATION_ERROR", context)
        self.tag = tag
        self.envelope = envelope


class UnknownEventTypeError(ClassificationError):
    """Exception for event types the relay has no payload model for."""

    def __init__(self, tag: str, envelope: "Envelope"):
        super().__init__(
            f"unknown event: {tag}", tag, envelope, "UNKNOWN_EVENT_TYPE_ERROR"
        )


class EventDecodeError(ClassificationError):
    """Exception for a known event type whose payload is malformed."""

    def __init__(self, tag: str, envelope: "Envelope", reason: str):
        super().__init__(
            f"failed to decode {tag} payload: {reason}",
            tag,
            envelope,
            "EVENT_DECODE_ERROR",
        )
        self.reason = reason


class EnvelopeDecodeError(RelayError):
    """Exception for a standalone event record that cannot be decoded."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message, "ENVELOPE_DECODE_ERROR", context)


class CheckpointError(RelayError):
    """Exception for checkpoint load or save failures."""

    def __init__(
        self,
        message: str,
        path: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, "CHECKPOINT_ERROR", context)
        self.path = path


class DeliveryError(RelayError):
    """Exception for Slack API failures."""

    def __init__(
        self,
        message: str,
        method: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        super().__init__(message, "DELIVERY_ERROR", context)
        self.method = method


class ConfigurationError(RelayError):
    """Exception for configuration related errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message, "CONFIGURATION_ERROR", context)
