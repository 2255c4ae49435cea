"""Errors raised while processing, publishing and ingesting messages."""

from __future__ import annotations

from cdevents_adapter.errors import PermanentError, TransientError


class RoutingError(PermanentError):
    """Raised when a message subject does not select a translator."""

    @classmethod
    def too_few_parts(cls, subject: str) -> RoutingError:
        """Return an error for a subject without a routing key."""
        return cls(
            "unable to determine type of message as subject has too few parts: "
            f"{subject}"
        )

    @classmethod
    def no_translator(cls, routing_key: str) -> RoutingError:
        """Return an error for a routing key missing from the registry."""
        return cls(f"no translator found for subject: {routing_key}")


class MetadataUnavailableError(TransientError):
    """Raised when delivery metadata cannot be read from a message."""

    @classmethod
    def from_exception(cls, exc: BaseException) -> MetadataUnavailableError:
        """Wrap the error raised by the transport."""
        return cls(f"unable to read delivery metadata: {exc}")


class PublishError(TransientError):
    """Raised when an event could not be written to the event stream."""

    @classmethod
    def timed_out(cls, subject: str, timeout: float) -> PublishError:
        """Return an error for a publish that exceeded its deadline."""
        return cls(f"publishing to {subject} timed out after {timeout:.1f}s")

    @classmethod
    def transport(cls, subject: str, exc: BaseException) -> PublishError:
        """Return an error for a broker or connection failure."""
        return cls(f"publishing to {subject} failed: {exc}")

    @classmethod
    def serialization(cls, event_type: str, exc: BaseException) -> PublishError:
        """Return an error for an event that could not be encoded."""
        return cls(f"unable to encode {event_type} as a CloudEvent: {exc}")


class AcknowledgementError(TransientError):
    """Raised when settling an inbound message with the broker fails."""

    @classmethod
    def failed(cls, action: str, exc: BaseException) -> AcknowledgementError:
        """Return an error for a failed ``ack`` or ``nak``."""
        return cls(f"unable to {action} message: {exc}")


class IngressError(TransientError):
    """Raised when a webhook body could not be appended to the inbound stream."""

    @classmethod
    def not_connected(cls) -> IngressError:
        """Return an error for appends attempted before startup completed."""
        return cls("not connected to NATS")

    @classmethod
    def append_failed(cls, subject: str, exc: BaseException) -> IngressError:
        """Return an error for a rejected or timed-out append."""
        return cls(f"unable to append webhook to {subject}: {exc}")
