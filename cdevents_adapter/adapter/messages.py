"""Inbound message contract and routing-key derivation."""

from __future__ import annotations

import dataclasses
import typing as typ

from nats.errors import Error as NatsError

from .errors import MetadataUnavailableError, RoutingError

_SUBJECT_SEPARATOR = "."
_MIN_SUBJECT_PARTS = 2


class InboundMessage(typ.Protocol):
    """The parts of a JetStream message the processor relies on.

    ``nats.aio.msg.Msg`` satisfies this protocol.
    """

    @property
    def subject(self) -> str:
        """Routing subject, ``<ingress channel>.<payload kind...>``."""
        ...

    @property
    def data(self) -> bytes:
        """Raw webhook body."""
        ...

    @property
    def metadata(self) -> typ.Any:  # noqa: ANN401 - nats Msg.Metadata
        """Delivery metadata; raises for messages not delivered by JetStream."""
        ...

    async def ack(self) -> None:
        """Acknowledge the message so the broker removes it."""
        ...

    async def nak(self, delay: float | None = None) -> None:
        """Ask the broker to redeliver the message after ``delay`` seconds."""
        ...


@dataclasses.dataclass(frozen=True, slots=True)
class DeliveryMetadata:
    """Delivery position and attempt count of one message."""

    stream: str
    consumer: str
    stream_sequence: int
    consumer_sequence: int
    num_delivered: int


def extract_metadata(msg: InboundMessage) -> DeliveryMetadata:
    """Read delivery metadata from ``msg``.

    Raises
    ------
    MetadataUnavailableError
        If the message was not delivered by JetStream or its reply subject
        cannot be parsed.

    """
    try:
        raw = msg.metadata
        return DeliveryMetadata(
            stream=raw.stream,
            consumer=raw.consumer,
            stream_sequence=raw.sequence.stream,
            consumer_sequence=raw.sequence.consumer,
            num_delivered=raw.num_delivered,
        )
    except (NatsError, AttributeError, IndexError, ValueError) as exc:
        raise MetadataUnavailableError.from_exception(exc) from exc


def routing_key_for(subject: str) -> str:
    """Return the routing key of ``subject`` by dropping its first segment.

    Raises
    ------
    RoutingError
        If the subject has fewer than two segments.

    Examples
    --------
    >>> routing_key_for("webhooks.gitea.push")
    'gitea.push'

    """
    parts = subject.split(_SUBJECT_SEPARATOR)
    if len(parts) < _MIN_SUBJECT_PARTS:
        raise RoutingError.too_few_parts(subject)
    return _SUBJECT_SEPARATOR.join(parts[1:])
