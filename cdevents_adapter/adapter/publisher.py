"""Publishing CDEvents as CloudEvents on the outbound JetStream stream.

Events are sent in CloudEvents binary mode: the CloudEvent attributes
travel as ``ce-*`` NATS headers and the CDEvent JSON is the message body.
The subject is derived from the event type, so a ``change.merged`` event
lands on ``<subject base>.change.merged.0.2.0``.
"""

from __future__ import annotations

import asyncio
import typing as typ

import msgspec
from cloudevents.conversion import to_binary
from cloudevents.exceptions import GenericException as CloudEventsError
from cloudevents.http import CloudEvent
from nats.errors import Error as NatsError

from cdevents_adapter.events import EVENT_TYPE_PREFIX
from cdevents_adapter.logging import get_logger, log_debug

from .errors import PublishError

if typ.TYPE_CHECKING:
    from cdevents_adapter.events import CDEvent

logger = get_logger(__name__)

CLOUDEVENTS_SPEC_VERSION = "1.0"
_JSON_CONTENT_TYPE = "application/json"


class EventPublisher(typ.Protocol):
    """Delivers canonical events to the outbound stream."""

    async def publish(self, event: CDEvent) -> None:
        """Publish ``event``.

        Raises
        ------
        PublishError
            If the event could not be encoded or delivered in time.

        """
        ...


class SupportsJetStreamPublish(typ.Protocol):
    """The publishing half of ``nats.js.JetStreamContext``."""

    async def publish(
        self,
        subject: str,
        payload: bytes = b"",
        timeout: float | None = None,
        stream: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> typ.Any:  # noqa: ANN401 - nats PubAck
        """Publish a message and wait for the stream acknowledgement."""
        ...


def as_cloud_event(event: CDEvent) -> CloudEvent:
    """Wrap a CDEvent in a CloudEvent envelope."""
    attributes = {
        "specversion": CLOUDEVENTS_SPEC_VERSION,
        "id": event.context.id,
        "source": event.source,
        "type": event.type,
        "subject": event.subject_id,
        "time": event.context.timestamp.isoformat(),
        "datacontenttype": _JSON_CONTENT_TYPE,
    }
    return CloudEvent(attributes, event.to_builtins())


def subject_for_event_type(event_type: str, subject_base: str) -> str:
    """Return the outbound subject for ``event_type`` under ``subject_base``.

    Examples
    --------
    >>> subject_for_event_type("dev.cdevents.branch.created.0.2.0", "dev.cdevents")
    'dev.cdevents.branch.created.0.2.0'
    >>> subject_for_event_type("dev.cdevents.branch.created.0.2.0", "ci.events")
    'ci.events.branch.created.0.2.0'

    """
    prefix = f"{EVENT_TYPE_PREFIX}."
    suffix = event_type.removeprefix(prefix)
    return f"{subject_base}.{suffix}"


def encode_cloud_event(event: CDEvent) -> tuple[dict[str, str], bytes]:
    """Return the NATS headers and body for ``event`` in binary mode.

    Raises
    ------
    PublishError
        If the event cannot be represented as a CloudEvent.

    """
    try:
        headers, body = to_binary(
            as_cloud_event(event), data_marshaller=msgspec.json.encode
        )
    except (CloudEventsError, msgspec.EncodeError, TypeError, ValueError) as exc:
        raise PublishError.serialization(event.type, exc) from exc
    return {str(key): str(value) for key, value in headers.items()}, bytes(body)


class CloudEventPublisher:
    """Publish events to JetStream within a bounded deadline.

    The publisher shares the process-wide NATS connection; a call holds no
    resources once it returns.
    """

    def __init__(
        self,
        jetstream: SupportsJetStreamPublish,
        *,
        subject_base: str = EVENT_TYPE_PREFIX,
        stream: str | None = None,
        timeout: float = 10.0,
    ) -> None:
        """Bind the publisher to a JetStream context.

        Parameters
        ----------
        jetstream
            JetStream context used to publish.
        subject_base
            Subject prefix of the outbound stream.
        stream
            Expected stream name; JetStream rejects the publish when the
            subject is bound to another stream.
        timeout
            Seconds allowed for one publish, acknowledgement included.

        """
        self._jetstream = jetstream
        self._subject_base = subject_base
        self._stream = stream
        self._timeout = timeout

    def subject_for(self, event: CDEvent) -> str:
        """Return the subject ``event`` is published on."""
        return subject_for_event_type(event.type, self._subject_base)

    async def publish(self, event: CDEvent) -> None:
        """Publish ``event``, raising :class:`PublishError` on any failure."""
        subject = self.subject_for(event)
        headers, body = encode_cloud_event(event)
        try:
            async with asyncio.timeout(self._timeout):
                ack = await self._jetstream.publish(
                    subject,
                    body,
                    timeout=self._timeout,
                    stream=self._stream,
                    headers=headers,
                )
        except TimeoutError as exc:
            raise PublishError.timed_out(subject, self._timeout) from exc
        except NatsError as exc:
            raise PublishError.transport(subject, exc) from exc

        log_debug(
            logger,
            "Published %s to %s (stream=%s seq=%s)",
            event.type,
            subject,
            getattr(ack, "stream", None),
            getattr(ack, "seq", None),
        )
