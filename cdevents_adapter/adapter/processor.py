"""Per-message processing: route, translate, publish, settle.

The processor handles one inbound message at a time. Success and
permanent failures (unroutable subjects, untranslatable payloads) are
acknowledged so the broker drops the message. A failed publish is
negatively acknowledged so the broker redelivers it after
``redelivery_delay`` seconds, unless ``ack_on_publish_failure`` is set.
A message whose delivery metadata cannot be read is left unsettled and
comes back once the consumer's ack wait expires.

Usage
-----
Process messages from a pull subscription::

    processor = MessageProcessor(default_registry(), publisher)
    for msg in await subscription.fetch(batch=10):
        try:
            await processor.process(msg)
        except AdapterError:
            pass  # already logged and settled

"""

from __future__ import annotations

import enum
import typing as typ

from cdevents_adapter.errors import PermanentError
from cdevents_adapter.translator import TranslationError

from .errors import AcknowledgementError, PublishError, RoutingError
from .messages import extract_metadata, routing_key_for
from .observability import ProcessingContext, ProcessingEventLogger, ProcessingState

if typ.TYPE_CHECKING:
    from cdevents_adapter.events import CDEvent
    from cdevents_adapter.translator import TranslatorRegistry

    from .messages import InboundMessage
    from .publisher import EventPublisher

__all__ = ["MessageProcessor", "Settlement"]


class Settlement(enum.StrEnum):
    """How an inbound message was settled with the broker."""

    ACK = "ack"
    NAK = "nak"


class _Progress:
    """Mutable record of how far one message got."""

    __slots__ = ("context", "state")

    def __init__(self, subject: str) -> None:
        self.context = ProcessingContext(subject=subject)
        self.state = ProcessingState.RECEIVED


class MessageProcessor:
    """Turn inbound webhook messages into published CDEvents."""

    def __init__(
        self,
        registry: TranslatorRegistry,
        publisher: EventPublisher,
        *,
        event_logger: ProcessingEventLogger | None = None,
        redelivery_delay: float = 5.0,
        ack_on_publish_failure: bool = False,
    ) -> None:
        """Configure the processor.

        Parameters
        ----------
        registry
            Routing-key to translator mapping, fixed for the processor's
            lifetime.
        publisher
            Destination for translated events.
        event_logger
            Structured event sink; a default femtologging-backed logger is
            used when omitted.
        redelivery_delay
            Seconds the broker waits before redelivering a message whose
            event could not be published.
        ack_on_publish_failure
            Acknowledge messages whose event could not be published instead
            of requesting redelivery. The event is lost when this is set.

        """
        self._registry = registry
        self._publisher = publisher
        self._events = event_logger or ProcessingEventLogger()
        self._redelivery_delay = redelivery_delay
        self._ack_on_publish_failure = ack_on_publish_failure

    async def process(self, msg: InboundMessage) -> CDEvent:
        """Process ``msg`` and settle it with the broker.

        Returns
        -------
        CDEvent
            The event that was published.

        Raises
        ------
        MetadataUnavailableError
            If delivery metadata cannot be read; the message is not settled.
        RoutingError
            If the subject selects no translator; the message is acknowledged.
        TranslationError
            If the payload cannot be translated; the message is acknowledged.
        PublishError
            If publishing fails; the message is negatively acknowledged.
        AcknowledgementError
            If settling the message fails.

        """
        progress = _Progress(msg.subject)
        try:
            event = await self._run(msg, progress)
        except PermanentError as exc:
            self._events.log_failed(progress.context, progress.state, exc)
            await self._settle(msg, Settlement.ACK, progress)
            raise
        except PublishError as exc:
            self._events.log_failed(progress.context, progress.state, exc)
            await self._settle_publish_failure(msg, progress, exc)
            raise
        except Exception as exc:
            self._events.log_failed(progress.context, progress.state, exc)
            raise

        await self._settle(msg, Settlement.ACK, progress)
        progress.state = ProcessingState.ACKNOWLEDGED
        self._events.log_acknowledged(progress.context)
        return event

    async def _run(self, msg: InboundMessage, progress: _Progress) -> CDEvent:
        metadata = extract_metadata(msg)
        progress.context = progress.context.with_metadata(metadata)
        progress.state = ProcessingState.METADATA_EXTRACTED
        self._events.log_received(progress.context)

        routing_key = routing_key_for(msg.subject)
        progress.context = progress.context.with_routing_key(routing_key)
        translator = self._registry.lookup(routing_key)
        if translator is None:
            raise RoutingError.no_translator(routing_key)
        progress.state = ProcessingState.ROUTED
        self._events.log_routed(progress.context)

        try:
            event = translator.translate(msg.data)
        except TranslationError:
            raise
        except Exception as exc:  # noqa: BLE001 - translators are third-party code
            raise TranslationError.unexpected(exc) from exc
        progress.state = ProcessingState.TRANSLATED
        self._events.log_translated(progress.context, event)

        await self._publisher.publish(event)
        progress.state = ProcessingState.PUBLISHED
        self._events.log_published(progress.context, event)
        return event

    async def _settle_publish_failure(
        self, msg: InboundMessage, progress: _Progress, error: PublishError
    ) -> None:
        if self._ack_on_publish_failure:
            await self._settle(msg, Settlement.ACK, progress)
            self._events.log_publish_failure_acknowledged(progress.context, error)
            return
        await self._settle(msg, Settlement.NAK, progress)
        self._events.log_redelivery_requested(
            progress.context, self._redelivery_delay
        )

    async def _settle(
        self, msg: InboundMessage, settlement: Settlement, progress: _Progress
    ) -> None:
        try:
            if settlement is Settlement.NAK:
                await msg.nak(delay=self._redelivery_delay)
            else:
                await msg.ack()
        except Exception as exc:
            error = AcknowledgementError.failed(settlement.value, exc)
            self._events.log_failed(progress.context, ProcessingState.FAILED, error)
            raise error from exc
