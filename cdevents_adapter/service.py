"""Broker-facing half of the adapter.

:class:`AdapterService` owns the single NATS connection of the process.
On start it provisions both streams and the durable consumer, then runs a
delivery task that pulls webhook messages into a :class:`MessagePump`. The
HTTP ingress appends webhook bodies to the inbound stream through
:meth:`AdapterService.append` on the same connection.

Usage
-----
::

    service = AdapterService(AdapterConfig.from_env())
    await service.start()
    try:
        result = await service.append("gitea.push", body)
    finally:
        await service.stop()

"""

from __future__ import annotations

import asyncio
import dataclasses as dc
import typing as typ

import nats
from nats.errors import Error as NatsError

from cdevents_adapter.adapter import (
    CloudEventPublisher,
    IngressError,
    MessageProcessor,
    MessagePump,
    ProcessingEventLogger,
)
from cdevents_adapter.adapter.streams import (
    ensure_consumer,
    ensure_stream,
    event_stream_config,
    webhook_consumer_config,
    webhook_stream_config,
)
from cdevents_adapter.errors import StartupError
from cdevents_adapter.logging import (
    get_logger,
    log_error,
    log_exception,
    log_info,
    log_warning,
)
from cdevents_adapter.translator import TranslatorRegistry, default_registry

if typ.TYPE_CHECKING:
    from nats.aio.client import Client as NatsClient
    from nats.js import JetStreamContext

    from cdevents_adapter.config import AdapterConfig

__all__ = ["AdapterService", "AppendResult"]

logger = get_logger(__name__)

CLIENT_NAME = "cdevents-adapter"
_FETCH_RETRY_DELAY = 1.0

type Connect = typ.Callable[..., typ.Awaitable[NatsClient]]


@dc.dataclass(frozen=True, slots=True)
class AppendResult:
    """Where an accepted webhook body was stored."""

    subject: str
    stream: str
    sequence: int


async def _on_error(exc: Exception) -> None:
    log_error(logger, "NATS client error: %s", exc)


async def _on_disconnected() -> None:
    log_warning(logger, "Disconnected from NATS")


async def _on_reconnected() -> None:
    log_info(logger, "Reconnected to NATS")


class AdapterService:
    """Connect to NATS, consume webhooks and accept new ones."""

    def __init__(
        self,
        config: AdapterConfig,
        *,
        registry: TranslatorRegistry | None = None,
        event_logger: ProcessingEventLogger | None = None,
        connect: Connect = nats.connect,
    ) -> None:
        """Prepare an unstarted service.

        Parameters
        ----------
        config
            Validated adapter configuration.
        registry
            Translators to route with; :func:`default_registry` when omitted.
        event_logger
            Structured processing event sink.
        connect
            Coroutine function opening the NATS connection.

        """
        self._config = config
        self._registry = registry if registry is not None else default_registry()
        self._event_logger = event_logger
        self._connect = connect
        self._nc: NatsClient | None = None
        self._js: JetStreamContext | None = None
        self._pump: MessagePump | None = None
        self._delivery: asyncio.Task[None] | None = None

    @property
    def is_ready(self) -> bool:
        """Return True while the NATS connection is up."""
        return self._nc is not None and bool(self._nc.is_connected)

    async def start(self) -> None:
        """Connect, provision streams and start consuming.

        Raises
        ------
        StartupError
            If the broker is unreachable or rejects the stream or consumer
            definitions.

        """
        config = self._config
        log_info(logger, "Connecting to NATS on %s", config.nats_url)
        try:
            nc = await self._connect(
                servers=[config.nats_url],
                name=CLIENT_NAME,
                error_cb=_on_error,
                disconnected_cb=_on_disconnected,
                reconnected_cb=_on_reconnected,
            )
        except (NatsError, OSError, TimeoutError) as exc:
            raise StartupError.connect_failed(config.nats_url, exc) from exc

        self._nc = nc
        try:
            await self._start_consuming(nc.jetstream())
        except BaseException:
            await self._close_connection()
            raise
        log_info(
            logger,
            "Translators registered for: %s",
            ", ".join(self._registry.keys()),
        )
        log_info(logger, "JetStream consumer ready and listening")

    async def _start_consuming(self, js: JetStreamContext) -> None:
        config = self._config
        await ensure_stream(js, webhook_stream_config(config))
        await ensure_stream(js, event_stream_config(config))
        await ensure_consumer(
            js, config.webhook_stream_name, webhook_consumer_config(config)
        )
        try:
            subscription = await js.pull_subscribe(
                config.webhook_subjects,
                durable=config.webhook_consumer_name,
                stream=config.webhook_stream_name,
            )
        except NatsError as exc:
            raise StartupError.consumer_failed(
                config.webhook_consumer_name, exc
            ) from exc

        publisher = CloudEventPublisher(
            js,
            subject_base=config.event_subject_base,
            stream=config.event_stream_name,
            timeout=config.publish_timeout,
        )
        processor = MessageProcessor(
            self._registry,
            publisher,
            event_logger=self._event_logger,
            redelivery_delay=config.redelivery_delay,
            ack_on_publish_failure=config.ack_on_publish_failure,
        )
        pump = MessagePump(processor, queue_size=config.queue_size)
        pump.start()

        self._js = js
        self._pump = pump
        self._delivery = asyncio.create_task(
            self._deliver_loop(subscription, pump), name="cdevents-adapter-delivery"
        )

    async def _deliver_loop(
        self, subscription: JetStreamContext.PullSubscription, pump: MessagePump
    ) -> None:
        config = self._config
        while True:
            try:
                messages = await subscription.fetch(
                    batch=config.fetch_batch, timeout=config.fetch_timeout
                )
                for msg in messages:
                    await pump.deliver(msg)
            except TimeoutError:
                continue
            except NatsError as exc:
                log_warning(logger, "Fetching webhook messages failed: %s", exc)
                await asyncio.sleep(_FETCH_RETRY_DELAY)
            except Exception as exc:  # noqa: BLE001 - keep consuming
                log_exception(logger, "Webhook delivery loop failed", exc)
                await asyncio.sleep(_FETCH_RETRY_DELAY)

    async def append(self, suffix: str, body: bytes) -> AppendResult:
        """Append a raw webhook body to the inbound stream.

        Parameters
        ----------
        suffix
            Dot-separated routing key, for example ``gitea.push``.
        body
            Unmodified webhook request body.

        Raises
        ------
        IngressError
            If the service is not connected or the broker rejects the append.

        """
        if self._js is None:
            raise IngressError.not_connected()
        subject = f"{self._config.webhook_subject_base}.{suffix}"
        try:
            ack = await self._js.publish(
                subject,
                body,
                timeout=self._config.publish_timeout,
                stream=self._config.webhook_stream_name,
            )
        except (NatsError, TimeoutError) as exc:
            raise IngressError.append_failed(subject, exc) from exc
        return AppendResult(subject=subject, stream=ack.stream, sequence=ack.seq)

    async def stop(self) -> None:
        """Stop consuming, finish the current message and disconnect.

        The whole shutdown is bounded by ``shutdown_timeout``; messages that
        were fetched but not processed are redelivered by the broker.
        """
        log_info(logger, "Gracefully shutting down")
        delivery, self._delivery = self._delivery, None
        if delivery is not None:
            delivery.cancel()
            try:
                await delivery
            except asyncio.CancelledError:
                pass
            except Exception as exc:  # noqa: BLE001 - shutdown must continue
                log_exception(logger, "Webhook delivery task failed", exc)

        pump, self._pump = self._pump, None
        if pump is not None:
            await pump.stop(timeout=self._config.shutdown_timeout)

        self._js = None
        await self._close_connection()
        log_info(logger, "Adapter stopped")

    async def _close_connection(self) -> None:
        nc, self._nc = self._nc, None
        if nc is None or nc.is_closed:
            return
        try:
            await nc.drain()
        except (NatsError, TimeoutError) as exc:
            log_warning(logger, "Draining the NATS connection failed: %s", exc)
            await nc.close()
