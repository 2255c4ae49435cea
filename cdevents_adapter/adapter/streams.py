"""JetStream stream and consumer provisioning.

The inbound stream uses work-queue retention so a webhook disappears once
it has been acknowledged; the outbound stream keeps events under limits
retention for any number of downstream consumers.
"""

from __future__ import annotations

import typing as typ

from nats.errors import Error as NatsError
from nats.js.api import (
    AckPolicy,
    ConsumerConfig,
    DeliverPolicy,
    RetentionPolicy,
    StorageType,
    StreamConfig,
)
from nats.js.errors import BadRequestError

from cdevents_adapter.errors import StartupError
from cdevents_adapter.logging import get_logger, log_info

if typ.TYPE_CHECKING:
    from nats.js import JetStreamContext

    from cdevents_adapter.config import AdapterConfig

__all__ = [
    "ensure_consumer",
    "ensure_stream",
    "event_stream_config",
    "webhook_consumer_config",
    "webhook_stream_config",
]

logger = get_logger(__name__)

# JetStream API error code for "stream name already in use".
STREAM_NAME_IN_USE = 10058


def webhook_stream_config(config: AdapterConfig) -> StreamConfig:
    """Return the inbound webhook stream definition."""
    return StreamConfig(
        name=config.webhook_stream_name,
        description="CDEvents adapter incoming webhook stream",
        subjects=[config.webhook_subjects],
        retention=RetentionPolicy.WORK_QUEUE,
        storage=StorageType.FILE,
    )


def event_stream_config(config: AdapterConfig) -> StreamConfig:
    """Return the outbound CDEvents stream definition."""
    return StreamConfig(
        name=config.event_stream_name,
        description="CDEvents adapter event output stream",
        subjects=[config.event_subjects],
        retention=RetentionPolicy.LIMITS,
        storage=StorageType.FILE,
    )


def webhook_consumer_config(config: AdapterConfig) -> ConsumerConfig:
    """Return the durable pull consumer definition for the inbound stream."""
    return ConsumerConfig(
        durable_name=config.webhook_consumer_name,
        deliver_policy=DeliverPolicy.ALL,
        ack_policy=AckPolicy.EXPLICIT,
        ack_wait=config.ack_wait,
        max_ack_pending=config.max_ack_pending,
        filter_subject=config.webhook_subjects,
    )


async def ensure_stream(js: JetStreamContext, stream: StreamConfig) -> None:
    """Create ``stream``, updating it in place when the name is taken.

    Raises
    ------
    StartupError
        If the stream can be neither created nor updated.

    """
    name = stream.name or ""
    try:
        await js.add_stream(config=stream)
    except BadRequestError as exc:
        if exc.err_code != STREAM_NAME_IN_USE:
            raise StartupError.stream_failed(name, exc) from exc
        log_info(logger, "Updating existing stream %s", name)
        try:
            await js.update_stream(config=stream)
        except NatsError as update_exc:
            raise StartupError.stream_failed(name, update_exc) from update_exc
    except NatsError as exc:
        raise StartupError.stream_failed(name, exc) from exc
    else:
        log_info(logger, "Created stream %s", name)


async def ensure_consumer(
    js: JetStreamContext, stream_name: str, consumer: ConsumerConfig
) -> None:
    """Create or update the durable consumer ``consumer`` on ``stream_name``.

    Raises
    ------
    StartupError
        If JetStream rejects the consumer.

    """
    name = consumer.durable_name or ""
    try:
        await js.add_consumer(stream_name, config=consumer)
    except NatsError as exc:
        raise StartupError.consumer_failed(name, exc) from exc
    log_info(logger, "Consumer %s ready on stream %s", name, stream_name)
