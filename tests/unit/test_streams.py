"""Unit tests for JetStream stream and consumer provisioning."""

from __future__ import annotations

import pytest
from nats.errors import NoRespondersError
from nats.js.api import AckPolicy, ConsumerConfig, RetentionPolicy, StreamConfig
from nats.js.errors import BadRequestError

from cdevents_adapter.adapter.streams import (
    STREAM_NAME_IN_USE,
    ensure_consumer,
    ensure_stream,
    event_stream_config,
    webhook_consumer_config,
    webhook_stream_config,
)
from cdevents_adapter.config import AdapterConfig
from cdevents_adapter.errors import StartupError


class _FakeStreamManager:
    """Records stream and consumer management calls."""

    def __init__(
        self,
        *,
        add_error: Exception | None = None,
        update_error: Exception | None = None,
        consumer_error: Exception | None = None,
    ) -> None:
        self.add_error = add_error
        self.update_error = update_error
        self.consumer_error = consumer_error
        self.calls: list[tuple[str, str | None]] = []

    async def add_stream(self, config: StreamConfig) -> None:
        self.calls.append(("add_stream", config.name))
        if self.add_error is not None:
            raise self.add_error

    async def update_stream(self, config: StreamConfig) -> None:
        self.calls.append(("update_stream", config.name))
        if self.update_error is not None:
            raise self.update_error

    async def add_consumer(self, stream: str, config: ConsumerConfig) -> None:
        self.calls.append(("add_consumer", f"{stream}/{config.durable_name}"))
        if self.consumer_error is not None:
            raise self.consumer_error


def _name_in_use() -> BadRequestError:
    return BadRequestError(
        code=400, err_code=STREAM_NAME_IN_USE, description="stream name already in use"
    )


class TestStreamDefinitions:
    """Tests for the stream and consumer definitions."""

    def test_webhook_stream_is_a_work_queue(self) -> None:
        """Inbound webhooks are removed once acknowledged."""
        config = webhook_stream_config(AdapterConfig(webhook_subject_base="hooks"))

        assert config.name == "cdevents-adapter-webhooks"
        assert config.subjects == ["hooks.>"]
        assert config.retention == RetentionPolicy.WORK_QUEUE

    def test_event_stream_uses_limits_retention(self) -> None:
        """Outbound events are retained for any number of consumers."""
        config = event_stream_config(AdapterConfig())

        assert config.name == "cdevents-adapter-events"
        assert config.subjects == ["dev.cdevents.>"]
        assert config.retention == RetentionPolicy.LIMITS

    def test_consumer_is_durable_with_explicit_ack(self) -> None:
        """The webhook consumer survives restarts and needs explicit acks."""
        config = webhook_consumer_config(AdapterConfig())

        assert config.durable_name == "cdevents-adapter"
        assert config.ack_policy == AckPolicy.EXPLICIT
        assert config.max_ack_pending == 74
        assert config.ack_wait == pytest.approx(750.0)
        assert config.filter_subject == "webhooks.>"


class TestEnsureStream:
    """Tests for create-or-update semantics."""

    @pytest.mark.asyncio
    async def test_creates_new_stream(self) -> None:
        """A new stream is created without an update."""
        manager = _FakeStreamManager()

        await ensure_stream(manager, event_stream_config(AdapterConfig()))  # type: ignore[arg-type]

        assert manager.calls == [("add_stream", "cdevents-adapter-events")]

    @pytest.mark.asyncio
    async def test_updates_stream_when_name_in_use(self) -> None:
        """An existing stream is updated in place."""
        manager = _FakeStreamManager(add_error=_name_in_use())

        await ensure_stream(manager, event_stream_config(AdapterConfig()))  # type: ignore[arg-type]

        assert manager.calls == [
            ("add_stream", "cdevents-adapter-events"),
            ("update_stream", "cdevents-adapter-events"),
        ]

    @pytest.mark.asyncio
    async def test_failed_update_aborts_startup(self) -> None:
        """A stream that can be neither created nor updated is fatal."""
        manager = _FakeStreamManager(
            add_error=_name_in_use(),
            update_error=BadRequestError(code=400, err_code=10052, description="x"),
        )

        with pytest.raises(StartupError, match="cdevents-adapter-events"):
            await ensure_stream(manager, event_stream_config(AdapterConfig()))  # type: ignore[arg-type]

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [
            BadRequestError(code=400, err_code=10065, description="subjects overlap"),
            NoRespondersError(),
        ],
    )
    async def test_other_errors_abort_startup(self, error: Exception) -> None:
        """Errors other than "name in use" are not retried as updates."""
        manager = _FakeStreamManager(add_error=error)

        with pytest.raises(StartupError):
            await ensure_stream(manager, webhook_stream_config(AdapterConfig()))  # type: ignore[arg-type]

        assert [name for name, _ in manager.calls] == ["add_stream"]


class TestEnsureConsumer:
    """Tests for consumer provisioning."""

    @pytest.mark.asyncio
    async def test_adds_consumer_to_stream(self) -> None:
        """The durable consumer is bound to the webhook stream."""
        manager = _FakeStreamManager()
        config = AdapterConfig()

        await ensure_consumer(
            manager,  # type: ignore[arg-type]
            config.webhook_stream_name,
            webhook_consumer_config(config),
        )

        assert manager.calls == [
            ("add_consumer", "cdevents-adapter-webhooks/cdevents-adapter")
        ]

    @pytest.mark.asyncio
    async def test_rejected_consumer_aborts_startup(self) -> None:
        """JetStream rejecting the consumer is fatal."""
        manager = _FakeStreamManager(consumer_error=NoRespondersError())
        config = AdapterConfig()

        with pytest.raises(StartupError, match="failed to create consumer"):
            await ensure_consumer(
                manager,  # type: ignore[arg-type]
                config.webhook_stream_name,
                webhook_consumer_config(config),
            )
