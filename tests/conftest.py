"""Shared fixtures for unit and feature tests."""

from __future__ import annotations

import typing as typ

import pytest

from cdevents_adapter.adapter import ProcessingEventLogger
from cdevents_adapter.config import AdapterConfig
from tests.helpers import FakeLogger, FakePublisher, make_event

if typ.TYPE_CHECKING:
    from cdevents_adapter.events import CDEvent


@pytest.fixture
def fake_logger() -> FakeLogger:
    """Return a logger that records every call."""
    return FakeLogger()


@pytest.fixture
def event_logger(fake_logger: FakeLogger) -> ProcessingEventLogger:
    """Return a processing event logger writing to ``fake_logger``."""
    return ProcessingEventLogger(fake_logger)


@pytest.fixture
def publisher() -> FakePublisher:
    """Return a publisher that records events in memory."""
    return FakePublisher()


@pytest.fixture
def sample_event() -> CDEvent:
    """Return a deterministic ``change.merged`` event."""
    return make_event()


@pytest.fixture
def config() -> AdapterConfig:
    """Return the default configuration with short timeouts for tests."""
    return AdapterConfig(
        publish_timeout=0.5,
        fetch_timeout=0.05,
        shutdown_timeout=1.0,
        redelivery_delay=2.0,
    )
