"""Shared test utilities and hand-written fakes for NATS collaborators."""

from __future__ import annotations

import asyncio
import dataclasses as dc
import datetime as dt
import typing as typ

from cdevents_adapter.events import EventKind, build_event

if typ.TYPE_CHECKING:
    from cdevents_adapter.events import CDEvent

FIXED_TIMESTAMP = dt.datetime(2024, 11, 17, 18, 19, 39, tzinfo=dt.UTC)
HEAD_SHA = "9d7b2d18bf7f315c666a4b3607f47bd452e7c8d2"


def run_async[T](coro_func: typ.Callable[[], typ.Coroutine[typ.Any, typ.Any, T]]) -> T:
    """Execute an async callable within the test context."""
    return asyncio.run(coro_func())


def make_event(
    kind: EventKind = EventKind.CHANGE_MERGED,
    *,
    subject_id: str = HEAD_SHA,
    event_id: str = "evt-1",
) -> CDEvent:
    """Build a deterministic event about ``yoloco/project1``."""
    return build_event(
        kind,
        source="git.example.com",
        subject_id=subject_id,
        subject_source="git.example.com/yoloco/project1",
        repository_id="yoloco/project1",
        event_id=event_id,
        timestamp=FIXED_TIMESTAMP,
    )


class FakeLogger:
    """Collects femtologging-style ``log`` calls for assertions."""

    def __init__(self) -> None:
        self.calls: list[tuple[str, str, object | None]] = []

    def log(
        self,
        level: str,
        message: str,
        /,
        *,
        exc_info: object | None = None,
        stack_info: bool = False,
    ) -> str:
        self.calls.append((level, message, exc_info))
        return message

    @property
    def messages(self) -> list[str]:
        """Return the logged messages in order."""
        return [message for _level, message, _exc in self.calls]

    def levels_for(self, fragment: str) -> list[str]:
        """Return the levels of messages containing ``fragment``."""
        return [level for level, message, _exc in self.calls if fragment in message]


@dc.dataclass(frozen=True, slots=True)
class FakeSequence:
    stream: int
    consumer: int


@dc.dataclass(frozen=True, slots=True)
class FakeMetadata:
    """Shape of ``nats.aio.msg.Msg.Metadata`` read by the processor."""

    stream: str = "cdevents-adapter-webhooks"
    consumer: str = "cdevents-adapter"
    sequence: FakeSequence = dc.field(default_factory=lambda: FakeSequence(7, 3))
    num_delivered: int = 1


class FakeMessage:
    """In-memory stand-in for a JetStream message."""

    def __init__(
        self,
        subject: str,
        data: bytes = b'{"foo": "bar"}',
        *,
        metadata: FakeMetadata | None = None,
        metadata_error: Exception | None = None,
        settle_error: Exception | None = None,
    ) -> None:
        self.subject = subject
        self.data = data
        self._metadata = metadata or FakeMetadata()
        self._metadata_error = metadata_error
        self._settle_error = settle_error
        self.acks = 0
        self.naks: list[float | None] = []

    @property
    def metadata(self) -> FakeMetadata:
        if self._metadata_error is not None:
            raise self._metadata_error
        return self._metadata

    @property
    def settled(self) -> bool:
        return self.acks > 0 or bool(self.naks)

    async def ack(self) -> None:
        if self._settle_error is not None:
            raise self._settle_error
        self.acks += 1

    async def nak(self, delay: float | None = None) -> None:
        if self._settle_error is not None:
            raise self._settle_error
        self.naks.append(delay)


class FakeTranslator:
    """Returns a fixed event, or raises a fixed error, and records its input."""

    def __init__(
        self, event: CDEvent | None = None, *, error: Exception | None = None
    ) -> None:
        self.event = event or make_event()
        self.error = error
        self.calls: list[bytes] = []

    def translate(self, data: bytes) -> CDEvent:
        self.calls.append(data)
        if self.error is not None:
            raise self.error
        return self.event


class FakePublisher:
    """Records published events; raises ``error`` when set."""

    def __init__(self, *, error: Exception | None = None) -> None:
        self.error = error
        self.published: list[CDEvent] = []

    async def publish(self, event: CDEvent) -> None:
        if self.error is not None:
            raise self.error
        self.published.append(event)


@dc.dataclass(frozen=True, slots=True)
class FakePubAck:
    stream: str
    seq: int


@dc.dataclass(slots=True)
class PublishedMessage:
    subject: str
    payload: bytes
    timeout: float | None
    stream: str | None
    headers: dict[str, str] | None


class FakeJetStream:
    """Publishing half of a JetStream context."""

    def __init__(
        self, *, error: Exception | None = None, delay: float | None = None
    ) -> None:
        self.error = error
        self.delay = delay
        self.published: list[PublishedMessage] = []

    async def publish(
        self,
        subject: str,
        payload: bytes = b"",
        timeout: float | None = None,
        stream: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> FakePubAck:
        if self.delay is not None:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        self.published.append(
            PublishedMessage(subject, payload, timeout, stream, headers)
        )
        return FakePubAck(stream=stream or "unbound", seq=len(self.published))
