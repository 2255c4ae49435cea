"""Single-worker message pump between the broker and the processor.

The broker-facing delivery task hands messages to :meth:`MessagePump.deliver`,
which blocks once the bounded queue is full. One worker task drains the
queue and processes messages strictly one at a time, so the pump never
holds more than ``queue_size + 1`` unsettled messages.
"""

from __future__ import annotations

import asyncio
import contextlib
import typing as typ

from cdevents_adapter.errors import AdapterError
from cdevents_adapter.logging import (
    get_logger,
    log_debug,
    log_error,
    log_exception,
    log_info,
)

if typ.TYPE_CHECKING:
    from .messages import InboundMessage
    from .processor import MessageProcessor

__all__ = ["MessagePump"]

logger = get_logger(__name__)


class MessagePump:
    """Feed inbound messages to a :class:`MessageProcessor` one at a time."""

    def __init__(self, processor: MessageProcessor, *, queue_size: int = 64) -> None:
        """Create an idle pump with a queue holding up to ``queue_size`` items."""
        self._processor = processor
        self._queue: asyncio.Queue[InboundMessage] = asyncio.Queue(maxsize=queue_size)
        self._worker: asyncio.Task[None] | None = None
        self._stopping = False
        self._busy = False
        self.processed = 0
        self.failed = 0

    @property
    def running(self) -> bool:
        """Return True while the worker task is alive."""
        return self._worker is not None and not self._worker.done()

    @property
    def pending(self) -> int:
        """Return the number of queued, not yet processed messages."""
        return self._queue.qsize()

    async def deliver(self, msg: InboundMessage) -> None:
        """Queue ``msg``, waiting while the queue is full."""
        await self._queue.put(msg)

    def start(self) -> None:
        """Start the worker task."""
        if self.running:
            return
        self._stopping = False
        self._worker = asyncio.create_task(self.run(), name="cdevents-adapter-pump")

    async def run(self) -> None:
        """Process queued messages until :meth:`stop` is called."""
        while not self._stopping:
            msg = await self._queue.get()
            self._busy = True
            try:
                await self._processor.process(msg)
            except AdapterError as exc:
                # The processor has already logged and settled the message.
                self.failed += 1
                log_debug(logger, "Message on %s failed: %s", msg.subject, exc)
            except Exception as exc:  # noqa: BLE001 - the worker must survive
                self.failed += 1
                log_exception(logger, "Unexpected error while processing message", exc)
            else:
                self.processed += 1
            finally:
                self._busy = False
                self._queue.task_done()

    async def stop(self, timeout: float = 30.0) -> None:
        """Stop the worker after its current message.

        Messages still queued are left unsettled; the broker redelivers them
        once their ack wait expires. If the current message does not finish
        within ``timeout`` seconds the worker is cancelled.
        """
        worker = self._worker
        if worker is None:
            return
        self._stopping = True
        if not self._busy:
            worker.cancel()

        try:
            _done, still_running = await asyncio.wait({worker}, timeout=timeout)
            if still_running:
                log_error(
                    logger,
                    "Message pump did not stop within %.1fs; cancelling the worker",
                    timeout,
                )
                worker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await worker
        finally:
            self._worker = None

        log_info(
            logger,
            "Message pump stopped (processed=%d failed=%d abandoned=%d)",
            self.processed,
            self.failed,
            self.pending,
        )
