"""ASGI lifespan middleware tying the adapter service to the server.

Falcon calls ``process_startup`` when the ASGI server starts and
``process_shutdown`` once it has stopped accepting requests, so the
broker connection lives exactly as long as the HTTP listener.
"""

from __future__ import annotations

import typing as typ

from cdevents_adapter.errors import StartupError
from cdevents_adapter.logging import get_logger, log_error

__all__ = ["AdapterLifespan", "Lifecycle"]

logger = get_logger(__name__)


class Lifecycle(typ.Protocol):
    """A background component started and stopped with the application."""

    async def start(self) -> None:
        """Start the component."""
        ...

    async def stop(self) -> None:
        """Stop the component and release its resources."""
        ...


class AdapterLifespan:
    """Falcon middleware handling ASGI lifespan events."""

    def __init__(self, lifecycle: Lifecycle) -> None:
        """Wrap ``lifecycle``, usually an :class:`AdapterService`."""
        self._lifecycle = lifecycle

    async def process_startup(
        self, _scope: dict[str, typ.Any], _event: dict[str, typ.Any]
    ) -> None:
        """Start the wrapped component; failures abort server startup."""
        try:
            await self._lifecycle.start()
        except StartupError as exc:
            log_error(logger, "Startup failed: %s", exc)
            raise

    async def process_shutdown(
        self, _scope: dict[str, typ.Any], _event: dict[str, typ.Any]
    ) -> None:
        """Stop the wrapped component."""
        await self._lifecycle.stop()
