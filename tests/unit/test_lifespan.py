"""Unit tests for the ASGI lifespan middleware."""

from __future__ import annotations

import falcon.testing
import pytest

from cdevents_adapter.api.app import AppDependencies, create_app
from cdevents_adapter.api.lifespan import AdapterLifespan
from cdevents_adapter.errors import StartupError


class _FakeLifecycle:
    """Counts start and stop calls; doubles as probe and gateway."""

    def __init__(self, *, start_error: Exception | None = None) -> None:
        self.start_error = start_error
        self.starts = 0
        self.stops = 0

    @property
    def is_ready(self) -> bool:
        return self.starts > self.stops

    async def start(self) -> None:
        self.starts += 1
        if self.start_error is not None:
            raise self.start_error

    async def stop(self) -> None:
        self.stops += 1

    async def append(self, suffix: str, body: bytes) -> None:
        raise AssertionError(suffix)


class TestAdapterLifespan:
    """Tests for startup and shutdown hooks."""

    @pytest.mark.asyncio
    async def test_startup_and_shutdown_drive_the_lifecycle(self) -> None:
        """Lifespan events start and stop the wrapped component."""
        lifecycle = _FakeLifecycle()
        middleware = AdapterLifespan(lifecycle)

        await middleware.process_startup({}, {})
        await middleware.process_shutdown({}, {})

        assert (lifecycle.starts, lifecycle.stops) == (1, 1)

    @pytest.mark.asyncio
    async def test_startup_error_is_reraised(self) -> None:
        """A failed start aborts the server startup."""
        middleware = AdapterLifespan(
            _FakeLifecycle(
                start_error=StartupError.connect_failed("nats://x", OSError())
            )
        )

        with pytest.raises(StartupError):
            await middleware.process_startup({}, {})


def test_test_client_runs_lifespan() -> None:
    """The app starts the lifecycle before serving and stops it afterwards."""
    lifecycle = _FakeLifecycle()
    app = create_app(
        AppDependencies(gateway=lifecycle, probe=lifecycle, lifecycle=lifecycle)
    )

    result = falcon.testing.TestClient(app).simulate_get("/readyz")

    assert result.json == {"status": "ready"}, "lifecycle not started"
    assert lifecycle.starts >= 1
    assert lifecycle.stops == lifecycle.starts
