"""Liveness and readiness probe resources.

Usage
-----
Register health endpoints on the Falcon app::

    from cdevents_adapter.api.health.resources import HealthResource, ReadyResource

    app.add_route("/healthz", HealthResource())
    app.add_route("/readyz", ReadyResource(service))

"""

from __future__ import annotations

import typing as typ
from http import HTTPStatus

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

__all__ = ["HealthResource", "ReadinessProbe", "ReadyResource"]


class ReadinessProbe(typ.Protocol):
    """Anything that can report whether the event bus is reachable."""

    @property
    def is_ready(self) -> bool:
        """Return True while the broker connection is usable."""
        ...


class HealthResource:
    """Liveness probe resource returning ``{"status": "ok"}``.

    Always responds with HTTP 200 to indicate the process is alive.
    """

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /healthz requests."""
        resp.media = {"status": "ok"}
        resp.status = HTTPStatus.OK


class ReadyResource:
    """Readiness probe resource backed by the NATS connection state."""

    def __init__(self, probe: ReadinessProbe) -> None:
        """Bind the resource to ``probe``."""
        self._probe = probe

    async def on_get(self, _req: Request, resp: Response) -> None:
        """Handle GET /readyz requests.

        Parameters
        ----------
        _req
            Falcon request (unused).
        resp
            Falcon response populated with ``ready`` and HTTP 200 while the
            broker is reachable, ``unavailable`` and HTTP 503 otherwise.

        """
        if self._probe.is_ready:
            resp.media = {"status": "ready"}
            resp.status = HTTPStatus.OK
        else:
            resp.media = {"status": "unavailable"}
            resp.status = HTTPStatus.SERVICE_UNAVAILABLE
