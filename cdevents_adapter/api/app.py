"""Application factory for the adapter's Falcon ASGI application.

Usage
-----
Create an app backed by a running :class:`AdapterService`::

    from cdevents_adapter.api.app import AppDependencies, create_app

    service = AdapterService(config)
    app = create_app(AppDependencies(gateway=service, probe=service, lifecycle=service))

Tests pass fakes for each collaborator and leave ``lifecycle`` unset so no
broker connection is attempted.

"""

from __future__ import annotations

import dataclasses as dc
import typing as typ

import falcon.asgi

from cdevents_adapter.adapter import IngressError
from cdevents_adapter.api.errors import (
    InvalidInputError,
    handle_ingress_error,
    handle_invalid_input,
)
from cdevents_adapter.api.health.resources import HealthResource, ReadyResource
from cdevents_adapter.api.lifespan import AdapterLifespan
from cdevents_adapter.api.webhook.resources import WebhookResource

if typ.TYPE_CHECKING:
    from cdevents_adapter.api.health.resources import ReadinessProbe
    from cdevents_adapter.api.lifespan import Lifecycle
    from cdevents_adapter.api.webhook.resources import WebhookGateway

__all__ = ["AppDependencies", "create_app"]


@dc.dataclass(frozen=True, slots=True)
class AppDependencies:
    """Collaborators of the Falcon ASGI application.

    Attributes
    ----------
    gateway
        Appends accepted webhook bodies to the inbound stream.
    probe
        Reports broker reachability for ``/readyz``.
    lifecycle
        Started and stopped with the ASGI lifespan; ``None`` disables the
        lifespan middleware.

    """

    gateway: WebhookGateway
    probe: ReadinessProbe
    lifecycle: Lifecycle | None = None


def create_app(dependencies: AppDependencies) -> falcon.asgi.App:
    """Create and configure the Falcon ASGI application.

    Registers ``/healthz``, ``/readyz``, ``/webhook`` and
    ``/webhook/{routing_key}`` together with the error handlers that map
    validation failures to 400 and broker failures to 503.

    Parameters
    ----------
    dependencies
        Application collaborators.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application.

    """
    middleware: list[object] = []
    if dependencies.lifecycle is not None:
        middleware.append(AdapterLifespan(dependencies.lifecycle))

    app = falcon.asgi.App(middleware=middleware)  # type: ignore[no-matching-overload]  # Falcon stubs

    app.add_route("/healthz", HealthResource())
    app.add_route("/readyz", ReadyResource(dependencies.probe))

    webhook = WebhookResource(dependencies.gateway)
    app.add_route("/webhook", webhook)
    app.add_route("/webhook/{routing_key}", webhook, suffix="routed")

    app.add_error_handler(InvalidInputError, handle_invalid_input)
    app.add_error_handler(IngressError, handle_ingress_error)

    return app
