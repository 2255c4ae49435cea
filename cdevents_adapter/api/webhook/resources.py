"""Webhook ingress resource.

``POST /webhook`` accepts Gitea deliveries and derives the routing key from
the ``X-Gitea-Event`` header (``push`` becomes ``gitea.push``).
``POST /webhook/{routing_key}`` takes the routing key from the path for
other senders. Bodies are stored unmodified; translation happens later,
when the worker consumes the stream.

Usage
-----
Register the resource on the Falcon app::

    resource = WebhookResource(service)
    app.add_route("/webhook", resource)
    app.add_route("/webhook/{routing_key}", resource, suffix="routed")

"""

from __future__ import annotations

import re
import typing as typ

import falcon

from cdevents_adapter.api.errors import InvalidInputError
from cdevents_adapter.logging import get_logger, log_debug

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from cdevents_adapter.service import AppendResult

__all__ = ["GITEA_EVENT_HEADER", "WebhookGateway", "WebhookResource"]

logger = get_logger(__name__)

GITEA_EVENT_HEADER = "X-Gitea-Event"
GITEA_SOURCE = "gitea"

_ROUTING_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_-]+(\.[A-Za-z0-9_-]+)*$")


class WebhookGateway(typ.Protocol):
    """Appends raw webhook bodies to the inbound stream."""

    async def append(self, suffix: str, body: bytes) -> AppendResult:
        """Store ``body`` under the routing key ``suffix``."""
        ...


def _validated_routing_key(routing_key: str) -> str:
    if not _ROUTING_KEY_PATTERN.fullmatch(routing_key):
        raise InvalidInputError.invalid_suffix(routing_key)
    return routing_key


class WebhookResource:
    """Accept webhook deliveries and queue them for translation."""

    def __init__(self, gateway: WebhookGateway) -> None:
        """Configure the resource with the stream it appends to."""
        self._gateway = gateway

    async def on_post(self, req: Request, resp: Response) -> None:
        """Handle POST /webhook from Gitea.

        Raises
        ------
        InvalidInputError
            If the event header is missing or malformed, or the body is empty.

        """
        event = req.get_header(GITEA_EVENT_HEADER)
        if not event:
            raise InvalidInputError.missing_event_header(GITEA_EVENT_HEADER)
        routing_key = _validated_routing_key(f"{GITEA_SOURCE}.{event.strip()}")
        await self._accept(req, resp, routing_key)

    async def on_post_routed(
        self, req: Request, resp: Response, *, routing_key: str
    ) -> None:
        """Handle POST /webhook/{routing_key}.

        Parameters
        ----------
        req
            Falcon request carrying the raw webhook body.
        resp
            Falcon response object.
        routing_key
            Dot-separated routing key from the URL path, e.g. ``gitea.push``.

        """
        await self._accept(req, resp, _validated_routing_key(routing_key))

    async def _accept(self, req: Request, resp: Response, routing_key: str) -> None:
        body = await req.stream.read()
        if not body:
            raise InvalidInputError.empty_body()

        result = await self._gateway.append(routing_key, body)
        log_debug(
            logger,
            "Accepted webhook on %s (stream=%s seq=%d)",
            result.subject,
            result.stream,
            result.sequence,
        )
        resp.media = {
            "subject": result.subject,
            "stream": result.stream,
            "sequence": result.sequence,
        }
        resp.status = falcon.HTTP_202
