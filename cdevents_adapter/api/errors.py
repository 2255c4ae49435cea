"""API exceptions and Falcon error handlers.

Usage
-----
Register error handlers on the Falcon app::

    from cdevents_adapter.api.errors import (
        InvalidInputError,
        handle_ingress_error,
        handle_invalid_input,
    )

    app.add_error_handler(InvalidInputError, handle_invalid_input)
    app.add_error_handler(IngressError, handle_ingress_error)

"""

from __future__ import annotations

import typing as typ

import falcon

from cdevents_adapter.logging import get_logger, log_warning

if typ.TYPE_CHECKING:
    from falcon.asgi import Request, Response

    from cdevents_adapter.adapter import IngressError

__all__ = [
    "InvalidInputError",
    "handle_ingress_error",
    "handle_invalid_input",
]

logger = get_logger(__name__)


class InvalidInputError(Exception):
    """Raised for client validation errors that should map to HTTP 400.

    Attributes
    ----------
    reason
        Human-readable description of the validation failure.
    field
        Optional name of the input (header, path segment) that failed.

    """

    def __init__(self, reason: str, *, field: str | None = None) -> None:
        """Initialize with a validation reason and optional field name."""
        self.reason = reason
        self.field = field
        message = f"{field}: {reason}" if field is not None else reason
        super().__init__(message)

    @classmethod
    def empty_body(cls) -> InvalidInputError:
        """Return an error for a webhook without a body."""
        return cls("request body must not be empty", field="body")

    @classmethod
    def missing_event_header(cls, header: str) -> InvalidInputError:
        """Return an error for a webhook without its event type header."""
        return cls("header is required", field=header)

    @classmethod
    def invalid_suffix(cls, suffix: str) -> InvalidInputError:
        """Return an error for a malformed routing suffix."""
        return cls(
            f"{suffix!r} is not a dot-separated list of names", field="suffix"
        )


async def handle_invalid_input(
    _req: Request,
    resp: Response,
    ex: InvalidInputError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``InvalidInputError`` to an HTTP 400 JSON response.

    Parameters
    ----------
    _req
        Falcon request (unused).
    resp
        Falcon response whose status and media are set.
    ex
        The validation exception containing reason and optional field.
    _params
        URI template parameters (unused).

    """
    resp.status = falcon.HTTP_400
    media: dict[str, str] = {
        "title": "Invalid input",
        "description": ex.reason,
    }
    if ex.field is not None:
        media["field"] = ex.field
    resp.media = media


async def handle_ingress_error(
    req: Request,
    resp: Response,
    ex: IngressError,
    _params: dict[str, typ.Any],
) -> None:
    """Map ``IngressError`` to an HTTP 503 JSON response.

    The webhook sender is expected to retry, so the broker failure is only
    logged at WARNING here.
    """
    log_warning(logger, "Rejected webhook on %s: %s", req.path, ex)
    resp.status = falcon.HTTP_503
    resp.media = {
        "title": "Event bus unavailable",
        "description": str(ex),
    }
