"""Adapter runtime entrypoint.

This module provides the ASGI application factory that Granian loads and
the ``main`` function that starts Granian. The application factory builds
one :class:`AdapterService` per worker process; the service is started and
stopped by the ASGI lifespan, so the NATS connection, stream provisioning
and the message worker all live inside the server's event loop.

Configuration is driven by ``CDEVENTS_*`` environment variables, see
:class:`cdevents_adapter.config.AdapterConfig`.

Run the service directly with ``python -m cdevents_adapter``.
"""

from __future__ import annotations

import typing as typ

from cdevents_adapter.config import AdapterConfig, ConfigError
from cdevents_adapter.logging import (
    configure_logging,
    get_logger,
    log_error,
    log_info,
    log_warning,
)

if typ.TYPE_CHECKING:
    import falcon.asgi

__all__ = ["create_app", "main"]

logger = get_logger(__name__)


def create_app() -> falcon.asgi.App:
    """Create the Falcon ASGI application wired to a fresh adapter service.

    Returns
    -------
    falcon.asgi.App
        Configured Falcon ASGI application with the lifespan middleware
        installed.

    Raises
    ------
    ConfigError
        If the environment holds invalid settings.

    """
    from cdevents_adapter.api.app import AppDependencies
    from cdevents_adapter.api.app import create_app as _create_api_app
    from cdevents_adapter.service import AdapterService

    config = AdapterConfig.from_env()
    service = AdapterService(config)
    return _create_api_app(
        AppDependencies(gateway=service, probe=service, lifecycle=service)
    )


def main() -> None:
    """Validate configuration, configure logging and serve with Granian.

    Raises
    ------
    SystemExit
        With status 1 when the configuration is invalid.

    """
    from granian import Granian
    from granian.constants import Interfaces

    try:
        config = AdapterConfig.from_env()
    except ConfigError as exc:
        configure_logging("INFO")
        # Validation failures need no traceback
        log_error(logger, "Invalid configuration: %s", exc)
        raise SystemExit(1) from exc

    normalized_level, invalid_level = configure_logging(config.log_level)
    if invalid_level:
        log_warning(
            logger,
            "Invalid CDEVENTS_LOG_LEVEL %r, falling back to %s",
            config.log_level,
            normalized_level,
        )

    log_info(
        logger,
        "Starting CDEvents adapter on %s:%d (nats=%s log_level=%s)",
        config.http_host,
        config.http_port,
        config.nats_url,
        normalized_level,
    )

    server = Granian(
        "cdevents_adapter.runtime:create_app",
        address=config.http_host,
        port=config.http_port,
        interface=Interfaces.ASGI,
        factory=True,
        workers=1,
    )
    server.serve()


if __name__ == "__main__":
    main()
