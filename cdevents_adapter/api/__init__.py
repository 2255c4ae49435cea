"""CDEvents adapter HTTP API layer.

This package provides the Falcon Asynchronous Server Gateway Interface
(ASGI) application: webhook ingress, health and readiness probes, and the
lifespan middleware that runs the broker-facing service.

Usage
-----
Create the application::

    from cdevents_adapter.api import AppDependencies, create_app

    app = create_app(AppDependencies(gateway=service, probe=service))

Public API
----------
create_app
    Application factory registering all routes and error handlers.
AppDependencies
    Collaborators injected into the application.
"""

from cdevents_adapter.api.app import AppDependencies, create_app

__all__ = ["AppDependencies", "create_app"]
