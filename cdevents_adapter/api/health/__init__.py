"""Liveness and readiness probes.

Usage
-----
Import health resources for route registration::

    from cdevents_adapter.api.health.resources import HealthResource, ReadyResource
"""
