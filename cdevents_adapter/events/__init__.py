"""Canonical CDEvents model and its build contract."""

from __future__ import annotations

from .builder import build_event
from .errors import EventValidationError, EventValidationReason
from .models import (
    CDEVENTS_SPEC_VERSION,
    EVENT_TYPE_PREFIX,
    CDEvent,
    Context,
    CustomData,
    EventKind,
    Reference,
    Subject,
    SubjectContent,
    kind_for_type,
)

__all__ = [
    "CDEVENTS_SPEC_VERSION",
    "EVENT_TYPE_PREFIX",
    "CDEvent",
    "Context",
    "CustomData",
    "EventKind",
    "EventValidationError",
    "EventValidationReason",
    "Reference",
    "Subject",
    "SubjectContent",
    "build_event",
    "kind_for_type",
]
