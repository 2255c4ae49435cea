"""Canonical event validation errors."""

from __future__ import annotations

import enum

from cdevents_adapter.errors import PermanentError


class EventValidationReason(enum.StrEnum):
    """Machine-readable reasons for rejected events."""

    UNKNOWN_KIND = "unknown_kind"
    MISSING_FIELD = "missing_field"


class EventValidationError(PermanentError):
    """Raised when an event cannot be built from the supplied attributes."""

    def __init__(self, message: str, reason: EventValidationReason) -> None:
        """Store a machine-readable reason alongside the message."""
        super().__init__(message)
        self.reason = reason

    @classmethod
    def unknown_kind(cls, kind: object) -> EventValidationError:
        """Return an error for a variant outside the supported set."""
        return cls(
            f"unsupported CDEvent kind: {kind}",
            EventValidationReason.UNKNOWN_KIND,
        )

    @classmethod
    def missing_field(cls, field: str) -> EventValidationError:
        """Return an error for a mandatory attribute left empty."""
        return cls(
            f"CDEvent field {field} must not be empty",
            EventValidationReason.MISSING_FIELD,
        )
