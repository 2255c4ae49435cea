"""Construction and validation of canonical events."""

from __future__ import annotations

import datetime as dt
import uuid

from .errors import EventValidationError
from .models import (
    CDEVENTS_SPEC_VERSION,
    CUSTOM_DATA_CONTENT_TYPE,
    CDEvent,
    Context,
    CustomData,
    EventKind,
    Reference,
    Subject,
    SubjectContent,
)


def _coerce_kind(kind: EventKind | str) -> EventKind:
    try:
        return EventKind(kind)
    except ValueError as exc:
        raise EventValidationError.unknown_kind(kind) from exc


def _require(field: str, value: str) -> str:
    if not value or not value.strip():
        raise EventValidationError.missing_field(field)
    return value


def build_event(  # noqa: PLR0913 - mirrors the attributes of a CDEvent
    kind: EventKind | str,
    *,
    source: str,
    subject_id: str,
    subject_source: str,
    repository_id: str | None = None,
    custom_data: CustomData | None = None,
    event_id: str | None = None,
    timestamp: dt.datetime | None = None,
) -> CDEvent:
    """Build a validated event of the given variant.

    Parameters
    ----------
    kind
        Event variant, as an :class:`EventKind` or its string value
        (``"change.merged"``).
    source
        Host that originated the change.
    subject_id
        Stable identifier of the changed entity.
    subject_source
        Host and path of the repository holding the entity.
    repository_id
        Full repository name stored in the subject content.
    custom_data
        Original payload attached to the event.
    event_id
        Event identifier; a random UUID when omitted.
    timestamp
        Creation time; the current UTC time when omitted.

    Returns
    -------
    CDEvent
        The frozen event.

    Raises
    ------
    EventValidationError
        If ``kind`` is not a supported variant or any of ``source``,
        ``subject_id`` and ``subject_source`` is empty.

    """
    event_kind = _coerce_kind(kind)
    _require("source", source)
    _require("subject.id", subject_id)
    _require("subject.source", subject_source)

    repository = Reference(id=repository_id) if repository_id else None
    return CDEvent(
        context=Context(
            specversion=CDEVENTS_SPEC_VERSION,
            id=event_id or str(uuid.uuid4()),
            source=source,
            type=event_kind.event_type,
            timestamp=timestamp or dt.datetime.now(dt.UTC),
        ),
        subject=Subject(
            id=subject_id,
            source=subject_source,
            type=event_kind.subject_type,
            content=SubjectContent(repository=repository),
        ),
        custom_data=custom_data,
        custom_data_content_type=(
            CUSTOM_DATA_CONTENT_TYPE if custom_data is not None else None
        ),
    )
