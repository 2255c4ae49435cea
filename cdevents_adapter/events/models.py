"""Typed CDEvents structures emitted by the adapter.

Events follow the CDEvents v0.4 JSON layout: a ``context`` block
identifying the event, a ``subject`` block describing the changed entity
and an optional ``customData`` block. Structs are frozen; an event is
never changed after :func:`cdevents_adapter.events.build_event` creates it.
"""

from __future__ import annotations

import datetime as dt
import enum

import msgspec

CDEVENTS_SPEC_VERSION = "0.4.1"
EVENT_TYPE_PREFIX = "dev.cdevents"
CUSTOM_DATA_CONTENT_TYPE = "application/json"


class EventKind(enum.StrEnum):
    """Closed set of event variants produced by the translators."""

    CHANGE_CREATED = "change.created"
    CHANGE_MERGED = "change.merged"
    BRANCH_CREATED = "branch.created"
    BRANCH_DELETED = "branch.deleted"

    @property
    def subject_type(self) -> str:
        """Return the CDEvents subject type, e.g. ``change``."""
        return self.value.partition(".")[0]

    @property
    def schema_version(self) -> str:
        """Return the schema version of this event type in CDEvents v0.4."""
        return _SCHEMA_VERSIONS[self]

    @property
    def event_type(self) -> str:
        """Return the full type, e.g. ``dev.cdevents.change.merged.0.2.0``."""
        return f"{EVENT_TYPE_PREFIX}.{self.value}.{self.schema_version}"


_SCHEMA_VERSIONS: dict[EventKind, str] = {
    EventKind.CHANGE_CREATED: "0.3.0",
    EventKind.CHANGE_MERGED: "0.2.0",
    EventKind.BRANCH_CREATED: "0.2.0",
    EventKind.BRANCH_DELETED: "0.2.0",
}

_KIND_BY_TYPE: dict[str, EventKind] = {kind.event_type: kind for kind in EventKind}


class Reference(msgspec.Struct, frozen=True, omit_defaults=True):
    """Reference to another subject, such as the repository of a change."""

    id: str
    source: str | None = None


class SubjectContent(msgspec.Struct, frozen=True, omit_defaults=True):
    """Variant-specific subject content.

    All four variants share the same shape: a reference to the repository
    the change or branch belongs to.
    """

    repository: Reference | None = None


class Subject(msgspec.Struct, frozen=True):
    """The entity an event is about."""

    id: str
    source: str
    type: str
    content: SubjectContent = msgspec.field(default_factory=SubjectContent)


class Context(msgspec.Struct, frozen=True):
    """Identity of an event: who emitted what, and when."""

    specversion: str
    id: str
    source: str
    type: str
    timestamp: dt.datetime


class CustomData(msgspec.Struct, frozen=True):
    """Original webhook payload carried alongside the event.

    Attributes
    ----------
    kind
        Name of the payload shape the translator decoded, e.g.
        ``GiteaPushEvent``.
    content
        The raw payload bytes, embedded verbatim as JSON.

    """

    kind: str
    content: msgspec.Raw


class CDEvent(msgspec.Struct, frozen=True, rename="camel", omit_defaults=True):
    """A canonical CDEvents event."""

    context: Context
    subject: Subject
    custom_data: CustomData | None = None
    custom_data_content_type: str | None = None

    @property
    def type(self) -> str:
        """Return the event type string."""
        return self.context.type

    @property
    def kind(self) -> EventKind:
        """Return the variant of this event."""
        return _KIND_BY_TYPE[self.context.type]

    @property
    def source(self) -> str:
        """Return the host that originated the change."""
        return self.context.source

    @property
    def subject_id(self) -> str:
        """Return the identifier of the changed entity."""
        return self.subject.id

    @property
    def subject_source(self) -> str:
        """Return the host and path of the repository."""
        return self.subject.source

    @property
    def repository(self) -> Reference | None:
        """Return the repository referenced by the subject content."""
        return self.subject.content.repository

    def to_builtins(self) -> dict[str, object]:
        """Return the JSON-compatible representation of the event."""
        return msgspec.json.decode(msgspec.json.encode(self))


def kind_for_type(event_type: str) -> EventKind | None:
    """Return the variant matching a full event type string, if any."""
    return _KIND_BY_TYPE.get(event_type)
