"""Translators for Gitea webhook payloads.

Gitea names each webhook with an ``X-Gitea-Event`` header; the ingress
turns that into the routing key ``gitea.<event>``. Only the payload
fields the translators read are modelled; msgspec ignores the rest, and
the full body travels with the event as custom data.
"""

from __future__ import annotations

import typing as typ

import msgspec

from cdevents_adapter.events import (
    CustomData,
    EventKind,
    EventValidationError,
    build_event,
)

from .errors import TranslationError
from .sources import repository_sources

if typ.TYPE_CHECKING:
    from cdevents_adapter.events import CDEvent


class GiteaRepository(msgspec.Struct, frozen=True):
    """Repository block shared by every Gitea payload."""

    full_name: str = ""
    html_url: str = ""
    ssh_url: str | None = None


class GiteaCommit(msgspec.Struct, frozen=True):
    """Commit summary inside a push payload."""

    id: str
    message: str = ""
    url: str = ""


class GiteaPushEvent(msgspec.Struct, frozen=True):
    """Payload of a ``push`` webhook."""

    ref: str = ""
    before: str = ""
    after: str = ""
    commits: list[GiteaCommit] = msgspec.field(default_factory=list)
    total_commits: int = 0
    head_commit: GiteaCommit | None = None
    repository: GiteaRepository | None = None


class GiteaPullRequest(msgspec.Struct, frozen=True):
    """Pull request block inside a ``pull_request`` payload."""

    id: int
    number: int = 0
    title: str = ""
    url: str = ""


class GiteaPullRequestEvent(msgspec.Struct, frozen=True):
    """Payload of a ``pull_request`` webhook."""

    action: str
    pull_request: GiteaPullRequest
    number: int = 0
    repository: GiteaRepository | None = None


class GiteaCreateEvent(msgspec.Struct, frozen=True):
    """Payload of a ``create`` webhook (new branch or tag)."""

    ref: str
    ref_type: str
    repository: GiteaRepository | None = None


class GiteaDeleteEvent(msgspec.Struct, frozen=True):
    """Payload of a ``delete`` webhook (removed branch or tag)."""

    ref: str
    ref_type: str
    repository: GiteaRepository | None = None


type GiteaPayload = (
    GiteaPushEvent | GiteaPullRequestEvent | GiteaCreateEvent | GiteaDeleteEvent
)

_PULL_REQUEST_KINDS: dict[str, EventKind] = {
    "opened": EventKind.CHANGE_CREATED,
    "closed": EventKind.CHANGE_MERGED,
}
_CREATE_KINDS: dict[str, EventKind] = {"branch": EventKind.BRANCH_CREATED}
_DELETE_KINDS: dict[str, EventKind] = {"branch": EventKind.BRANCH_DELETED}


def _decode[PayloadT: msgspec.Struct](data: bytes, model: type[PayloadT]) -> PayloadT:
    """Decode a webhook body into the given payload struct."""
    try:
        return msgspec.json.decode(data, type=model)
    except msgspec.DecodeError as exc:
        raise TranslationError.invalid_payload(str(exc)) from exc


def _to_event(
    kind: EventKind,
    payload: GiteaPayload,
    data: bytes,
    subject_id: str,
) -> CDEvent:
    """Build the event for ``payload``, attaching the raw body as custom data."""
    payload_kind = type(payload).__name__
    repository = payload.repository
    if repository is None:
        raise TranslationError.missing_repository(payload_kind)

    sources = repository_sources(repository.html_url, repository.full_name)
    try:
        return build_event(
            kind,
            source=sources.source,
            subject_id=subject_id,
            subject_source=sources.subject_source,
            repository_id=sources.repository_id,
            custom_data=CustomData(kind=payload_kind, content=msgspec.Raw(data)),
        )
    except EventValidationError as exc:
        raise TranslationError.invalid_event(exc) from exc


class GiteaPushTranslator:
    """Translate ``push`` payloads into ``change.merged`` events.

    The subject id is the head commit. Pushes without new commits (for
    example a freshly pushed branch) are rejected rather than turned into
    an empty event.
    """

    def translate(self, data: bytes) -> CDEvent:
        """Translate a push payload."""
        payload = _decode(data, GiteaPushEvent)
        if payload.total_commits == 0:
            raise TranslationError.no_new_commits()

        head = payload.head_commit
        if head is None and payload.commits:
            head = payload.commits[0]
        if head is None:
            raise TranslationError.invalid_payload("push event has no head commit")

        return _to_event(EventKind.CHANGE_MERGED, payload, data, head.id)


class GiteaPullRequestTranslator:
    """Translate ``pull_request`` payloads.

    ``opened`` becomes ``change.created`` and ``closed`` becomes
    ``change.merged``; the subject id is ``pr-<pull request id>``.
    """

    def translate(self, data: bytes) -> CDEvent:
        """Translate a pull request payload."""
        payload = _decode(data, GiteaPullRequestEvent)
        kind = _PULL_REQUEST_KINDS.get(payload.action)
        if kind is None:
            raise TranslationError.unsupported_pull_request_action(payload.action)

        return _to_event(kind, payload, data, f"pr-{payload.pull_request.id}")


class GiteaCreateTranslator:
    """Translate ``create`` payloads for branches into ``branch.created``."""

    def translate(self, data: bytes) -> CDEvent:
        """Translate a create payload."""
        payload = _decode(data, GiteaCreateEvent)
        kind = _CREATE_KINDS.get(payload.ref_type)
        if kind is None:
            raise TranslationError.unsupported_ref_type("create", payload.ref_type)

        return _to_event(kind, payload, data, payload.ref)


class GiteaDeleteTranslator:
    """Translate ``delete`` payloads for branches into ``branch.deleted``."""

    def translate(self, data: bytes) -> CDEvent:
        """Translate a delete payload."""
        payload = _decode(data, GiteaDeleteEvent)
        kind = _DELETE_KINDS.get(payload.ref_type)
        if kind is None:
            raise TranslationError.unsupported_ref_type("delete", payload.ref_type)

        return _to_event(kind, payload, data, payload.ref)
