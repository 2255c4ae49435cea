"""Translation error types."""

from __future__ import annotations

import enum

from cdevents_adapter.errors import PermanentError


class TranslationReason(enum.StrEnum):
    """Machine-readable reasons for translation failures."""

    INVALID_PAYLOAD = "invalid_payload"
    NO_NEW_COMMITS = "no_new_commits"
    UNSUPPORTED_ACTION = "unsupported_action"
    UNSUPPORTED_REF_TYPE = "unsupported_ref_type"
    INVALID_REPOSITORY_URL = "invalid_repository_url"
    MISSING_REPOSITORY = "missing_repository"
    INVALID_EVENT = "invalid_event"
    UNEXPECTED = "unexpected"


class TranslationError(PermanentError):
    """Raised when a webhook payload cannot become a CDEvent.

    The payload will not change on redelivery, so every translation
    failure is permanent.
    """

    def __init__(self, message: str, reason: TranslationReason) -> None:
        """Store a machine-readable reason alongside the message."""
        super().__init__(message)
        self.reason = reason

    @classmethod
    def invalid_payload(cls, detail: str) -> TranslationError:
        """Return an error for a payload that does not decode."""
        return cls(detail, TranslationReason.INVALID_PAYLOAD)

    @classmethod
    def no_new_commits(cls) -> TranslationError:
        """Return the filter error for pushes without new commits."""
        return cls(
            "Push event contains no new commits, will not convert to a CD Event",
            TranslationReason.NO_NEW_COMMITS,
        )

    @classmethod
    def unsupported_pull_request_action(cls, action: str) -> TranslationError:
        """Return an error for a pull request action with no matching variant."""
        return cls(
            f"unsupported Gitea Pull Request action: {action}",
            TranslationReason.UNSUPPORTED_ACTION,
        )

    @classmethod
    def unsupported_ref_type(cls, event: str, ref_type: str) -> TranslationError:
        """Return an error for a create/delete ref type other than branch."""
        return cls(
            f"unsupported Gitea {event} ref type: {ref_type}",
            TranslationReason.UNSUPPORTED_REF_TYPE,
        )

    @classmethod
    def invalid_repository_url(cls, url: str) -> TranslationError:
        """Return an error for a repository URL without a usable host."""
        return cls(
            f"unable to derive event source from repository URL: {url!r}",
            TranslationReason.INVALID_REPOSITORY_URL,
        )

    @classmethod
    def missing_repository(cls, payload_kind: str) -> TranslationError:
        """Return an error for a payload that carries no repository block."""
        return cls(
            f"failed to extract repository URL from payload of kind {payload_kind}",
            TranslationReason.MISSING_REPOSITORY,
        )

    @classmethod
    def invalid_event(cls, exc: Exception) -> TranslationError:
        """Return an error when the translated attributes fail validation."""
        return cls(str(exc), TranslationReason.INVALID_EVENT)

    @classmethod
    def unexpected(cls, exc: Exception) -> TranslationError:
        """Return an error when a translator raises something unexpected."""
        return cls(
            f"translator failed unexpectedly: {type(exc).__name__}: {exc}",
            TranslationReason.UNEXPECTED,
        )
