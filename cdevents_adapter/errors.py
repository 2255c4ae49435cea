"""Shared error taxonomy for message handling.

Every per-message failure is either permanent (redelivery cannot succeed
because the message itself will not change) or transient (broker or
network trouble that a later attempt may survive). The message processor
settles inbound messages according to this split.
"""

from __future__ import annotations

import typing as typ


class AdapterError(Exception):
    """Base class for errors raised while bridging webhooks to events."""

    retryable: typ.ClassVar[bool] = False


class PermanentError(AdapterError):
    """Raised when a message can never be processed successfully."""

    retryable = False


class TransientError(AdapterError):
    """Raised when a message may succeed on redelivery."""

    retryable = True


class StartupError(RuntimeError):
    """Raised when the adapter cannot reach a runnable state."""

    @classmethod
    def connect_failed(cls, url: str, exc: BaseException) -> StartupError:
        """Return an error for an unreachable NATS server."""
        return cls(f"failed to connect to NATS at {url}: {exc}")

    @classmethod
    def stream_failed(cls, name: str, exc: BaseException) -> StartupError:
        """Return an error for a stream that could not be created or updated."""
        return cls(f"failed to create or update stream {name}: {exc}")

    @classmethod
    def consumer_failed(cls, name: str, exc: BaseException) -> StartupError:
        """Return an error for a consumer that could not be created."""
        return cls(f"failed to create consumer {name}: {exc}")


__all__ = ["AdapterError", "PermanentError", "StartupError", "TransientError"]
