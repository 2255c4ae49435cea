"""Structured processing events and error classification.

Each step of the message processor emits one log line of the form
``[<event type>] key=value ...`` so log aggregators can follow a message
from receipt to settlement.
"""

from __future__ import annotations

import dataclasses
import enum
import typing as typ

from cdevents_adapter.events import EventValidationError
from cdevents_adapter.logging import (
    get_logger,
    log_debug,
    log_error,
    log_info,
    log_warning,
)
from cdevents_adapter.translator import TranslationError

from .errors import (
    AcknowledgementError,
    MetadataUnavailableError,
    PublishError,
    RoutingError,
)

if typ.TYPE_CHECKING:
    from cdevents_adapter.events import CDEvent
    from cdevents_adapter.logging import SupportsLog

    from .messages import DeliveryMetadata

logger = get_logger(__name__)


class ProcessingState(enum.StrEnum):
    """States a message passes through inside the processor."""

    RECEIVED = "received"
    METADATA_EXTRACTED = "metadata_extracted"
    ROUTED = "routed"
    TRANSLATED = "translated"
    PUBLISHED = "published"
    ACKNOWLEDGED = "acknowledged"
    FAILED = "failed"


class ProcessingEventType(enum.StrEnum):
    """Structured log event types for message processing."""

    MESSAGE_RECEIVED = "adapter.message.received"
    MESSAGE_ROUTED = "adapter.message.routed"
    MESSAGE_TRANSLATED = "adapter.message.translated"
    MESSAGE_PUBLISHED = "adapter.message.published"
    MESSAGE_ACKNOWLEDGED = "adapter.message.acknowledged"
    MESSAGE_FAILED = "adapter.message.failed"
    REDELIVERY_REQUESTED = "adapter.message.redelivery_requested"
    PUBLISH_FAILURE_ACKNOWLEDGED = "adapter.message.publish_failure_acknowledged"


class ErrorCategory(enum.StrEnum):
    """Categories for per-message failures."""

    ROUTING = "routing"
    TRANSLATION = "translation"
    VALIDATION = "validation"
    METADATA = "metadata"
    PUBLISH = "publish"
    ACKNOWLEDGEMENT = "acknowledgement"
    UNKNOWN = "unknown"


_EXCEPTION_CATEGORY_MAP: tuple[tuple[type[BaseException], ErrorCategory], ...] = (
    (RoutingError, ErrorCategory.ROUTING),
    (TranslationError, ErrorCategory.TRANSLATION),
    (EventValidationError, ErrorCategory.VALIDATION),
    (MetadataUnavailableError, ErrorCategory.METADATA),
    (PublishError, ErrorCategory.PUBLISH),
    (AcknowledgementError, ErrorCategory.ACKNOWLEDGEMENT),
)


def categorize_error(exc: BaseException) -> ErrorCategory:
    """Categorize a processing failure for log routing."""
    for exc_type, category in _EXCEPTION_CATEGORY_MAP:
        if isinstance(exc, exc_type):
            return category
    return ErrorCategory.UNKNOWN


@dataclasses.dataclass(frozen=True, slots=True)
class ProcessingContext:
    """What is known about a message at a given step."""

    subject: str
    routing_key: str | None = None
    metadata: DeliveryMetadata | None = None

    def with_metadata(self, metadata: DeliveryMetadata) -> ProcessingContext:
        """Return a copy carrying delivery metadata."""
        return dataclasses.replace(self, metadata=metadata)

    def with_routing_key(self, routing_key: str) -> ProcessingContext:
        """Return a copy carrying the routing key."""
        return dataclasses.replace(self, routing_key=routing_key)

    def describe(self) -> str:
        """Render the context as ``key=value`` pairs."""
        fields = [f"subject={self.subject}", f"routing_key={self.routing_key}"]
        if self.metadata is not None:
            fields.extend(
                [
                    f"stream={self.metadata.stream}",
                    f"consumer={self.metadata.consumer}",
                    f"stream_seq={self.metadata.stream_sequence}",
                    f"consumer_seq={self.metadata.consumer_sequence}",
                    f"num_delivered={self.metadata.num_delivered}",
                ]
            )
        return " ".join(fields)


class ProcessingEventLogger:
    """Emit structured processing events through femtologging.

    Step events go out at DEBUG, successful settlement at INFO, permanent
    failures at WARNING and transient failures at ERROR.
    """

    def __init__(self, sink: SupportsLog | None = None) -> None:
        """Bind the logger; defaults to this module's femtologging logger."""
        self._logger = sink if sink is not None else logger

    def log_received(self, context: ProcessingContext) -> None:
        """Log receipt of a message whose metadata has been read."""
        log_debug(
            self._logger,
            "[%s] %s",
            ProcessingEventType.MESSAGE_RECEIVED,
            context.describe(),
        )

    def log_routed(self, context: ProcessingContext) -> None:
        """Log the translator selection for a message."""
        log_debug(
            self._logger,
            "[%s] %s",
            ProcessingEventType.MESSAGE_ROUTED,
            context.describe(),
        )

    def log_translated(self, context: ProcessingContext, event: CDEvent) -> None:
        """Log a successful translation."""
        log_debug(
            self._logger,
            "[%s] %s event_type=%s subject_id=%s",
            ProcessingEventType.MESSAGE_TRANSLATED,
            context.describe(),
            event.type,
            event.subject_id,
        )

    def log_published(self, context: ProcessingContext, event: CDEvent) -> None:
        """Log a successful publish."""
        log_debug(
            self._logger,
            "[%s] %s event_type=%s event_id=%s",
            ProcessingEventType.MESSAGE_PUBLISHED,
            context.describe(),
            event.type,
            event.context.id,
        )

    def log_acknowledged(self, context: ProcessingContext) -> None:
        """Log successful processing and acknowledgement."""
        log_info(
            self._logger,
            "[%s] %s",
            ProcessingEventType.MESSAGE_ACKNOWLEDGED,
            context.describe(),
        )

    def log_failed(
        self,
        context: ProcessingContext,
        state: ProcessingState,
        error: BaseException,
    ) -> None:
        """Log a failure together with the last state reached."""
        retryable = bool(getattr(error, "retryable", False))
        emit = log_error if retryable else log_warning
        emit(
            self._logger,
            "[%s] %s failed_after=%s error_type=%s error_category=%s "
            "retryable=%s error_message=%s",
            ProcessingEventType.MESSAGE_FAILED,
            context.describe(),
            state,
            type(error).__name__,
            categorize_error(error),
            retryable,
            str(error),
        )

    def log_redelivery_requested(
        self, context: ProcessingContext, delay: float
    ) -> None:
        """Log a negative acknowledgement."""
        log_info(
            self._logger,
            "[%s] %s delay_seconds=%.1f",
            ProcessingEventType.REDELIVERY_REQUESTED,
            context.describe(),
            delay,
        )

    def log_publish_failure_acknowledged(
        self, context: ProcessingContext, error: BaseException
    ) -> None:
        """Log a message acknowledged although its event was never published."""
        log_error(
            self._logger,
            "[%s] %s data_loss=true error_message=%s",
            ProcessingEventType.PUBLISH_FAILURE_ACKNOWLEDGED,
            context.describe(),
            str(error),
        )
