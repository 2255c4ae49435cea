"""Message processing between the webhook stream and the event stream."""

from __future__ import annotations

from .errors import (
    AcknowledgementError,
    IngressError,
    MetadataUnavailableError,
    PublishError,
    RoutingError,
)
from .messages import DeliveryMetadata, InboundMessage, extract_metadata, routing_key_for
from .observability import (
    ErrorCategory,
    ProcessingContext,
    ProcessingEventLogger,
    ProcessingEventType,
    ProcessingState,
    categorize_error,
)
from .processor import MessageProcessor, Settlement
from .publisher import (
    CloudEventPublisher,
    EventPublisher,
    as_cloud_event,
    encode_cloud_event,
    subject_for_event_type,
)
from .pump import MessagePump

__all__ = [
    "AcknowledgementError",
    "CloudEventPublisher",
    "DeliveryMetadata",
    "ErrorCategory",
    "EventPublisher",
    "InboundMessage",
    "IngressError",
    "MessageProcessor",
    "MessagePump",
    "MetadataUnavailableError",
    "ProcessingContext",
    "ProcessingEventLogger",
    "ProcessingEventType",
    "ProcessingState",
    "PublishError",
    "RoutingError",
    "Settlement",
    "as_cloud_event",
    "categorize_error",
    "encode_cloud_event",
    "extract_metadata",
    "routing_key_for",
    "subject_for_event_type",
]
