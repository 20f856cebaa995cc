"""Realtime project event stream"""

from .models import (
    APPROVAL_CREATED,
    APPROVAL_RESPONDED,
    EVENT_MODELS,
    EVENT_TYPES,
    TASK_COMPLETED,
    TASK_PROGRESS,
    TASK_STARTED,
    WILDCARD,
    ApprovalCreatedEvent,
    ApprovalRespondedEvent,
    StreamEvent,
    StreamEventBase,
    TaskCompletedEvent,
    TaskProgressEvent,
    TaskStartedEvent,
)
from .registry import SubscriptionRegistry
from .sse_parser import SSEFrame, SSEParser
from .stream_client import EventStreamClient

__all__ = [
    "APPROVAL_CREATED",
    "APPROVAL_RESPONDED",
    "EVENT_MODELS",
    "EVENT_TYPES",
    "TASK_COMPLETED",
    "TASK_PROGRESS",
    "TASK_STARTED",
    "WILDCARD",
    "ApprovalCreatedEvent",
    "ApprovalRespondedEvent",
    "StreamEvent",
    "StreamEventBase",
    "TaskCompletedEvent",
    "TaskProgressEvent",
    "TaskStartedEvent",
    "SubscriptionRegistry",
    "SSEFrame",
    "SSEParser",
    "EventStreamClient",
]
