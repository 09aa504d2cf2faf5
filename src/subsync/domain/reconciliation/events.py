"""Event types and reasons reported by subscription reconciliation."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class EventType(StrEnum):
    NORMAL = "Normal"
    WARNING = "Warning"


class Reason(StrEnum):
    """Condition reasons; each failure reason doubles as a warning event reason."""

    CHANNEL_REFERENCE_FAILED = "ChannelReferenceFailed"
    SUBSCRIBER_RESOLVE_FAILED = "SubscriberResolveFailed"
    REPLY_RESOLVE_FAILED = "ReplyResolveFailed"
    DEAD_LETTER_SINK_RESOLVE_FAILED = "DeadLetterSinkResolveFailed"
    PHYSICAL_CHANNEL_SYNC_FAILED = "PhysicalChannelSyncFailed"
    SUBSCRIPTION_NOT_MARKED_READY_BY_CHANNEL = "SubscriptionNotMarkedReadyByChannel"
    RESOLVING = "Resolving"
    SUBSCRIBER_SYNC = "SubscriberSync"
    SUBSCRIBER_REMOVED = "SubscriberRemoved"


@dataclass(frozen=True, slots=True)
class ReconcileEvent:
    type: EventType
    reason: str
    message: str

    @classmethod
    def normal(cls, reason: str, message: str) -> ReconcileEvent:
        return cls(type=EventType.NORMAL, reason=reason, message=message)

    @classmethod
    def warning(cls, reason: str, message: str) -> ReconcileEvent:
        return cls(type=EventType.WARNING, reason=reason, message=message)
