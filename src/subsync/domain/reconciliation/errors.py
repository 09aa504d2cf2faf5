"""Failures that end a reconciliation pass.

Every error carries the reason that was also written to the Subscription's
conditions, so callers can report both together. All of them are retryable by
re-invoking the reconciler unless ``permanent`` is set.
"""

from __future__ import annotations

from .events import Reason, ReconcileEvent


class ReconcileError(RuntimeError):
    def __init__(self, reason: str, message: str, *, permanent: bool = False) -> None:
        super().__init__(message)
        self.reason = reason
        self.message = message
        self.permanent = permanent

    @property
    def event(self) -> ReconcileEvent:
        return ReconcileEvent.warning(self.reason, self.message)


class ChannelReferenceError(ReconcileError):
    """The channel (or its backing channel) could not be located."""

    def __init__(
        self,
        message: str,
        *,
        not_found: bool = False,
        permanent: bool = False,
    ) -> None:
        super().__init__(Reason.CHANNEL_REFERENCE_FAILED, message, permanent=permanent)
        self.not_found = not_found


class TrackerError(ChannelReferenceError):
    """A dependency could not be registered before fetching it."""


class DestinationResolveError(ReconcileError):
    """A subscriber, reply or dead-letter destination did not resolve."""


class ChannelSyncError(ReconcileError):
    """The subscriber entry could not be written to the channel."""

    def __init__(self, message: str) -> None:
        super().__init__(Reason.PHYSICAL_CHANNEL_SYNC_FAILED, message)


class ChannelStatusError(ReconcileError):
    """The channel has not reported status for the current generation yet."""

    def __init__(self, message: str) -> None:
        super().__init__(Reason.SUBSCRIPTION_NOT_MARKED_READY_BY_CHANNEL, message)
