"""Orchestrator for subscription reconciliation.

The engine composes stage interfaces but does not prescribe concrete adapters.
A pass runs locate → resolve → sync → aggregate and stops at the first
failure, which is raised to the caller after being recorded as a warning
event. Retry timing is left to whoever invokes the engine.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from subsync.domain.model import SUBSCRIPTION_FINALIZER

from .errors import ChannelReferenceError, ChannelSyncError, ReconcileError
from .events import Reason, ReconcileEvent
from .status import aggregate_channel_status

if TYPE_CHECKING:
    from subsync.domain.model import Channelable, Subscription
    from subsync.domain.ports import EventRecorder

    from .destinations import ResolveDestinations
    from .locate import LocateChannel
    from .status import AggregateChannelStatus
    from .sync import SyncChannel

log = getLogger(__name__)


@dataclass(slots=True)
class SubscriptionReconciler:
    """Converge a subscription and its channel from whatever state they are in."""

    locate: LocateChannel
    resolve: ResolveDestinations
    sync: SyncChannel
    aggregate: AggregateChannelStatus = aggregate_channel_status
    recorder: EventRecorder | None = None

    def reconcile(self, subscription: Subscription) -> ReconcileEvent | None:
        """Run the active or the finalize path depending on the deletion tombstone.

        Mutates ``subscription`` (status and finalizers); persisting it is up to
        the caller. Returns a normal event when a write happened.
        """

        try:
            if subscription.is_deleting:
                event = self._finalize(subscription)
            else:
                event = self._reconcile_active(subscription)
        except ReconcileError as exc:
            self._record(subscription, exc.event)
            raise
        if event is not None:
            self._record(subscription, event)
        return event

    def reconcile_kind(self, subscription: Subscription) -> ReconcileEvent | None:
        try:
            channel = self.locate(subscription)
        except ChannelReferenceError as exc:
            log.warning(
                "Failed to get spec.channel or backing channel as Channelable: %s (channel=%s)",
                exc,
                subscription.spec.channel,
            )
            subscription.status.mark_references_resolved_unknown(exc.reason, exc.message)
            raise

        self.resolve(subscription, channel)

        event = self._sync_channel(channel, subscription)
        if event is not None:
            # the channel cannot have observed the entry it was just given
            return event

        self.aggregate(subscription, channel)
        return None

    def finalize_kind(self, subscription: Subscription) -> ReconcileEvent | None:
        try:
            channel = self.locate(subscription)
        except ChannelReferenceError as exc:
            if exc.not_found:
                log.info("Channel of %s is gone, nothing to clean up", subscription.name)
                return None
            raise
        if subscription.status.is_added_to_channel():
            return self._sync_channel(channel, subscription)
        return None

    def _reconcile_active(self, subscription: Subscription) -> ReconcileEvent | None:
        subscription.meta.add_finalizer(SUBSCRIPTION_FINALIZER)
        subscription.status.initialize_conditions()
        try:
            return self.reconcile_kind(subscription)
        finally:
            subscription.status.observed_generation = subscription.generation

    def _finalize(self, subscription: Subscription) -> ReconcileEvent | None:
        if not subscription.meta.has_finalizer(SUBSCRIPTION_FINALIZER):
            return None
        event = self.finalize_kind(subscription)
        subscription.meta.remove_finalizer(SUBSCRIPTION_FINALIZER)
        return event

    def _sync_channel(
        self, channel: Channelable, subscription: Subscription
    ) -> ReconcileEvent | None:
        try:
            patched = self.sync(channel, subscription)
        except ChannelSyncError as exc:
            log.warning("Failed to sync physical channel: %s", exc)
            subscription.status.mark_not_added_to_channel(
                exc.reason, f"Failed to sync physical Channel: {exc}"
            )
            raise

        if subscription.is_deleting:
            if patched:
                return ReconcileEvent.normal(
                    Reason.SUBSCRIBER_REMOVED,
                    f"Subscription was removed from channel {channel.name!r}",
                )
            return None

        subscription.status.mark_added_to_channel()
        if patched:
            return ReconcileEvent.normal(
                Reason.SUBSCRIBER_SYNC,
                f"Subscription was synchronized to channel {channel.name!r}",
            )
        return None

    def _record(self, subscription: Subscription, event: ReconcileEvent) -> None:
        if self.recorder is not None:
            self.recorder.record(subscription.reference(), event)
