"""Resolve subscriber, reply and dead-letter-sink destinations into status URIs.

Destinations are resolved in a fixed order and the first failure aborts the
rest of the pass. A nil or empty destination is not an error: it clears the
matching ``physical_subscription`` URI.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from logging import getLogger
from typing import TYPE_CHECKING, NoReturn, Protocol

from subsync.domain.model import is_nil_or_empty
from subsync.domain.ports.errors import DestinationResolutionError, GroupResolutionError

from .errors import DestinationResolveError
from .events import Reason

if TYPE_CHECKING:
    from subsync.domain.model import Channelable, Destination, Subscription
    from subsync.domain.ports import DestinationResolver, GroupResolver

log = getLogger(__name__)


class ResolveDestinations(Protocol):
    def __call__(self, subscription: Subscription, channel: Channelable) -> None: ...


@dataclass(slots=True)
class DestinationResolutionEngine:
    resolver: DestinationResolver
    group_resolver: GroupResolver | None = None
    kreference_group: bool = False

    def __call__(self, subscription: Subscription, channel: Channelable) -> None:
        subscription.status.mark_references_resolved_unknown(
            Reason.RESOLVING, "Subscription resolution interrupted."
        )
        self.resolve_subscriber(subscription)
        self.resolve_reply(subscription)
        self.resolve_dead_letter_sink(subscription, channel)
        subscription.status.mark_references_resolved()

    def resolve_subscriber(self, subscription: Subscription) -> None:
        physical = subscription.status.physical_subscription
        declared = subscription.spec.subscriber
        if declared is None or is_nil_or_empty(declared):
            physical.subscriber_uri = None
            return

        subscriber = declared.with_defaults(subscription.namespace)
        if subscriber.ref is not None and self.kreference_group and self.group_resolver:
            try:
                resolved_ref = self.group_resolver.resolve_group(subscriber.ref)
                subscriber = replace(subscriber, ref=resolved_ref)
            except GroupResolutionError as exc:
                log.warning("Failed to resolve spec.subscriber.ref %s: %s", subscriber.ref, exc)
                self._fail(
                    subscription,
                    Reason.SUBSCRIBER_RESOLVE_FAILED,
                    f"Failed to resolve spec.subscriber.ref: {exc}",
                    exc,
                )

        uri = self._resolve(
            subscription, subscriber, path="spec.subscriber", reason=Reason.SUBSCRIBER_RESOLVE_FAILED
        )
        if physical.subscriber_uri != uri:
            log.debug("Resolved subscriber: subscriberURI=%s", uri)
            physical.subscriber_uri = uri

    def resolve_reply(self, subscription: Subscription) -> None:
        physical = subscription.status.physical_subscription
        declared = subscription.spec.reply
        if declared is None or is_nil_or_empty(declared):
            physical.reply_uri = None
            return

        reply = declared.with_defaults(subscription.namespace)
        uri = self._resolve(subscription, reply, path="spec.reply", reason=Reason.REPLY_RESOLVE_FAILED)
        if physical.reply_uri != uri:
            log.debug("Resolved reply: replyURI=%s", uri)
            physical.reply_uri = uri

    def resolve_dead_letter_sink(self, subscription: Subscription, channel: Channelable) -> None:
        """Prefer the subscription's own sink, else the sink the channel already resolved."""

        physical = subscription.status.physical_subscription
        delivery = subscription.spec.delivery
        declared = delivery.dead_letter_sink if delivery is not None else None
        if declared is not None and not is_nil_or_empty(declared):
            sink = declared.with_defaults(subscription.namespace)
            try:
                uri = self._resolve(
                    subscription,
                    sink,
                    path="spec.delivery.deadLetterSink",
                    reason=Reason.DEAD_LETTER_SINK_RESOLVE_FAILED,
                )
            except DestinationResolveError:
                physical.dead_letter_sink_uri = None
                raise
            log.debug("Resolved deadLetterSink: deadLetterSinkURI=%s", uri)
            physical.dead_letter_sink_uri = uri
            return

        channel_delivery = channel.spec.delivery
        if channel_delivery is not None and not is_nil_or_empty(channel_delivery.dead_letter_sink):
            if channel.status.dead_letter_sink_uri is not None:
                log.debug(
                    "Resolved channel deadLetterSink: deadLetterSinkURI=%s",
                    channel.status.dead_letter_sink_uri,
                )
                physical.dead_letter_sink_uri = channel.status.dead_letter_sink_uri
                return
            physical.dead_letter_sink_uri = None
            log.warning("Channel %s didn't set status.deadLetterSinkURI", channel.name)
            self._fail(
                subscription,
                Reason.DEAD_LETTER_SINK_RESOLVE_FAILED,
                f"channel {channel.name} didn't set status.deadLetterSinkURI",
            )

        physical.dead_letter_sink_uri = None

    def _resolve(
        self, subscription: Subscription, destination: Destination, *, path: str, reason: Reason
    ) -> str:
        try:
            return self.resolver.resolve(destination, subscription)
        except DestinationResolutionError as exc:
            log.warning("Failed to resolve %s %r: %s", path, destination, exc)
            self._fail(subscription, reason, f"Failed to resolve {path}: {exc}", exc)

    @staticmethod
    def _fail(
        subscription: Subscription,
        reason: Reason,
        message: str,
        cause: Exception | None = None,
    ) -> NoReturn:
        subscription.status.mark_references_not_resolved(reason, message)
        raise DestinationResolveError(reason, message) from cause
