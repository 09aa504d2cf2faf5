"""Fold the channel's per-subscriber status into the subscription's conditions."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from subsync.domain.model import ConditionStatus

from .errors import ChannelStatusError
from .events import Reason

if TYPE_CHECKING:
    from subsync.domain.model import Channelable, Subscription

log = getLogger(__name__)


class AggregateChannelStatus(Protocol):
    def __call__(self, subscription: Subscription, channel: Channelable) -> None: ...


def aggregate_channel_status(subscription: Subscription, channel: Channelable) -> None:
    """Mark ``ChannelReady`` from the channel's report for this subscription.

    Only a report for the subscription's current generation counts; an older
    one is treated like a missing one until the channel catches up.
    """

    reported = channel.status.find_subscriber(subscription.uid, subscription.generation)
    if reported is None:
        message = (
            f"Failed to get subscription status: subscription {subscription.name!r} "
            f"not present in channel {channel.name!r} subscriber's list"
        )
        log.warning(message)
        subscription.status.mark_channel_unknown(
            Reason.SUBSCRIPTION_NOT_MARKED_READY_BY_CHANNEL, message
        )
        raise ChannelStatusError(message)

    match reported.ready:
        case ConditionStatus.TRUE:
            subscription.status.mark_channel_ready()
        case ConditionStatus.FALSE:
            subscription.status.mark_channel_failed(
                Reason.SUBSCRIPTION_NOT_MARKED_READY_BY_CHANNEL,
                "Subscription marked by Channel as False",
            )
        case _:
            subscription.status.mark_channel_unknown(
                Reason.SUBSCRIPTION_NOT_MARKED_READY_BY_CHANNEL,
                "Subscription marked by Channel as Unknown",
            )
