"""Compute the delivery policy published on a channel's subscriber entry."""

from __future__ import annotations

from typing import TYPE_CHECKING

from subsync.domain.model import DeliveryPolicy

if TYPE_CHECKING:
    from subsync.domain.model import Channelable, Subscription


def merge_delivery_policy(subscription: Subscription, channel: Channelable) -> DeliveryPolicy | None:
    """Merge the subscription's delivery override with the channel's default.

    The channel default only applies when the subscription declares no override.
    Retry settings are copied as a whole set from one source, never field by
    field. The dead-letter sink always comes from the subscription's resolved
    status, and no policy is returned when nothing would be set on it.
    """

    override = subscription.spec.delivery
    default = channel.spec.delivery
    source = default if override is None and default is not None else override

    dead_letter_sink_uri = subscription.status.physical_subscription.dead_letter_sink_uri
    policy: DeliveryPolicy | None = None
    if dead_letter_sink_uri is not None:
        policy = DeliveryPolicy(dead_letter_sink_uri=dead_letter_sink_uri)

    if source is not None and source.sets_retry():
        if policy is None:
            policy = DeliveryPolicy()
        policy.copy_retry_from(source)
    return policy
