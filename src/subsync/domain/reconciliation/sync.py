"""Synchronize one subscription's entry into its channel's subscriber list."""

from __future__ import annotations

import json
from collections.abc import Callable
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from subsync.domain.model import SubscriberEntry
from subsync.domain.ports.errors import ResourceError, ResourceNotFoundError

from .delivery import merge_delivery_policy
from .errors import ChannelSyncError
from .patch import create_merge_patch

if TYPE_CHECKING:
    from subsync.domain.model import Channelable, DeliveryPolicy, Subscription
    from subsync.domain.ports import ChannelableCodec, ResourcePatcher

log = getLogger(__name__)

type MergeDeliveryPolicy = Callable[[Subscription, Channelable], DeliveryPolicy | None]


class SyncChannel(Protocol):
    def __call__(self, channel: Channelable, subscription: Subscription) -> bool: ...


def add_subscriber(
    channel: Channelable, subscription: Subscription, delivery: DeliveryPolicy | None
) -> None:
    """Update the entry keyed by the subscription's UID in place, or append one."""

    physical = subscription.status.physical_subscription
    entry = channel.spec.find_subscriber(subscription.uid)
    if entry is None:
        channel.spec.subscribers.append(
            SubscriberEntry(
                uid=subscription.uid,
                generation=subscription.generation,
                subscriber_uri=physical.subscriber_uri,
                reply_uri=physical.reply_uri,
                delivery=delivery,
            )
        )
        return
    entry.generation = subscription.generation
    entry.subscriber_uri = physical.subscriber_uri
    entry.reply_uri = physical.reply_uri
    entry.delivery = delivery


def remove_subscriber(channel: Channelable, subscription: Subscription) -> None:
    channel.spec.subscribers = [
        entry for entry in channel.spec.subscribers if entry.uid != subscription.uid
    ]


@dataclass(slots=True)
class ChannelSyncEngine:
    """Diff the desired subscriber list against the channel and patch the difference.

    Returns whether a write was issued. The patch carries the channel's
    ``resourceVersion`` so a concurrent change surfaces as a conflict instead
    of being overwritten.
    """

    patcher: ResourcePatcher
    codec: ChannelableCodec
    merge_delivery: MergeDeliveryPolicy = merge_delivery_policy

    def __call__(self, channel: Channelable, subscription: Subscription) -> bool:
        log.debug("Reconciling physical channel %s for %s", channel.name, subscription.name)
        after = channel.deep_copy()
        if subscription.is_deleting:
            remove_subscriber(after, subscription)
        else:
            add_subscriber(after, subscription, self.merge_delivery(subscription, after))

        patch = create_merge_patch(self.codec.encode(channel), self.codec.encode(after))
        if not patch:
            return False
        if channel.meta.resource_version:
            patch.setdefault("metadata", {})["resourceVersion"] = channel.meta.resource_version

        body = json.dumps(patch, sort_keys=True).encode()
        try:
            self.patcher.patch(channel.reference(), channel.meta.namespace, body)
        except ResourceNotFoundError as exc:
            if subscription.is_deleting:
                log.warning("Could not find channel %s, nothing to remove", channel.name)
                return False
            log.warning("Failed to patch channel %s: %s", channel.name, exc)
            raise ChannelSyncError(
                f"Failed to synchronize to channel {channel.name!r}: {exc}"
            ) from exc
        except ResourceError as exc:
            log.warning("Failed to patch channel %s: %s (patch=%s)", channel.name, exc, body)
            raise ChannelSyncError(
                f"Failed to synchronize to channel {channel.name!r}: {exc}"
            ) from exc
        log.debug("Patched channel %s: %s", channel.name, body)
        return True
