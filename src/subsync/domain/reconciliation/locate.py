"""Locate the Channelable object a subscription points at.

A subscription may reference a concrete channel directly, or a channel-class
object which only publishes a pointer to its backing channel. The indirection
is followed exactly once. Every object is registered with a tracker before it
is fetched so that later changes to it re-trigger reconciliation.
"""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Protocol

from subsync.domain.model import (
    CHANNEL_CLASS_API_VERSION,
    CHANNEL_CLASS_KIND,
    KReference,
    is_channel_class,
)
from subsync.domain.ports.errors import (
    ChannelableConversionError,
    GroupResolutionError,
    ResourceError,
    ResourceNotFoundError,
    TrackingError,
)

from .errors import ChannelReferenceError, TrackerError

if TYPE_CHECKING:
    from subsync.domain.model import Channelable, ChannelClass, Resource, Subscription
    from subsync.domain.ports import (
        ChannelableCodec,
        ChannelClassReader,
        GroupResolver,
        ResourceReader,
        Tracker,
    )

log = getLogger(__name__)


class LocateChannel(Protocol):
    def __call__(self, subscription: Subscription) -> Channelable: ...


@dataclass(slots=True)
class ChannelLocator:
    """Resolve ``spec.channel`` to a private copy of the concrete channel.

    ``channelable_tracker`` watches whatever cache backs ``reader``;
    ``channel_class_tracker`` watches the cache behind ``channel_classes``.
    Both are needed because the two caches may observe a change at different
    times.
    """

    reader: ResourceReader
    channel_classes: ChannelClassReader
    codec: ChannelableCodec
    channelable_tracker: Tracker
    channel_class_tracker: Tracker
    group_resolver: GroupResolver | None = None
    kreference_group: bool = False

    def __call__(self, subscription: Subscription) -> Channelable:
        channel_ref = subscription.spec.channel
        log.info("Getting channel %s for subscription %s", channel_ref, subscription.reference())

        resource = self._track_and_fetch(subscription, channel_ref)

        if is_channel_class(resource.api_version, resource.kind):
            backing_ref = self._backing_channel_ref(subscription)
            resource = self._track_and_fetch(subscription, backing_ref)

        try:
            channel = self.codec.decode(resource)
        except ChannelableConversionError as exc:
            log.error("Failed to convert %s %s to Channelable: %s", resource.kind, resource.name, exc)
            raise ChannelReferenceError(
                f"Failed to convert {resource.kind} {resource.name!r} to a Channelable object: {exc}",
                permanent=True,
            ) from exc
        return channel.deep_copy()

    def _track_and_fetch(self, subscription: Subscription, ref: KReference) -> Resource:
        namespace = subscription.namespace
        if self.kreference_group and self.group_resolver is not None:
            try:
                ref = self.group_resolver.resolve_group(ref)
            except GroupResolutionError as exc:
                log.warning("Failed to resolve channel reference %s: %s", ref, exc)
                raise ChannelReferenceError(
                    f"Failed to resolve the group of spec.channel {ref}: {exc}"
                ) from exc

        try:
            self.channelable_tracker.track(ref, namespace, subscription.reference())
        except TrackingError as exc:
            raise TrackerError(f"unable to track changes to spec.channel: {exc}") from exc

        try:
            return self.reader.get(ref, namespace)
        except ResourceNotFoundError as exc:
            log.warning("Channel %s not found: %s", ref, exc)
            raise ChannelReferenceError(
                f"Failed to get spec.channel or backing channel: {exc}", not_found=True
            ) from exc
        except ResourceError as exc:
            log.error("Error getting channel %s: %s", ref, exc)
            raise ChannelReferenceError(
                f"Failed to get spec.channel or backing channel: {exc}"
            ) from exc

    def _backing_channel_ref(self, subscription: Subscription) -> KReference:
        namespace = subscription.namespace
        name = subscription.spec.channel.name
        class_ref = KReference(
            kind=CHANNEL_CLASS_KIND,
            name=name,
            namespace=namespace,
            api_version=CHANNEL_CLASS_API_VERSION,
        )
        try:
            self.channel_class_tracker.track(class_ref, namespace, subscription.reference())
        except TrackingError as exc:
            log.info("Tracking channel %s failed: %s", class_ref, exc)
            raise TrackerError(f"unable to track changes to channel {name!r}: {exc}") from exc

        log.debug("Fetching backing channel of %s", class_ref)
        channel_class = self._get_channel_class(namespace, name)
        backing = channel_class.status.backing_channel
        if not channel_class.is_ready() or backing is None:
            log.warning("Backing channel of %s not ready", class_ref)
            raise ChannelReferenceError(
                "Failed to get spec.channel or backing channel: channel is not ready"
            )
        return KReference(
            kind=backing.kind,
            name=backing.name,
            namespace=namespace,
            api_version=backing.api_version,
        )

    def _get_channel_class(self, namespace: str, name: str) -> ChannelClass:
        try:
            return self.channel_classes.get_channel_class(namespace, name)
        except ResourceNotFoundError as exc:
            raise ChannelReferenceError(
                f"Failed to get spec.channel or backing channel: {exc}", not_found=True
            ) from exc
        except ResourceError as exc:
            raise ChannelReferenceError(
                f"Failed to get spec.channel or backing channel: {exc}"
            ) from exc
