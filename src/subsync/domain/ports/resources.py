"""Ports for reading and patching stored resources."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from subsync.domain.model import Channelable, ChannelClass, KReference, Resource, Subscription


@runtime_checkable
class ResourceReader(Protocol):
    """Dynamic (untyped) access to any referenced object.

    Raises ``ResourceNotFoundError`` when the object does not exist.
    """

    def get(self, ref: KReference, namespace: str) -> Resource: ...


@runtime_checkable
class ResourcePatcher(Protocol):
    """Apply a JSON merge patch to the referenced object."""

    def patch(self, ref: KReference, namespace: str, patch: bytes) -> Resource: ...


@runtime_checkable
class ChannelClassReader(Protocol):
    """Typed accessor for channel-class objects."""

    def get_channel_class(self, namespace: str, name: str) -> ChannelClass: ...


@runtime_checkable
class SubscriptionRepository(Protocol):
    """Load subscriptions and persist what reconciliation changed on them."""

    def get_subscription(self, namespace: str, name: str) -> Subscription: ...

    def update_subscription(self, subscription: Subscription) -> None: ...


@runtime_checkable
class ChannelableCodec(Protocol):
    """Convert untyped objects to Channelable and back to a JSON-ready mapping."""

    def decode(self, resource: Resource) -> Channelable: ...

    def encode(self, channelable: Channelable) -> dict[str, Any]: ...


@runtime_checkable
class ResourceBackend(
    ResourceReader, ResourcePatcher, ChannelClassReader, SubscriptionRepository, Protocol
):
    """Everything an application needs from one store."""


__all__ = [
    "ChannelClassReader",
    "ChannelableCodec",
    "ResourceBackend",
    "ResourcePatcher",
    "ResourceReader",
    "SubscriptionRepository",
]
