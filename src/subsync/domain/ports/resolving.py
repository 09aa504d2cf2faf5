"""Ports for turning destinations and references into addresses."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from subsync.domain.model import Destination, KReference, Subscription


@runtime_checkable
class DestinationResolver(Protocol):
    """Resolve a non-empty destination to an absolute URI.

    Raises ``DestinationResolutionError``; never falls back to a default.
    """

    def resolve(self, destination: Destination, parent: Subscription) -> str: ...


@runtime_checkable
class GroupResolver(Protocol):
    """Give a group-only reference a concrete API version."""

    def resolve_group(self, ref: KReference) -> KReference: ...


__all__ = ["DestinationResolver", "GroupResolver"]
