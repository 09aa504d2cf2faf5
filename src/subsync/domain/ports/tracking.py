"""Port for dependency tracking."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from subsync.domain.model import KReference


@runtime_checkable
class Tracker(Protocol):
    """Register that changes to ``ref`` must re-trigger reconciliation of ``dependent``.

    Must be called before the referenced object is fetched.
    """

    def track(self, ref: KReference, namespace: str, dependent: KReference) -> None: ...


__all__ = ["Tracker"]
