"""Port for publishing reconciliation events."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from subsync.domain.model import KReference
    from subsync.domain.reconciliation.events import ReconcileEvent


@runtime_checkable
class EventRecorder(Protocol):
    def record(self, subject: KReference, event: ReconcileEvent) -> None: ...


__all__ = ["EventRecorder"]
