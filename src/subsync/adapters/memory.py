"""In-memory resource store, tracker and event recorder."""

from __future__ import annotations

import copy
from collections import defaultdict
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any

from subsync.adapters.api.translator import decode_channel_class, decode_subscription
from subsync.domain.model import (
    CHANNEL_CLASS_API_VERSION,
    CHANNEL_CLASS_KIND,
    SUBSCRIPTION_API_VERSION,
    SUBSCRIPTION_KIND,
    KReference,
    Resource,
)
from subsync.domain.model.conditions import utcnow
from subsync.domain.ports.errors import ResourceNotFoundError
from subsync.domain.reconciliation import EventType

from .documents import (
    DocumentKey,
    apply_patch,
    apply_subscription_update,
    document_key,
    mark_deleted,
    prepare_new,
    reference_key,
    replace_existing,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from subsync.domain.model import ChannelClass, Subscription
    from subsync.domain.ports import ResourceBackend
    from subsync.domain.reconciliation import ReconcileEvent

log = getLogger(__name__)


class InMemoryResourceStore:
    """Dictionary-backed store; every read returns a private copy."""

    def __init__(self, documents: Iterable[Mapping[str, Any]] = ()) -> None:
        self._documents: dict[DocumentKey, dict[str, Any]] = {}
        self.patches: list[tuple[KReference, str, bytes]] = []
        for document in documents:
            self.apply(document)

    def apply(self, content: Mapping[str, Any]) -> Resource:
        """Create ``content`` or overwrite the stored object with the same identity."""

        key = document_key(content)
        current = self._documents.get(key)
        if current is None:
            document = prepare_new(content)
        else:
            document = replace_existing(current, content)
        self._documents[key] = document
        return Resource(content=copy.deepcopy(document))

    def delete(self, ref: KReference, namespace: str) -> None:
        key = reference_key(ref, namespace)
        current = self._require(key, ref)
        document = mark_deleted(current, utcnow())
        if document is None:
            del self._documents[key]
        else:
            self._documents[key] = document

    def get(self, ref: KReference, namespace: str) -> Resource:
        key = reference_key(ref, namespace)
        return Resource(content=copy.deepcopy(self._require(key, ref)))

    def patch(self, ref: KReference, namespace: str, patch: bytes) -> Resource:
        key = reference_key(ref, namespace)
        document = apply_patch(self._require(key, ref), patch)
        self._documents[key] = document
        self.patches.append((ref, namespace, patch))
        return Resource(content=copy.deepcopy(document))

    def get_channel_class(self, namespace: str, name: str) -> ChannelClass:
        ref = KReference(
            kind=CHANNEL_CLASS_KIND,
            name=name,
            namespace=namespace,
            api_version=CHANNEL_CLASS_API_VERSION,
        )
        return decode_channel_class(self.get(ref, namespace).content)

    def get_subscription(self, namespace: str, name: str) -> Subscription:
        return decode_subscription(self.get(_subscription_ref(namespace, name), namespace).content)

    def update_subscription(self, subscription: Subscription) -> None:
        ref = _subscription_ref(subscription.namespace, subscription.name)
        key = reference_key(ref, subscription.namespace)
        document = apply_subscription_update(self._require(key, ref), subscription)
        if document is None:
            log.info("Subscription %s released its last finalizer, removing it", subscription.name)
            del self._documents[key]
        else:
            self._documents[key] = document

    def _require(self, key: DocumentKey, ref: KReference) -> dict[str, Any]:
        try:
            return self._documents[key]
        except KeyError:
            raise ResourceNotFoundError(ref.kind, key[2], ref.name) from None


def _subscription_ref(namespace: str, name: str) -> KReference:
    return KReference(
        kind=SUBSCRIPTION_KIND, name=name, namespace=namespace, api_version=SUBSCRIPTION_API_VERSION
    )


@dataclass(slots=True)
class InMemoryTracker:
    """Remember which objects re-trigger which subscriptions."""

    tracked: defaultdict[DocumentKey, list[KReference]] = field(
        default_factory=lambda: defaultdict(list)
    )

    def track(self, ref: KReference, namespace: str, dependent: KReference) -> None:
        dependents = self.tracked[reference_key(ref, namespace)]
        if dependent not in dependents:
            dependents.append(dependent)

    def dependents(self, ref: KReference, namespace: str = "") -> list[KReference]:
        return list(self.tracked.get(reference_key(ref, namespace), ()))


@dataclass(slots=True)
class InMemoryEventRecorder:
    """Keep events in order of recording and mirror them to the log."""

    events: list[tuple[KReference, ReconcileEvent]] = field(default_factory=list)

    def record(self, subject: KReference, event: ReconcileEvent) -> None:
        self.events.append((subject, event))
        if event.type == EventType.WARNING:
            log.warning("%s %s: %s", subject, event.reason, event.message)
        else:
            log.info("%s %s: %s", subject, event.reason, event.message)

    def reasons(self) -> list[str]:
        return [event.reason for _, event in self.events]


if TYPE_CHECKING:
    _backend_check: ResourceBackend = InMemoryResourceStore()
