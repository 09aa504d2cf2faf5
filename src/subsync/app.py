"""Application orchestration entry points."""

from __future__ import annotations

from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING, Any, Literal

from subsync.adapters.api import ApiChannelableCodec, ApiResourceClient
from subsync.adapters.memory import InMemoryEventRecorder, InMemoryTracker
from subsync.adapters.resolver import AddressableDestinationResolver, StaticGroupResolver
from subsync.adapters.sqlalchemy import SqlAlchemyResourceStore, build_sqlalchemy_store
from subsync.config import (
    get_database_config,
    get_feature_flags,
    get_resolver_config,
)
from subsync.domain.reconciliation import (
    ChannelLocator,
    ChannelSyncEngine,
    DestinationResolutionEngine,
    SubscriptionReconciler,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from subsync.config import FeatureFlags, ResolverConfig
    from subsync.domain.model import KReference, Resource, Subscription
    from subsync.domain.ports import ChannelableCodec, EventRecorder, ResourceBackend, Tracker
    from subsync.domain.reconciliation import ReconcileEvent

type BackendName = Literal["sqlite", "api"]

log = getLogger(__name__)


@dataclass(slots=True)
class ReconcileResult:
    subscription: Subscription
    event: ReconcileEvent | None


def _local_store() -> SqlAlchemyResourceStore:
    config = get_database_config()
    return build_sqlalchemy_store(database_uri=config.uri, echo=config.echo)


def build_backend(name: BackendName = "sqlite") -> ResourceBackend:
    if name == "api":
        return ApiResourceClient()
    return _local_store()


def build_reconciler(
    backend: ResourceBackend,
    *,
    tracker: Tracker | None = None,
    channel_class_tracker: Tracker | None = None,
    recorder: EventRecorder | None = None,
    codec: ChannelableCodec | None = None,
    features: FeatureFlags | None = None,
    resolver_config: ResolverConfig | None = None,
) -> SubscriptionReconciler:
    """Wire the reconciliation stages against one backend."""

    effective_features = features or get_feature_flags()
    effective_resolver_config = resolver_config or get_resolver_config()
    effective_tracker = tracker or InMemoryTracker()
    effective_codec = codec or ApiChannelableCodec()
    group_resolver = StaticGroupResolver(group_versions=effective_resolver_config.group_versions)

    return SubscriptionReconciler(
        locate=ChannelLocator(
            reader=backend,
            channel_classes=backend,
            codec=effective_codec,
            channelable_tracker=effective_tracker,
            channel_class_tracker=channel_class_tracker or effective_tracker,
            group_resolver=group_resolver,
            kreference_group=effective_features.kreference_group,
        ),
        resolve=DestinationResolutionEngine(
            resolver=AddressableDestinationResolver(
                reader=backend,
                tracker=effective_tracker,
                cluster_domain=effective_resolver_config.cluster_domain,
            ),
            group_resolver=group_resolver,
            kreference_group=effective_features.kreference_group,
        ),
        sync=ChannelSyncEngine(patcher=backend, codec=effective_codec),
        recorder=recorder or InMemoryEventRecorder(),
    )


def reconcile_subscription(
    namespace: str,
    name: str,
    *,
    backend: ResourceBackend | None = None,
    reconciler: SubscriptionReconciler | None = None,
) -> ReconcileResult:
    """Load one subscription, run a reconciliation pass and persist the outcome.

    Status and finalizers are written back even when the pass fails, so the
    failure reason is visible on the subscription.
    """

    effective_backend = backend or build_backend()
    effective_reconciler = reconciler or build_reconciler(effective_backend)
    subscription = effective_backend.get_subscription(namespace, name)
    log.info("Reconciling subscription %s/%s", namespace, name)
    try:
        event = effective_reconciler.reconcile(subscription)
    finally:
        effective_backend.update_subscription(subscription)
    log.info(
        "Finished subscription %s/%s: ready=%s, event=%s",
        namespace,
        name,
        subscription.status.is_ready(),
        event.reason if event else None,
    )
    return ReconcileResult(subscription=subscription, event=event)


def apply_documents(
    documents: Iterable[Mapping[str, Any]], *, store: SqlAlchemyResourceStore | None = None
) -> list[Resource]:
    """Create or replace resource documents in the local store."""

    effective_store = store or _local_store()
    applied = [effective_store.apply(document) for document in documents]
    log.info("Applied %s resource(s)", len(applied))
    return applied


def delete_resource(ref: KReference, *, store: SqlAlchemyResourceStore | None = None) -> None:
    """Delete a resource; objects with finalizers only get a deletion timestamp."""

    effective_store = store or _local_store()
    effective_store.delete(ref, ref.namespace)
    log.info("Deleted %s", ref)
