from __future__ import annotations

import json

import pytest

from subsync.adapters.memory import InMemoryEventRecorder, InMemoryResourceStore, InMemoryTracker
from subsync.app import build_reconciler, reconcile_subscription
from subsync.config import FeatureFlags, ResolverConfig
from subsync.domain.model import SUBSCRIPTION_FINALIZER, Condition, KReference, Resource
from subsync.domain.ports import ResourceConflictError, ResourceNotFoundError, TrackingError
from subsync.domain.reconciliation import (
    ChannelReferenceError,
    ChannelStatusError,
    ChannelSyncError,
    DestinationResolveError,
    EventType,
    SubscriptionReconciler,
)
from tests.support.builders import (
    CHANNEL_API_VERSION,
    NAMESPACE,
    SUBSCRIBER_URL,
    SUBSCRIPTION_UID,
    addressable_doc,
    channel_doc,
    ref,
    subscription_doc,
)

CHANNEL_REF = KReference(kind="InMemoryChannel", name="origin", api_version=CHANNEL_API_VERSION)
SUBSCRIPTION_REF = KReference(
    kind="Subscription", name="sub", namespace=NAMESPACE, api_version=CHANNEL_API_VERSION
)


def _seed(store: InMemoryResourceStore) -> None:
    store.apply(channel_doc("origin"))
    store.apply(addressable_doc("subscriber", SUBSCRIBER_URL))
    store.apply(subscription_doc(subscriber={"ref": ref("subscriber")}))


def _report_ready(store: InMemoryResourceStore, *, generation: int = 1, ready: str = "True") -> None:
    status = {"uid": SUBSCRIPTION_UID, "observedGeneration": generation, "ready": ready}
    store.patch(CHANNEL_REF, NAMESPACE, json.dumps({"status": {"subscribers": [status]}}).encode())


def _condition(store: InMemoryResourceStore, condition_type: str) -> Condition:
    subscription = store.get_subscription(NAMESPACE, "sub")
    condition = subscription.status.get_condition(condition_type)
    assert condition is not None
    return condition


def test_first_pass_adds_entry_and_skips_status_check(
    store: InMemoryResourceStore,
    reconciler: SubscriptionReconciler,
    recorder: InMemoryEventRecorder,
) -> None:
    _seed(store)

    result = reconcile_subscription(NAMESPACE, "sub", backend=store, reconciler=reconciler)

    assert result.event is not None
    assert result.event.reason == "SubscriberSync"
    assert result.event.type is EventType.NORMAL
    assert recorder.reasons() == ["SubscriberSync"]
    assert _condition(store, "ReferencesResolved").is_true()
    assert _condition(store, "AddedToChannel").is_true()
    assert _condition(store, "ChannelReady").is_unknown()
    persisted = store.get_subscription(NAMESPACE, "sub")
    assert persisted.meta.finalizers == [SUBSCRIPTION_FINALIZER]
    assert persisted.status.observed_generation == 1
    assert persisted.status.physical_subscription.subscriber_uri == SUBSCRIBER_URL
    channel = store.get(CHANNEL_REF, NAMESPACE).content
    assert [entry["uid"] for entry in channel["spec"]["subscribers"]] == [SUBSCRIPTION_UID]


def test_second_pass_is_ready_once_channel_reports(
    store: InMemoryResourceStore, reconciler: SubscriptionReconciler
) -> None:
    _seed(store)
    reconcile_subscription(NAMESPACE, "sub", backend=store, reconciler=reconciler)
    _report_ready(store)
    patches_before = len(store.patches)

    result = reconcile_subscription(NAMESPACE, "sub", backend=store, reconciler=reconciler)

    assert result.event is None
    assert result.subscription.status.is_ready()
    assert _condition(store, "Ready").is_true()
    assert len(store.patches) == patches_before


def test_repeated_passes_without_changes_write_nothing(
    store: InMemoryResourceStore, reconciler: SubscriptionReconciler
) -> None:
    _seed(store)
    reconcile_subscription(NAMESPACE, "sub", backend=store, reconciler=reconciler)
    _report_ready(store)
    reconcile_subscription(NAMESPACE, "sub", backend=store, reconciler=reconciler)
    channel_before = store.get(CHANNEL_REF, NAMESPACE).content
    patches_before = len(store.patches)

    result = reconcile_subscription(NAMESPACE, "sub", backend=store, reconciler=reconciler)

    assert result.event is None
    assert len(store.patches) == patches_before
    assert store.get(CHANNEL_REF, NAMESPACE).content == channel_before
    assert _condition(store, "Ready").is_true()


def test_generation_bump_waits_for_channel_to_catch_up(
    store: InMemoryResourceStore, reconciler: SubscriptionReconciler
) -> None:
    _seed(store)
    reconcile_subscription(NAMESPACE, "sub", backend=store, reconciler=reconciler)
    _report_ready(store)
    reconcile_subscription(NAMESPACE, "sub", backend=store, reconciler=reconciler)
    current = store.get_subscription(NAMESPACE, "sub")
    store.apply(
        subscription_doc(
            subscriber={"uri": "https://example.com/hook"},
            finalizers=current.meta.finalizers,
        )
    )

    result = reconcile_subscription(NAMESPACE, "sub", backend=store, reconciler=reconciler)

    assert result.event is not None
    assert result.event.reason == "SubscriberSync"
    channel = store.get(CHANNEL_REF, NAMESPACE).content
    assert channel["spec"]["subscribers"][0]["generation"] == 2
    assert channel["spec"]["subscribers"][0]["subscriberUri"] == "https://example.com/hook"

    with pytest.raises(ChannelStatusError):
        reconcile_subscription(NAMESPACE, "sub", backend=store, reconciler=reconciler)
    assert _condition(store, "ChannelReady").is_unknown()


def test_channel_reporting_not_ready_fails_ready(
    store: InMemoryResourceStore, reconciler: SubscriptionReconciler
) -> None:
    _seed(store)
    reconcile_subscription(NAMESPACE, "sub", backend=store, reconciler=reconciler)
    _report_ready(store, ready="False")

    reconcile_subscription(NAMESPACE, "sub", backend=store, reconciler=reconciler)

    ready = _condition(store, "Ready")
    assert ready.is_false()
    assert ready.reason == "SubscriptionNotMarkedReadyByChannel"


def test_missing_channel_marks_references_unknown(
    store: InMemoryResourceStore,
    reconciler: SubscriptionReconciler,
    recorder: InMemoryEventRecorder,
) -> None:
    store.apply(subscription_doc(subscriber={"uri": "https://example.com/hook"}))

    with pytest.raises(ChannelReferenceError):
        reconcile_subscription(NAMESPACE, "sub", backend=store, reconciler=reconciler)

    condition = _condition(store, "ReferencesResolved")
    assert condition.is_unknown()
    assert condition.reason == "ChannelReferenceFailed"
    assert store.get_subscription(NAMESPACE, "sub").status.observed_generation == 1
    subject, event = recorder.events[-1]
    assert subject == SUBSCRIPTION_REF
    assert event.type is EventType.WARNING
    assert event.reason == "ChannelReferenceFailed"


def test_tracking_failure_is_reported_as_channel_reference_failure(
    store: InMemoryResourceStore, recorder: InMemoryEventRecorder
) -> None:
    class _FailingTracker(InMemoryTracker):
        def track(self, ref: KReference, namespace: str, dependent: KReference) -> None:
            raise TrackingError("informer not started")

    _seed(store)
    reconciler = build_reconciler(
        store,
        tracker=_FailingTracker(),
        recorder=recorder,
        features=FeatureFlags(),
        resolver_config=ResolverConfig(),
    )

    with pytest.raises(ChannelReferenceError):
        reconcile_subscription(NAMESPACE, "sub", backend=store, reconciler=reconciler)

    condition = _condition(store, "ReferencesResolved")
    assert condition.is_unknown()
    assert condition.reason == "ChannelReferenceFailed"
    assert "informer not started" in condition.message
    assert store.patches == []
    _, event = recorder.events[-1]
    assert event.type is EventType.WARNING
    assert event.reason == "ChannelReferenceFailed"


def test_unresolvable_subscriber_leaves_channel_untouched(
    store: InMemoryResourceStore, reconciler: SubscriptionReconciler
) -> None:
    store.apply(channel_doc("origin"))
    store.apply(subscription_doc(subscriber={"ref": ref("nowhere")}))

    with pytest.raises(DestinationResolveError):
        reconcile_subscription(NAMESPACE, "sub", backend=store, reconciler=reconciler)

    assert store.patches == []
    condition = _condition(store, "ReferencesResolved")
    assert condition.is_false()
    assert condition.reason == "SubscriberResolveFailed"
    assert _condition(store, "Ready").is_false()


def test_sync_failure_marks_not_added_to_channel() -> None:
    class _ConflictingStore(InMemoryResourceStore):
        def patch(self, ref: KReference, namespace: str, patch: bytes) -> Resource:
            raise ResourceConflictError("the object has been modified")

    store = _ConflictingStore()
    _seed(store)
    reconciler = build_reconciler(store, features=FeatureFlags(), resolver_config=ResolverConfig())

    with pytest.raises(ChannelSyncError) as exc:
        reconcile_subscription(NAMESPACE, "sub", backend=store, reconciler=reconciler)

    assert exc.value.reason == "PhysicalChannelSyncFailed"
    condition = _condition(store, "AddedToChannel")
    assert condition.is_false()
    assert condition.reason == "PhysicalChannelSyncFailed"
    assert condition.message.startswith("Failed to sync physical Channel")


def test_deletion_removes_entry_and_releases_finalizer(
    store: InMemoryResourceStore,
    reconciler: SubscriptionReconciler,
    recorder: InMemoryEventRecorder,
) -> None:
    _seed(store)
    reconcile_subscription(NAMESPACE, "sub", backend=store, reconciler=reconciler)
    store.delete(SUBSCRIPTION_REF, NAMESPACE)

    result = reconcile_subscription(NAMESPACE, "sub", backend=store, reconciler=reconciler)

    assert result.event is not None
    assert result.event.reason == "SubscriberRemoved"
    assert recorder.reasons() == ["SubscriberSync", "SubscriberRemoved"]
    assert store.get(CHANNEL_REF, NAMESPACE).content["spec"]["subscribers"] == []
    with pytest.raises(ResourceNotFoundError):
        store.get_subscription(NAMESPACE, "sub")


def test_deletion_with_channel_gone_still_releases_finalizer(
    store: InMemoryResourceStore, reconciler: SubscriptionReconciler
) -> None:
    _seed(store)
    reconcile_subscription(NAMESPACE, "sub", backend=store, reconciler=reconciler)
    store.delete(CHANNEL_REF, NAMESPACE)
    store.delete(SUBSCRIPTION_REF, NAMESPACE)

    result = reconcile_subscription(NAMESPACE, "sub", backend=store, reconciler=reconciler)

    assert result.event is None
    assert result.subscription.meta.finalizers == []
    with pytest.raises(ResourceNotFoundError):
        store.get_subscription(NAMESPACE, "sub")


def test_deletion_before_being_added_skips_channel(
    store: InMemoryResourceStore, reconciler: SubscriptionReconciler
) -> None:
    store.apply(channel_doc("origin"))
    store.apply(
        subscription_doc(
            finalizers=[SUBSCRIPTION_FINALIZER],
            deletion_timestamp="2024-01-01T00:00:00+00:00",
        )
    )

    result = reconcile_subscription(NAMESPACE, "sub", backend=store, reconciler=reconciler)

    assert result.event is None
    assert store.patches == []


def test_deletion_without_own_finalizer_is_left_alone(
    reconciler: SubscriptionReconciler,
) -> None:
    store = InMemoryResourceStore()
    store.apply(
        subscription_doc(finalizers=["someone-else"], deletion_timestamp="2024-01-01T00:00:00Z")
    )
    loaded = store.get_subscription(NAMESPACE, "sub")

    assert reconciler.reconcile(loaded) is None
    assert loaded.meta.finalizers == ["someone-else"]
