from __future__ import annotations

import json

import pytest

from subsync.adapters.memory import InMemoryEventRecorder, InMemoryResourceStore, InMemoryTracker
from subsync.domain.model import SUBSCRIPTION_FINALIZER, KReference
from subsync.domain.ports import ResourceConflictError, ResourceError, ResourceNotFoundError
from subsync.domain.reconciliation import ReconcileEvent
from tests.support.builders import (
    CHANNEL_API_VERSION,
    NAMESPACE,
    channel_doc,
    subscription_doc,
)

CHANNEL_REF = KReference(kind="InMemoryChannel", name="origin", api_version=CHANNEL_API_VERSION)
SUBSCRIPTION_REF = KReference(kind="Subscription", name="sub", api_version=CHANNEL_API_VERSION)


def test_apply_assigns_server_metadata() -> None:
    store = InMemoryResourceStore([channel_doc()])

    metadata = store.get(CHANNEL_REF, NAMESPACE).metadata

    assert metadata["resourceVersion"] == "1"
    assert metadata["generation"] == 1
    assert metadata["uid"]


def test_reapply_keeps_identity_and_bumps_generation_on_spec_change() -> None:
    store = InMemoryResourceStore([channel_doc()])
    uid = store.get(CHANNEL_REF, NAMESPACE).metadata["uid"]

    unchanged = store.apply(channel_doc()).metadata
    changed = store.apply(channel_doc(delivery={"retry": 3})).metadata

    assert unchanged["uid"] == uid
    assert unchanged["generation"] == 1
    assert unchanged["resourceVersion"] == "2"
    assert changed["generation"] == 2
    assert changed["resourceVersion"] == "3"


def test_reads_are_private_copies() -> None:
    store = InMemoryResourceStore([channel_doc()])

    store.get(CHANNEL_REF, NAMESPACE).content["spec"]["subscribers"].append({"uid": "x"})

    assert store.get(CHANNEL_REF, NAMESPACE).content["spec"]["subscribers"] == []


def test_reference_with_other_version_reaches_same_object() -> None:
    store = InMemoryResourceStore([channel_doc()])
    other_version = KReference(
        kind="InMemoryChannel", name="origin", api_version="messaging.knative.dev/v1beta1"
    )
    group_only = KReference(kind="InMemoryChannel", name="origin", group="messaging.knative.dev")

    assert store.get(other_version, NAMESPACE).name == "origin"
    assert store.get(group_only, NAMESPACE).name == "origin"


def test_patch_applies_merge_patch_and_records_it() -> None:
    store = InMemoryResourceStore([channel_doc()])
    patch = json.dumps(
        {"spec": {"subscribers": [{"uid": "u1"}]}, "metadata": {"resourceVersion": "1"}}
    ).encode()

    patched = store.patch(CHANNEL_REF, NAMESPACE, patch)

    assert patched.content["spec"]["subscribers"] == [{"uid": "u1"}]
    assert patched.metadata["generation"] == 2
    assert patched.metadata["resourceVersion"] == "2"
    assert store.patches == [(CHANNEL_REF, NAMESPACE, patch)]


def test_patch_status_only_keeps_generation() -> None:
    store = InMemoryResourceStore([channel_doc()])

    patched = store.patch(
        CHANNEL_REF, NAMESPACE, json.dumps({"status": {"deadLetterSinkUri": "http://d"}}).encode()
    )

    assert patched.metadata["generation"] == 1
    assert patched.content["status"]["deadLetterSinkUri"] == "http://d"


def test_patch_with_stale_resource_version_conflicts() -> None:
    store = InMemoryResourceStore([channel_doc()])
    store.apply(channel_doc(delivery={"retry": 1}))

    with pytest.raises(ResourceConflictError):
        store.patch(
            CHANNEL_REF,
            NAMESPACE,
            json.dumps({"spec": {"subscribers": []}, "metadata": {"resourceVersion": "1"}}).encode(),
        )
    assert store.patches == []


@pytest.mark.parametrize("patch", [b"not json", b"[1, 2]"])
def test_patch_rejects_invalid_bodies(patch: bytes) -> None:
    store = InMemoryResourceStore([channel_doc()])

    with pytest.raises(ResourceError):
        store.patch(CHANNEL_REF, NAMESPACE, patch)


def test_missing_object_raises_not_found() -> None:
    store = InMemoryResourceStore()

    with pytest.raises(ResourceNotFoundError):
        store.get(CHANNEL_REF, NAMESPACE)
    with pytest.raises(ResourceNotFoundError):
        store.get_subscription(NAMESPACE, "sub")


def test_delete_without_finalizers_removes_object() -> None:
    store = InMemoryResourceStore([channel_doc()])

    store.delete(CHANNEL_REF, NAMESPACE)

    with pytest.raises(ResourceNotFoundError):
        store.get(CHANNEL_REF, NAMESPACE)


def test_delete_with_finalizers_sets_tombstone_until_released() -> None:
    store = InMemoryResourceStore([subscription_doc(finalizers=[SUBSCRIPTION_FINALIZER])])

    store.delete(SUBSCRIPTION_REF, NAMESPACE)
    subscription = store.get_subscription(NAMESPACE, "sub")
    assert subscription.is_deleting

    subscription.meta.remove_finalizer(SUBSCRIPTION_FINALIZER)
    store.update_subscription(subscription)

    with pytest.raises(ResourceNotFoundError):
        store.get_subscription(NAMESPACE, "sub")


def test_update_subscription_writes_status_and_finalizers() -> None:
    store = InMemoryResourceStore([subscription_doc()])
    subscription = store.get_subscription(NAMESPACE, "sub")
    subscription.meta.add_finalizer(SUBSCRIPTION_FINALIZER)
    subscription.status.initialize_conditions()
    subscription.status.observed_generation = 1

    store.update_subscription(subscription)

    reloaded = store.get_subscription(NAMESPACE, "sub")
    assert reloaded.meta.finalizers == [SUBSCRIPTION_FINALIZER]
    assert reloaded.status.observed_generation == 1
    assert len(reloaded.status.conditions) == 4
    assert reloaded.meta.resource_version == "2"


def test_update_subscription_with_stale_copy_conflicts() -> None:
    store = InMemoryResourceStore([subscription_doc()])
    stale = store.get_subscription(NAMESPACE, "sub")
    store.apply(subscription_doc(subscriber={"uri": "https://example.com"}))

    with pytest.raises(ResourceConflictError):
        store.update_subscription(stale)


def test_tracker_records_each_dependent_once() -> None:
    tracker = InMemoryTracker()
    subscription = KReference(kind="Subscription", name="sub", namespace=NAMESPACE)

    tracker.track(CHANNEL_REF, NAMESPACE, subscription)
    tracker.track(CHANNEL_REF, NAMESPACE, subscription)

    assert tracker.dependents(CHANNEL_REF, NAMESPACE) == [subscription]
    assert tracker.dependents(CHANNEL_REF, "elsewhere") == []


def test_recorder_keeps_order_and_logs(caplog: pytest.LogCaptureFixture) -> None:
    recorder = InMemoryEventRecorder()
    subject = KReference(kind="Subscription", name="sub", namespace=NAMESPACE)

    with caplog.at_level("INFO"):
        recorder.record(subject, ReconcileEvent.normal("SubscriberSync", "synced"))
        recorder.record(subject, ReconcileEvent.warning("ChannelReferenceFailed", "gone"))

    assert recorder.reasons() == ["SubscriberSync", "ChannelReferenceFailed"]
    assert [record.levelname for record in caplog.records] == ["INFO", "WARNING"]
