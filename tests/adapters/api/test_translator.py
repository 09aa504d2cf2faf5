from __future__ import annotations

from datetime import UTC, datetime

import pytest

from subsync.adapters.api import (
    address_url,
    decode_channel_class,
    decode_channelable,
    decode_subscription,
    encode_channelable,
    encode_subscription_status,
)
from subsync.domain.model import (
    BackoffPolicy,
    ConditionStatus,
    DeliveryPolicy,
    Resource,
    SubscriberEntry,
)
from subsync.domain.ports import ChannelableConversionError
from tests.support.builders import (
    CHANNEL_KIND,
    DLS_URL,
    NAMESPACE,
    SUBSCRIBER_URL,
    SUBSCRIPTION_UID,
    addressable_doc,
    channel_class_doc,
    channel_doc,
    make_channel,
    make_subscription,
    ref,
    subscription_doc,
)


def test_decode_channelable_reads_spec_and_status() -> None:
    content = channel_doc(
        subscribers=[
            {
                "uid": SUBSCRIPTION_UID,
                "generation": 3,
                "subscriberUri": SUBSCRIBER_URL,
                "delivery": {
                    "deadLetterSink": {"uri": DLS_URL},
                    "retry": 2,
                    "backoffPolicy": "linear",
                },
            }
        ],
        status_subscribers=[{"uid": SUBSCRIPTION_UID, "observedGeneration": 3, "ready": "True"}],
        delivery={"retry": 5},
        dead_letter_sink_uri=DLS_URL,
        resource_version="42",
    )
    content["status"]["conditions"] = [{"type": "Ready", "status": "True"}]

    channel = decode_channelable(Resource(content=content))

    assert channel.kind == CHANNEL_KIND
    assert channel.meta.resource_version == "42"
    entry = channel.spec.find_subscriber(SUBSCRIPTION_UID)
    assert entry is not None
    assert entry.generation == 3
    assert entry.subscriber_uri == SUBSCRIBER_URL
    assert entry.delivery == DeliveryPolicy(
        dead_letter_sink_uri=DLS_URL, retry=2, backoff_policy=BackoffPolicy.LINEAR
    )
    assert channel.spec.delivery is not None
    assert channel.spec.delivery.retry == 5
    reported = channel.status.find_subscriber(SUBSCRIPTION_UID, 3)
    assert reported is not None
    assert reported.ready is ConditionStatus.TRUE
    assert channel.status.dead_letter_sink_uri == DLS_URL
    assert channel.status.ready is ConditionStatus.TRUE


@pytest.mark.parametrize(
    "content",
    [
        addressable_doc("subscriber", SUBSCRIBER_URL),
        {**channel_doc(), "spec": ["not", "an", "object"]},
        {**channel_doc(), "spec": {"subscribers": [{"generation": 1}]}},
    ],
    ids=["no-spec", "spec-not-object", "entry-without-uid"],
)
def test_decode_channelable_rejects_objects_without_subscriber_list(
    content: dict[str, object],
) -> None:
    with pytest.raises(ChannelableConversionError):
        decode_channelable(Resource(content=content))


def test_encode_channelable_writes_spec_only() -> None:
    channel = make_channel(status_subscribers=[{"uid": "other", "ready": "True"}])
    channel.spec.subscribers.append(
        SubscriberEntry(
            uid=SUBSCRIPTION_UID,
            generation=1,
            subscriber_uri=SUBSCRIBER_URL,
            delivery=DeliveryPolicy(dead_letter_sink_uri=DLS_URL, timeout="PT1S"),
        )
    )

    encoded = encode_channelable(channel)

    assert "status" not in encoded
    assert encoded["metadata"] == {"name": "origin", "namespace": NAMESPACE}
    assert encoded["spec"] == {
        "subscribers": [
            {
                "uid": SUBSCRIPTION_UID,
                "generation": 1,
                "subscriberUri": SUBSCRIBER_URL,
                "delivery": {"deadLetterSink": {"uri": DLS_URL}, "timeout": "PT1S"},
            }
        ]
    }


def test_decode_subscription_reads_destinations_and_meta() -> None:
    subscription = make_subscription(
        subscriber={"ref": ref("subscriber"), "uri": "/path"},
        reply={"uri": "https://example.com/reply"},
        delivery={"deadLetterSink": {"ref": ref("dls")}, "backoffPolicy": "exponential"},
        finalizers=["subscriptions.messaging.knative.dev"],
        deletion_timestamp="2024-05-01T10:00:00Z",
    )

    assert subscription.uid == SUBSCRIPTION_UID
    assert subscription.is_deleting
    assert subscription.meta.deletion_timestamp == datetime(2024, 5, 1, 10, tzinfo=UTC)
    assert subscription.spec.channel.kind == CHANNEL_KIND
    subscriber = subscription.spec.subscriber
    assert subscriber is not None
    assert subscriber.ref is not None
    assert subscriber.ref.name == "subscriber"
    assert subscriber.uri == "/path"
    assert subscription.spec.reply is not None
    assert subscription.spec.reply.ref is None
    delivery = subscription.spec.delivery
    assert delivery is not None
    assert delivery.backoff_policy is BackoffPolicy.EXPONENTIAL
    assert delivery.dead_letter_sink is not None


def test_blank_reference_fields_are_dropped() -> None:
    subscription = make_subscription(
        channel={"apiVersion": " ", "kind": CHANNEL_KIND, "name": "origin", "group": "  "},
        subscriber={"uri": ""},
    )

    assert subscription.spec.channel.api_version == ""
    assert subscription.spec.channel.group == ""
    assert subscription.spec.subscriber is not None
    assert subscription.spec.subscriber.uri is None


def test_encode_subscription_status_uses_api_field_names() -> None:
    subscription = make_subscription()
    subscription.status.initialize_conditions()
    subscription.status.mark_references_resolved()
    subscription.status.observed_generation = 1
    subscription.status.physical_subscription.subscriber_uri = SUBSCRIBER_URL

    encoded = encode_subscription_status(subscription)

    assert encoded["observedGeneration"] == 1
    assert encoded["physicalSubscription"] == {"subscriberUri": SUBSCRIBER_URL}
    assert [c["type"] for c in encoded["conditions"]] == [
        "AddedToChannel",
        "ChannelReady",
        "Ready",
        "ReferencesResolved",
    ]
    resolved = encoded["conditions"][-1]
    assert resolved["status"] == "True"
    assert "reason" not in resolved
    assert "lastTransitionTime" in resolved

    reloaded = decode_subscription(subscription_doc(status=encoded))
    assert reloaded.status.conditions == subscription.status.conditions


def test_decode_channel_class_reads_backing_channel() -> None:
    channel_class = decode_channel_class(channel_class_doc(backing_name="backing"))

    assert channel_class.is_ready()
    backing = channel_class.status.backing_channel
    assert backing is not None
    assert backing.kind == CHANNEL_KIND
    assert backing.name == "backing"


def test_decode_channel_class_without_backing_channel() -> None:
    channel_class = decode_channel_class(channel_class_doc(ready=False, backing_kind=None))

    assert not channel_class.is_ready()
    assert channel_class.status.backing_channel is None


@pytest.mark.parametrize(
    ("url", "expected"),
    [(SUBSCRIBER_URL, SUBSCRIBER_URL), ("", None), (None, None)],
)
def test_address_url(url: str | None, expected: str | None) -> None:
    assert address_url(addressable_doc("subscriber", url)) == expected
