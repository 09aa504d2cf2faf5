"""Translate API payloads into domain objects and back."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from subsync.domain.model import (
    BackoffPolicy,
    Channelable,
    ChannelableSpec,
    ChannelableStatus,
    ChannelClass,
    ChannelClassStatus,
    Condition,
    ConditionStatus,
    DeliveryPolicy,
    DeliverySpec,
    Destination,
    KReference,
    ObjectMeta,
    PhysicalSubscription,
    Resource,
    SubscriberEntry,
    SubscriberStatus,
    Subscription,
    SubscriptionSpec,
    SubscriptionStatus,
    find_condition,
)
from subsync.domain.ports.errors import ChannelableConversionError

from .schema import (
    AddressablePayload,
    ChannelablePayload,
    ChannelableSpecPayload,
    ChannelClassPayload,
    ConditionPayload,
    DeliveryPayload,
    DestinationPayload,
    KReferencePayload,
    ObjectMetaPayload,
    PhysicalSubscriptionPayload,
    SubscriberSpecPayload,
    SubscriptionPayload,
    SubscriptionStatusPayload,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

_DUMP_OPTIONS: dict[str, Any] = {"by_alias": True, "exclude_none": True, "mode": "json"}


def decode_channelable(resource: Resource) -> Channelable:
    """Read any object exposing ``spec.subscribers`` as a Channelable."""

    if not isinstance(resource.content.get("spec"), dict):
        raise ChannelableConversionError(
            f"{resource.kind} {resource.name!r} has no spec to carry subscribers"
        )
    try:
        payload = ChannelablePayload.model_validate(resource.content)
    except ValidationError as exc:
        raise ChannelableConversionError(str(exc)) from exc

    ready = find_condition(_conditions(payload.status.conditions), "Ready")
    return Channelable(
        meta=_meta(payload.metadata),
        api_version=payload.api_version,
        kind=payload.kind,
        spec=ChannelableSpec(
            subscribers=[_subscriber_entry(item) for item in payload.spec.subscribers],
            delivery=_delivery_spec(payload.spec.delivery),
        ),
        status=ChannelableStatus(
            subscribers=[
                SubscriberStatus(
                    uid=item.uid,
                    observed_generation=item.observed_generation,
                    ready=ConditionStatus(item.ready),
                    message=item.message or "",
                )
                for item in payload.status.subscribers
            ],
            dead_letter_sink_uri=payload.status.dead_letter_sink_uri,
            ready=ready.status if ready is not None else ConditionStatus.UNKNOWN,
        ),
    )


def encode_channelable(channel: Channelable) -> dict[str, Any]:
    """Return identity plus ``spec``; status is owned by the channel controller."""

    spec = ChannelableSpecPayload(
        subscribers=[_subscriber_payload(entry) for entry in channel.spec.subscribers],
        delivery=_delivery_spec_payload(channel.spec.delivery),
    )
    return {
        "apiVersion": channel.api_version,
        "kind": channel.kind,
        "metadata": {"name": channel.meta.name, "namespace": channel.meta.namespace},
        "spec": spec.model_dump(**_DUMP_OPTIONS),
    }


class ApiChannelableCodec:
    """Channelable codec for objects shaped like the API server serves them."""

    def decode(self, resource: Resource) -> Channelable:
        return decode_channelable(resource)

    def encode(self, channelable: Channelable) -> dict[str, Any]:
        return encode_channelable(channelable)


def decode_channel_class(content: Mapping[str, Any]) -> ChannelClass:
    payload = ChannelClassPayload.model_validate(content)
    backing = payload.status.channel
    return ChannelClass(
        meta=_meta(payload.metadata),
        status=ChannelClassStatus(
            conditions=_conditions(payload.status.conditions),
            backing_channel=_kreference(backing) if backing is not None else None,
        ),
    )


def decode_subscription(content: Mapping[str, Any]) -> Subscription:
    payload = SubscriptionPayload.model_validate(content)
    spec = payload.spec
    physical = payload.status.physical_subscription
    return Subscription(
        meta=_meta(payload.metadata),
        api_version=payload.api_version,
        kind=payload.kind,
        spec=SubscriptionSpec(
            channel=_kreference(spec.channel),
            subscriber=_destination(spec.subscriber),
            reply=_destination(spec.reply),
            delivery=_delivery_spec(spec.delivery),
        ),
        status=SubscriptionStatus(
            conditions=_conditions(payload.status.conditions),
            observed_generation=payload.status.observed_generation,
            physical_subscription=PhysicalSubscription(
                subscriber_uri=physical.subscriber_uri,
                reply_uri=physical.reply_uri,
                dead_letter_sink_uri=physical.dead_letter_sink_uri,
            ),
        ),
    )


def encode_subscription_status(subscription: Subscription) -> dict[str, Any]:
    status = subscription.status
    physical = status.physical_subscription
    payload = SubscriptionStatusPayload(
        conditions=[
            ConditionPayload(
                type=condition.type,
                status=condition.status.value,
                reason=condition.reason or None,
                message=condition.message or None,
                last_transition_time=condition.last_transition_time,
            )
            for condition in status.conditions
        ],
        observed_generation=status.observed_generation,
        physical_subscription=PhysicalSubscriptionPayload(
            subscriber_uri=physical.subscriber_uri,
            reply_uri=physical.reply_uri,
            dead_letter_sink_uri=physical.dead_letter_sink_uri,
        ),
    )
    return payload.model_dump(**_DUMP_OPTIONS)


def encode_subscription_finalizers(subscription: Subscription) -> dict[str, Any]:
    return {
        "metadata": {
            "finalizers": list(subscription.meta.finalizers),
            "resourceVersion": subscription.meta.resource_version,
        }
    }


def address_url(content: Mapping[str, Any]) -> str | None:
    """Return ``status.address.url`` of an addressable object, if published."""

    payload = AddressablePayload.model_validate(content)
    address = payload.status.address
    return address.url if address is not None else None


def _meta(payload: ObjectMetaPayload) -> ObjectMeta:
    return ObjectMeta(
        name=payload.name,
        namespace=payload.namespace,
        uid=payload.uid,
        generation=payload.generation,
        resource_version=payload.resource_version,
        deletion_timestamp=payload.deletion_timestamp,
        finalizers=list(payload.finalizers),
    )


def _kreference(payload: KReferencePayload) -> KReference:
    return KReference(
        kind=payload.kind,
        name=payload.name,
        namespace=payload.namespace or "",
        api_version=payload.api_version or "",
        group=payload.group or "",
    )


def _destination(payload: DestinationPayload | None) -> Destination | None:
    if payload is None:
        return None
    return Destination(
        ref=_kreference(payload.ref) if payload.ref is not None else None,
        uri=payload.uri,
    )


def _delivery_spec(payload: DeliveryPayload | None) -> DeliverySpec | None:
    if payload is None:
        return None
    return DeliverySpec(
        dead_letter_sink=_destination(payload.dead_letter_sink),
        retry=payload.retry,
        backoff_policy=BackoffPolicy(payload.backoff_policy) if payload.backoff_policy else None,
        backoff_delay=payload.backoff_delay,
        timeout=payload.timeout,
        retry_after_max=payload.retry_after_max,
    )


def _conditions(payloads: list[ConditionPayload]) -> list[Condition]:
    return [
        Condition(
            type=item.type,
            status=ConditionStatus(item.status),
            reason=item.reason or "",
            message=item.message or "",
            last_transition_time=item.last_transition_time,
        )
        for item in payloads
    ]


def _subscriber_entry(payload: SubscriberSpecPayload) -> SubscriberEntry:
    delivery = payload.delivery
    policy: DeliveryPolicy | None = None
    if delivery is not None:
        sink = delivery.dead_letter_sink
        policy = DeliveryPolicy(
            dead_letter_sink_uri=sink.uri if sink is not None else None,
            retry=delivery.retry,
            backoff_policy=BackoffPolicy(delivery.backoff_policy)
            if delivery.backoff_policy
            else None,
            backoff_delay=delivery.backoff_delay,
            timeout=delivery.timeout,
            retry_after_max=delivery.retry_after_max,
        )
    return SubscriberEntry(
        uid=payload.uid,
        generation=payload.generation or 0,
        subscriber_uri=payload.subscriber_uri,
        reply_uri=payload.reply_uri,
        delivery=policy,
    )


def _subscriber_payload(entry: SubscriberEntry) -> SubscriberSpecPayload:
    policy = entry.delivery
    delivery: DeliveryPayload | None = None
    if policy is not None:
        delivery = DeliveryPayload(
            dead_letter_sink=DestinationPayload(uri=policy.dead_letter_sink_uri)
            if policy.dead_letter_sink_uri is not None
            else None,
            retry=policy.retry,
            backoff_policy=policy.backoff_policy.value if policy.backoff_policy else None,
            backoff_delay=policy.backoff_delay,
            timeout=policy.timeout,
            retry_after_max=policy.retry_after_max,
        )
    return SubscriberSpecPayload(
        uid=entry.uid,
        generation=entry.generation,
        subscriber_uri=entry.subscriber_uri,
        reply_uri=entry.reply_uri,
        delivery=delivery,
    )


def _delivery_spec_payload(spec: DeliverySpec | None) -> DeliveryPayload | None:
    if spec is None:
        return None
    return DeliveryPayload(
        dead_letter_sink=_destination_payload(spec.dead_letter_sink),
        retry=spec.retry,
        backoff_policy=spec.backoff_policy.value if spec.backoff_policy else None,
        backoff_delay=spec.backoff_delay,
        timeout=spec.timeout,
        retry_after_max=spec.retry_after_max,
    )


def _destination_payload(destination: Destination | None) -> DestinationPayload | None:
    if destination is None:
        return None
    ref = destination.ref
    return DestinationPayload(
        ref=KReferencePayload(
            kind=ref.kind,
            name=ref.name,
            namespace=ref.namespace or None,
            api_version=ref.api_version or None,
            group=ref.group or None,
        )
        if ref is not None
        else None,
        uri=destination.uri,
    )
