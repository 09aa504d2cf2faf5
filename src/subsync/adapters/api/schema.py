"""Pydantic models describing resource payloads as the API server serves them."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

ConditionStatusLiteral = Literal["True", "False", "Unknown"]


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class ApiBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ObjectMetaPayload(ApiBaseModel):
    name: str
    namespace: str = ""
    uid: str = ""
    generation: int = 0
    resource_version: str = Field(default="", alias="resourceVersion")
    deletion_timestamp: datetime | None = Field(default=None, alias="deletionTimestamp")
    finalizers: list[str] = Field(default_factory=list)


class KReferencePayload(ApiBaseModel):
    kind: str
    name: str
    namespace: str | None = None
    api_version: str | None = Field(default=None, alias="apiVersion")
    group: str | None = None

    _normalize_blanks = field_validator("namespace", "api_version", "group", mode="before")(
        _blank_to_none
    )


class DestinationPayload(ApiBaseModel):
    ref: KReferencePayload | None = None
    uri: str | None = None

    _normalize_uri = field_validator("uri", mode="before")(_blank_to_none)


class DeliveryPayload(ApiBaseModel):
    dead_letter_sink: DestinationPayload | None = Field(default=None, alias="deadLetterSink")
    retry: int | None = None
    backoff_policy: Literal["linear", "exponential"] | None = Field(
        default=None, alias="backoffPolicy"
    )
    backoff_delay: str | None = Field(default=None, alias="backoffDelay")
    timeout: str | None = None
    retry_after_max: str | None = Field(default=None, alias="retryAfterMax")


class ConditionPayload(ApiBaseModel):
    type: str
    status: ConditionStatusLiteral = "Unknown"
    reason: str | None = None
    message: str | None = None
    last_transition_time: datetime | None = Field(default=None, alias="lastTransitionTime")


class SubscriberSpecPayload(ApiBaseModel):
    uid: str
    generation: int | None = None
    subscriber_uri: str | None = Field(default=None, alias="subscriberUri")
    reply_uri: str | None = Field(default=None, alias="replyUri")
    delivery: DeliveryPayload | None = None


class SubscriberStatusPayload(ApiBaseModel):
    uid: str
    observed_generation: int = Field(default=0, alias="observedGeneration")
    ready: ConditionStatusLiteral = "Unknown"
    message: str | None = None


class ChannelableSpecPayload(ApiBaseModel):
    subscribers: list[SubscriberSpecPayload] = Field(default_factory=list)
    delivery: DeliveryPayload | None = None


class ChannelableStatusPayload(ApiBaseModel):
    subscribers: list[SubscriberStatusPayload] = Field(default_factory=list)
    dead_letter_sink_uri: str | None = Field(default=None, alias="deadLetterSinkUri")
    conditions: list[ConditionPayload] = Field(default_factory=list)


class ChannelablePayload(ApiBaseModel):
    """Duck-typed view of any channel implementation; ``spec`` is mandatory."""

    api_version: str = Field(alias="apiVersion")
    kind: str
    metadata: ObjectMetaPayload
    spec: ChannelableSpecPayload
    status: ChannelableStatusPayload = Field(default_factory=ChannelableStatusPayload)


class ChannelClassStatusPayload(ApiBaseModel):
    conditions: list[ConditionPayload] = Field(default_factory=list)
    channel: KReferencePayload | None = None


class ChannelClassPayload(ApiBaseModel):
    api_version: str = Field(alias="apiVersion")
    kind: str
    metadata: ObjectMetaPayload
    status: ChannelClassStatusPayload = Field(default_factory=ChannelClassStatusPayload)


class PhysicalSubscriptionPayload(ApiBaseModel):
    subscriber_uri: str | None = Field(default=None, alias="subscriberUri")
    reply_uri: str | None = Field(default=None, alias="replyUri")
    dead_letter_sink_uri: str | None = Field(default=None, alias="deadLetterSinkUri")


class SubscriptionSpecPayload(ApiBaseModel):
    channel: KReferencePayload
    subscriber: DestinationPayload | None = None
    reply: DestinationPayload | None = None
    delivery: DeliveryPayload | None = None


class SubscriptionStatusPayload(ApiBaseModel):
    conditions: list[ConditionPayload] = Field(default_factory=list)
    observed_generation: int = Field(default=0, alias="observedGeneration")
    physical_subscription: PhysicalSubscriptionPayload = Field(
        default_factory=PhysicalSubscriptionPayload, alias="physicalSubscription"
    )


class SubscriptionPayload(ApiBaseModel):
    api_version: str = Field(alias="apiVersion")
    kind: str
    metadata: ObjectMetaPayload
    spec: SubscriptionSpecPayload
    status: SubscriptionStatusPayload = Field(default_factory=SubscriptionStatusPayload)


class AddressPayload(ApiBaseModel):
    url: str | None = None

    _normalize_url = field_validator("url", mode="before")(_blank_to_none)


class AddressableStatusPayload(ApiBaseModel):
    address: AddressPayload | None = None


class AddressablePayload(ApiBaseModel):
    status: AddressableStatusPayload = Field(default_factory=AddressableStatusPayload)


class ApiStatusPayload(ApiBaseModel):
    """Error body returned by the API server."""

    message: str = ""
    reason: str = ""
    code: int = 0
