"""The Subscription resource and its condition lifecycle."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING, Final

from .conditions import Condition, ConditionSet, find_condition
from .meta import KReference, ObjectMeta

if TYPE_CHECKING:
    from .delivery import DeliverySpec
    from .destination import Destination

SUBSCRIPTION_API_VERSION: Final[str] = "messaging.knative.dev/v1"
SUBSCRIPTION_KIND: Final[str] = "Subscription"
SUBSCRIPTION_FINALIZER: Final[str] = "subscriptions.messaging.knative.dev"


class SubscriptionConditionType(StrEnum):
    READY = "Ready"
    REFERENCES_RESOLVED = "ReferencesResolved"
    ADDED_TO_CHANNEL = "AddedToChannel"
    CHANNEL_READY = "ChannelReady"


SUBSCRIPTION_CONDITIONS: Final[ConditionSet] = ConditionSet(
    happy=SubscriptionConditionType.READY,
    dependents=(
        SubscriptionConditionType.REFERENCES_RESOLVED,
        SubscriptionConditionType.ADDED_TO_CHANNEL,
        SubscriptionConditionType.CHANNEL_READY,
    ),
)


@dataclass(slots=True, kw_only=True)
class PhysicalSubscription:
    subscriber_uri: str | None = None
    reply_uri: str | None = None
    dead_letter_sink_uri: str | None = None


@dataclass(slots=True, kw_only=True)
class SubscriptionSpec:
    channel: KReference
    subscriber: Destination | None = None
    reply: Destination | None = None
    delivery: DeliverySpec | None = None


@dataclass(slots=True, kw_only=True)
class SubscriptionStatus:
    conditions: list[Condition] = field(default_factory=list)
    observed_generation: int = 0
    physical_subscription: PhysicalSubscription = field(default_factory=PhysicalSubscription)

    def get_condition(self, condition_type: str) -> Condition | None:
        return find_condition(self.conditions, condition_type)

    def initialize_conditions(self) -> None:
        SUBSCRIPTION_CONDITIONS.initialize(self.conditions)

    def is_ready(self) -> bool:
        return SUBSCRIPTION_CONDITIONS.is_happy(self.conditions)

    def is_added_to_channel(self) -> bool:
        condition = self.get_condition(SubscriptionConditionType.ADDED_TO_CHANNEL)
        return condition is not None and condition.is_true()

    def mark_references_resolved(self) -> None:
        SUBSCRIPTION_CONDITIONS.mark_true(
            self.conditions, SubscriptionConditionType.REFERENCES_RESOLVED
        )

    def mark_references_resolved_unknown(self, reason: str, message: str) -> None:
        SUBSCRIPTION_CONDITIONS.mark_unknown(
            self.conditions, SubscriptionConditionType.REFERENCES_RESOLVED, reason, message
        )

    def mark_references_not_resolved(self, reason: str, message: str) -> None:
        SUBSCRIPTION_CONDITIONS.mark_false(
            self.conditions, SubscriptionConditionType.REFERENCES_RESOLVED, reason, message
        )

    def mark_added_to_channel(self) -> None:
        SUBSCRIPTION_CONDITIONS.mark_true(self.conditions, SubscriptionConditionType.ADDED_TO_CHANNEL)

    def mark_not_added_to_channel(self, reason: str, message: str) -> None:
        SUBSCRIPTION_CONDITIONS.mark_false(
            self.conditions, SubscriptionConditionType.ADDED_TO_CHANNEL, reason, message
        )

    def mark_channel_ready(self) -> None:
        SUBSCRIPTION_CONDITIONS.mark_true(self.conditions, SubscriptionConditionType.CHANNEL_READY)

    def mark_channel_unknown(self, reason: str, message: str) -> None:
        SUBSCRIPTION_CONDITIONS.mark_unknown(
            self.conditions, SubscriptionConditionType.CHANNEL_READY, reason, message
        )

    def mark_channel_failed(self, reason: str, message: str) -> None:
        SUBSCRIPTION_CONDITIONS.mark_false(
            self.conditions, SubscriptionConditionType.CHANNEL_READY, reason, message
        )


@dataclass(slots=True, kw_only=True)
class Subscription:
    meta: ObjectMeta
    spec: SubscriptionSpec
    status: SubscriptionStatus = field(default_factory=SubscriptionStatus)
    api_version: str = SUBSCRIPTION_API_VERSION
    kind: str = SUBSCRIPTION_KIND

    @property
    def name(self) -> str:
        return self.meta.name

    @property
    def namespace(self) -> str:
        return self.meta.namespace

    @property
    def uid(self) -> str:
        return self.meta.uid

    @property
    def generation(self) -> int:
        return self.meta.generation

    @property
    def is_deleting(self) -> bool:
        return self.meta.is_deleting

    def reference(self) -> KReference:
        return KReference(
            kind=self.kind,
            name=self.meta.name,
            namespace=self.meta.namespace,
            api_version=self.api_version,
        )
