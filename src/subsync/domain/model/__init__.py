"""Domain model for subscriptions and the channels they target."""

from __future__ import annotations

from .channel import (
    CHANNEL_CLASS_API_VERSION,
    CHANNEL_CLASS_GROUP,
    CHANNEL_CLASS_KIND,
    Channelable,
    ChannelableSpec,
    ChannelableStatus,
    ChannelClass,
    ChannelClassStatus,
    SubscriberEntry,
    SubscriberStatus,
    is_channel_class,
)
from .conditions import Condition, ConditionSet, ConditionStatus, find_condition
from .delivery import BackoffPolicy, DeliveryPolicy, DeliverySpec
from .destination import Destination, is_nil_or_empty
from .meta import KReference, ObjectMeta, Resource, split_api_version
from .subscription import (
    SUBSCRIPTION_API_VERSION,
    SUBSCRIPTION_CONDITIONS,
    SUBSCRIPTION_FINALIZER,
    SUBSCRIPTION_KIND,
    PhysicalSubscription,
    Subscription,
    SubscriptionConditionType,
    SubscriptionSpec,
    SubscriptionStatus,
)

__all__ = [
    "CHANNEL_CLASS_API_VERSION",
    "CHANNEL_CLASS_GROUP",
    "CHANNEL_CLASS_KIND",
    "SUBSCRIPTION_API_VERSION",
    "SUBSCRIPTION_CONDITIONS",
    "SUBSCRIPTION_FINALIZER",
    "SUBSCRIPTION_KIND",
    "BackoffPolicy",
    "ChannelClass",
    "ChannelClassStatus",
    "Channelable",
    "ChannelableSpec",
    "ChannelableStatus",
    "Condition",
    "ConditionSet",
    "ConditionStatus",
    "DeliveryPolicy",
    "DeliverySpec",
    "Destination",
    "KReference",
    "ObjectMeta",
    "PhysicalSubscription",
    "Resource",
    "SubscriberEntry",
    "SubscriberStatus",
    "Subscription",
    "SubscriptionConditionType",
    "SubscriptionSpec",
    "SubscriptionStatus",
    "find_condition",
    "is_channel_class",
    "is_nil_or_empty",
    "split_api_version",
]
