"""Channel variants: the Channelable capability and the channel-class indirection."""

from __future__ import annotations

import copy
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from .conditions import Condition, ConditionStatus, find_condition
from .meta import KReference, ObjectMeta, split_api_version

if TYPE_CHECKING:
    from .delivery import DeliveryPolicy, DeliverySpec

CHANNEL_CLASS_GROUP: Final[str] = "messaging.knative.dev"
CHANNEL_CLASS_KIND: Final[str] = "Channel"
CHANNEL_CLASS_API_VERSION: Final[str] = f"{CHANNEL_CLASS_GROUP}/v1"


def is_channel_class(api_version: str, kind: str) -> bool:
    """Whether ``api_version``/``kind`` names the channel-class indirection kind."""

    return split_api_version(api_version)[0] == CHANNEL_CLASS_GROUP and kind == CHANNEL_CLASS_KIND


@dataclass(slots=True, kw_only=True)
class SubscriberEntry:
    uid: str
    generation: int = 0
    subscriber_uri: str | None = None
    reply_uri: str | None = None
    delivery: DeliveryPolicy | None = None


@dataclass(slots=True, kw_only=True)
class SubscriberStatus:
    uid: str
    observed_generation: int = 0
    ready: ConditionStatus = ConditionStatus.UNKNOWN
    message: str = ""


@dataclass(slots=True, kw_only=True)
class ChannelableSpec:
    subscribers: list[SubscriberEntry] = field(default_factory=list)
    delivery: DeliverySpec | None = None

    def find_subscriber(self, uid: str) -> SubscriberEntry | None:
        return next((entry for entry in self.subscribers if entry.uid == uid), None)


@dataclass(slots=True, kw_only=True)
class ChannelableStatus:
    subscribers: list[SubscriberStatus] = field(default_factory=list)
    dead_letter_sink_uri: str | None = None
    ready: ConditionStatus = ConditionStatus.UNKNOWN

    def find_subscriber(self, uid: str, generation: int) -> SubscriberStatus | None:
        return next(
            (
                status
                for status in self.subscribers
                if status.uid == uid and status.observed_generation == generation
            ),
            None,
        )


@dataclass(slots=True, kw_only=True)
class Channelable:
    """Any concrete channel: it carries a subscriber list and reports per-subscriber status."""

    meta: ObjectMeta
    api_version: str
    kind: str
    spec: ChannelableSpec = field(default_factory=ChannelableSpec)
    status: ChannelableStatus = field(default_factory=ChannelableStatus)

    @property
    def name(self) -> str:
        return self.meta.name

    def reference(self) -> KReference:
        return KReference(
            kind=self.kind,
            name=self.meta.name,
            namespace=self.meta.namespace,
            api_version=self.api_version,
        )

    def deep_copy(self) -> Channelable:
        return copy.deepcopy(self)


@dataclass(slots=True, kw_only=True)
class ChannelClassStatus:
    conditions: list[Condition] = field(default_factory=list)
    backing_channel: KReference | None = None


@dataclass(slots=True, kw_only=True)
class ChannelClass:
    """A channel that only points at the object actually implementing Channelable."""

    meta: ObjectMeta
    status: ChannelClassStatus = field(default_factory=ChannelClassStatus)

    def is_ready(self) -> bool:
        ready = find_condition(self.status.conditions, "Ready")
        return ready is not None and ready.is_true()
