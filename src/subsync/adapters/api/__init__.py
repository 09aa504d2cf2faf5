"""Public interface for the resource API adapter."""

from __future__ import annotations

from .client import ApiResourceClient, plural_for, resource_path
from .schema import ChannelablePayload, SubscriptionPayload
from .translator import (
    ApiChannelableCodec,
    address_url,
    decode_channel_class,
    decode_channelable,
    decode_subscription,
    encode_channelable,
    encode_subscription_status,
)

__all__ = [
    "ApiChannelableCodec",
    "ApiResourceClient",
    "ChannelablePayload",
    "SubscriptionPayload",
    "address_url",
    "decode_channel_class",
    "decode_channelable",
    "decode_subscription",
    "encode_channelable",
    "encode_subscription_status",
    "plural_for",
    "resource_path",
]
