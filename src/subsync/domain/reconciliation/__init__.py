"""Reconciliation core keeping a subscription and its channel in sync.

Layered flow of one pass:
1) locate the channel, following a channel-class pointer at most once
2) resolve subscriber, reply and dead-letter sink into status URIs
3) patch the subscription's entry into the channel's subscriber list
4) fold the channel's report for this subscription into its conditions
"""

from __future__ import annotations

from .delivery import merge_delivery_policy
from .destinations import DestinationResolutionEngine
from .engine import SubscriptionReconciler
from .errors import (
    ChannelReferenceError,
    ChannelStatusError,
    ChannelSyncError,
    DestinationResolveError,
    ReconcileError,
    TrackerError,
)
from .events import EventType, Reason, ReconcileEvent
from .locate import ChannelLocator
from .patch import apply_merge_patch, create_merge_patch
from .status import aggregate_channel_status
from .sync import ChannelSyncEngine

__all__ = [
    "ChannelLocator",
    "ChannelReferenceError",
    "ChannelStatusError",
    "ChannelSyncEngine",
    "ChannelSyncError",
    "DestinationResolutionEngine",
    "DestinationResolveError",
    "EventType",
    "Reason",
    "ReconcileError",
    "ReconcileEvent",
    "SubscriptionReconciler",
    "TrackerError",
    "aggregate_channel_status",
    "apply_merge_patch",
    "create_merge_patch",
    "merge_delivery_policy",
]
