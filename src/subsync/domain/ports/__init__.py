"""Domain port definitions for adapters."""

from __future__ import annotations

from .errors import (
    ChannelableConversionError,
    DestinationResolutionError,
    GroupResolutionError,
    ResourceConflictError,
    ResourceError,
    ResourceNotFoundError,
    TrackingError,
)
from .events import EventRecorder
from .resolving import DestinationResolver, GroupResolver
from .resources import (
    ChannelableCodec,
    ChannelClassReader,
    ResourceBackend,
    ResourcePatcher,
    ResourceReader,
    SubscriptionRepository,
)
from .tracking import Tracker

__all__ = [
    "ChannelClassReader",
    "ChannelableCodec",
    "ChannelableConversionError",
    "DestinationResolutionError",
    "DestinationResolver",
    "EventRecorder",
    "GroupResolutionError",
    "GroupResolver",
    "ResourceBackend",
    "ResourceConflictError",
    "ResourceError",
    "ResourceNotFoundError",
    "ResourcePatcher",
    "ResourceReader",
    "SubscriptionRepository",
    "Tracker",
]
