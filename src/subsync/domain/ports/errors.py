"""Errors raised by port implementations."""

from __future__ import annotations


class ResourceError(RuntimeError):
    """Raised when a resource cannot be read or written."""


class ResourceNotFoundError(ResourceError):
    """Raised when the referenced resource does not exist."""

    def __init__(self, kind: str, namespace: str, name: str) -> None:
        location = f"{namespace}/{name}" if namespace else name
        super().__init__(f"{kind} {location!r} not found")
        self.kind = kind
        self.namespace = namespace
        self.name = name


class ResourceConflictError(ResourceError):
    """Raised when a write raced a concurrent change to the same resource."""


class TrackingError(RuntimeError):
    """Raised when a dependency cannot be registered with the tracker."""


class DestinationResolutionError(RuntimeError):
    """Raised when a destination cannot be turned into an absolute URI."""


class GroupResolutionError(RuntimeError):
    """Raised when a group-only reference cannot be given an API version."""


class ChannelableConversionError(ValueError):
    """Raised when an object does not expose the Channelable capability."""
