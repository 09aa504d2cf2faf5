"""Turn destinations into URIs by looking at the objects they reference."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from logging import getLogger
from typing import TYPE_CHECKING

import httpx

from subsync.adapters.api.translator import address_url
from subsync.config.resolver import DEFAULT_CLUSTER_DOMAIN, DEFAULT_GROUP_VERSIONS
from subsync.domain.ports.errors import (
    DestinationResolutionError,
    GroupResolutionError,
    ResourceError,
    TrackingError,
)

if TYPE_CHECKING:
    from collections.abc import Mapping

    from subsync.domain.model import Destination, KReference, Subscription
    from subsync.domain.ports import GroupResolver, ResourceReader, Tracker

log = getLogger(__name__)


def _is_absolute(uri: str) -> bool:
    try:
        parsed = httpx.URL(uri)
    except httpx.InvalidURL:
        return False
    return parsed.is_absolute_url and bool(parsed.host)


@dataclass(slots=True)
class AddressableDestinationResolver:
    """Resolve references through ``status.address.url`` of the referenced object.

    Core ``Service`` objects have no status address; they resolve to their
    cluster-local host name instead. A URI next to a reference is resolved
    relative to the reference's address.
    """

    reader: ResourceReader
    tracker: Tracker | None = None
    cluster_domain: str = DEFAULT_CLUSTER_DOMAIN

    def resolve(self, destination: Destination, parent: Subscription) -> str:
        ref = destination.ref
        if ref is None:
            if destination.uri is None:
                raise DestinationResolutionError("destination has neither ref nor uri")
            if not _is_absolute(destination.uri):
                raise DestinationResolutionError(
                    f"URI is not absolute (both scheme and host should be non-empty): "
                    f"{destination.uri!r}"
                )
            return destination.uri

        base = self._address_of(ref, parent)
        if destination.uri is None:
            return base
        try:
            resolved = str(httpx.URL(base).join(destination.uri))
        except httpx.InvalidURL as exc:
            raise DestinationResolutionError(
                f"cannot join {destination.uri!r} onto {base!r}: {exc}"
            ) from exc
        log.debug("Joined %s onto %s: %s", destination.uri, base, resolved)
        return resolved

    def _address_of(self, ref: KReference, parent: Subscription) -> str:
        namespace = ref.namespace or parent.namespace
        if self.tracker is not None:
            try:
                self.tracker.track(ref, namespace, parent.reference())
            except TrackingError as exc:
                raise DestinationResolutionError(f"failed to track {ref}: {exc}") from exc

        try:
            resource = self.reader.get(ref, namespace)
        except ResourceError as exc:
            raise DestinationResolutionError(
                f"failed to get object {namespace}/{ref.name}: {exc}"
            ) from exc

        if ref.kind == "Service" and not ref.api_group:
            return f"http://{ref.name}.{namespace}.svc.{self.cluster_domain}"

        url = address_url(resource.content)
        if url is None:
            raise DestinationResolutionError(f"address not set for {ref}")
        if not _is_absolute(url):
            raise DestinationResolutionError(f"address of {ref} is not absolute: {url!r}")
        return url


@dataclass(slots=True)
class StaticGroupResolver:
    """Complete group-only references from a fixed ``group -> version`` table."""

    group_versions: Mapping[str, str] = field(default_factory=lambda: dict(DEFAULT_GROUP_VERSIONS))

    def resolve_group(self, ref: KReference) -> KReference:
        if ref.api_version:
            return ref
        if not ref.group:
            raise GroupResolutionError(f"{ref} has neither apiVersion nor group")
        version = self.group_versions.get(ref.group)
        if version is None:
            raise GroupResolutionError(f"no served version known for group {ref.group!r}")
        return replace(ref, api_version=f"{ref.group}/{version}")


if TYPE_CHECKING:
    _group_check: GroupResolver = StaticGroupResolver()
