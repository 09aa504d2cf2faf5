"""Destination and group resolution settings."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Final

from .env import parse_key_values

DEFAULT_CLUSTER_DOMAIN: Final[str] = "cluster.local"
DEFAULT_GROUP_VERSIONS: Final[dict[str, str]] = {
    "messaging.knative.dev": "v1",
    "eventing.knative.dev": "v1",
    "serving.knative.dev": "v1",
    "sources.knative.dev": "v1",
}


@dataclass(frozen=True, slots=True)
class ResolverConfig:
    cluster_domain: str = DEFAULT_CLUSTER_DOMAIN
    group_versions: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_GROUP_VERSIONS))


def get_resolver_config() -> ResolverConfig:
    cluster_domain = (os.getenv("SUBSYNC_CLUSTER_DOMAIN") or "").strip() or DEFAULT_CLUSTER_DOMAIN
    group_versions = dict(DEFAULT_GROUP_VERSIONS)
    raw_versions = os.getenv("SUBSYNC_GROUP_VERSIONS")
    if raw_versions:
        group_versions.update(parse_key_values("SUBSYNC_GROUP_VERSIONS", raw_versions))
    return ResolverConfig(cluster_domain=cluster_domain, group_versions=group_versions)
