"""Feature flags passed explicitly into the reconciliation stages."""

from __future__ import annotations

from dataclasses import dataclass

from .env import get_env_flag

KREFERENCE_GROUP_ENV = "SUBSYNC_FEATURE_KREFERENCE_GROUP"


@dataclass(frozen=True, slots=True)
class FeatureFlags:
    kreference_group: bool = False
    """Allow group-only references (``group`` without ``apiVersion``)."""


def get_feature_flags() -> FeatureFlags:
    return FeatureFlags(kreference_group=get_env_flag(KREFERENCE_GROUP_ENV))
