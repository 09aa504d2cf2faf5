"""Resource API server configuration values."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Final

from .env import get_env_flag, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig

API_TIMEOUT_SECONDS: Final[float] = 10.0


@dataclass(frozen=True)
class ApiConfig:
    """Holds the API server location, credentials and client resilience."""

    base_url: str
    resilience: ResilienceConfig
    token: str | None = None


def get_api_config(*, resilience: ResilienceConfig | None = None) -> ApiConfig:
    values = require_env_vars(("SUBSYNC_API_URL",))
    base_url = values["SUBSYNC_API_URL"].rstrip("/")
    token = (os.getenv("SUBSYNC_API_TOKEN") or "").strip() or None
    headers = {"Authorization": f"Bearer {token}"} if token else None
    ca_bundle = (os.getenv("SUBSYNC_API_CA_BUNDLE") or "").strip()
    verify: bool | str = ca_bundle or not get_env_flag("SUBSYNC_API_INSECURE")
    return ApiConfig(
        base_url=base_url,
        token=token,
        resilience=resilience
        or ResilienceConfig(
            name="api",
            base_url=base_url,
            timeout_seconds=API_TIMEOUT_SECONDS,
            ratelimit=RateLimit(max_calls=20, per_seconds=1.0),
            default_headers=headers,
            verify=verify,
        ),
    )
