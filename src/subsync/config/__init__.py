"""Application configuration helpers."""

from __future__ import annotations

from .api import ApiConfig, get_api_config
from .env import get_env_flag, parse_key_values, require_env_var, require_env_vars
from .errors import ConfigurationError, MissingConfigurationError
from .features import FeatureFlags, get_feature_flags
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy
from .logging import configure_logging
from .resolver import ResolverConfig, get_resolver_config
from .storage import DatabaseConfig, StorageConfig, get_database_config, get_storage_config

__all__ = [
    "ApiConfig",
    "ConfigurationError",
    "DatabaseConfig",
    "FeatureFlags",
    "MissingConfigurationError",
    "RateLimit",
    "ResilienceConfig",
    "ResolverConfig",
    "RetryPolicy",
    "StorageConfig",
    "configure_logging",
    "get_api_config",
    "get_database_config",
    "get_env_flag",
    "get_feature_flags",
    "get_resolver_config",
    "get_storage_config",
    "parse_key_values",
    "require_env_var",
    "require_env_vars",
]
