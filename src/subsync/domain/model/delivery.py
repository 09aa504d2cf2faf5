"""Delivery settings as declared by users and as published to channels."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .destination import Destination


class BackoffPolicy(StrEnum):
    LINEAR = "linear"
    EXPONENTIAL = "exponential"


@dataclass(slots=True, kw_only=True)
class DeliverySpec:
    """Declared delivery options; the dead-letter sink is still a raw destination."""

    dead_letter_sink: Destination | None = None
    retry: int | None = None
    backoff_policy: BackoffPolicy | None = None
    backoff_delay: str | None = None
    timeout: str | None = None
    retry_after_max: str | None = None

    def sets_retry(self) -> bool:
        """Whether any retry-related field is declared."""

        return any(
            value is not None
            for value in (
                self.retry,
                self.backoff_policy,
                self.backoff_delay,
                self.timeout,
                self.retry_after_max,
            )
        )


@dataclass(slots=True, kw_only=True)
class DeliveryPolicy:
    """Resolved delivery options written on a channel's subscriber entry."""

    dead_letter_sink_uri: str | None = None
    retry: int | None = None
    backoff_policy: BackoffPolicy | None = None
    backoff_delay: str | None = None
    timeout: str | None = None
    retry_after_max: str | None = None

    def copy_retry_from(self, spec: DeliverySpec) -> None:
        self.retry = spec.retry
        self.backoff_policy = spec.backoff_policy
        self.backoff_delay = spec.backoff_delay
        self.timeout = spec.timeout
        self.retry_after_max = spec.retry_after_max
