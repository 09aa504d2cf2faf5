"""HTTP client for a Kubernetes-style resource API server."""

from __future__ import annotations

import asyncio
import json
from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Any, Final

import httpx

from subsync.adapters.http_resilience import ResilienceConfig, ResilientClient
from subsync.config import get_api_config
from subsync.domain.model import (
    CHANNEL_CLASS_API_VERSION,
    CHANNEL_CLASS_KIND,
    SUBSCRIPTION_API_VERSION,
    SUBSCRIPTION_KIND,
    KReference,
    Resource,
    split_api_version,
)
from subsync.domain.ports.errors import (
    ResourceConflictError,
    ResourceError,
    ResourceNotFoundError,
)

from .schema import ApiStatusPayload
from .translator import (
    decode_channel_class,
    decode_subscription,
    encode_subscription_finalizers,
    encode_subscription_status,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from subsync.config import ApiConfig
    from subsync.domain.model import ChannelClass, Subscription
    from subsync.domain.ports import ResourceBackend

log = getLogger(__name__)

MERGE_PATCH_CONTENT_TYPE: Final[str] = "application/merge-patch+json"


def plural_for(kind: str) -> str:
    """Lower-case plural resource name as used in API paths."""

    lowered = kind.lower()
    if lowered.endswith("s"):
        return f"{lowered}es"
    if lowered.endswith("y") and lowered[-2:-1] not in "aeiou":
        return f"{lowered[:-1]}ies"
    return f"{lowered}s"


def resource_path(ref: KReference, namespace: str) -> str:
    if not ref.api_version:
        raise ResourceError(f"Reference {ref} has no apiVersion to address it with")
    group, version = split_api_version(ref.api_version)
    prefix = f"/apis/{group}/{version}" if group else f"/api/{version}"
    return f"{prefix}/namespaces/{ref.namespace or namespace}/{plural_for(ref.kind)}/{ref.name}"


def _default_client_factory(config: ResilienceConfig) -> ResilientClient:
    return ResilientClient(config)


@dataclass(slots=True)
class ApiResourceClient:
    """Reader, patcher and subscription repository talking to the API server.

    Each call opens its own client and runs to completion, mirroring the
    synchronous ports the reconciler is written against.
    """

    config: ApiConfig = field(default_factory=get_api_config)
    client_factory: Callable[[ResilienceConfig], ResilientClient] = field(
        default=_default_client_factory
    )

    def get(self, ref: KReference, namespace: str) -> Resource:
        return asyncio.run(self._get_async(ref, namespace))

    def patch(self, ref: KReference, namespace: str, patch: bytes) -> Resource:
        return asyncio.run(self._patch_async(ref, namespace, patch))

    def get_channel_class(self, namespace: str, name: str) -> ChannelClass:
        ref = KReference(
            kind=CHANNEL_CLASS_KIND,
            name=name,
            namespace=namespace,
            api_version=CHANNEL_CLASS_API_VERSION,
        )
        return decode_channel_class(self.get(ref, namespace).content)

    def get_subscription(self, namespace: str, name: str) -> Subscription:
        ref = KReference(
            kind=SUBSCRIPTION_KIND,
            name=name,
            namespace=namespace,
            api_version=SUBSCRIPTION_API_VERSION,
        )
        return decode_subscription(self.get(ref, namespace).content)

    def update_subscription(self, subscription: Subscription) -> None:
        asyncio.run(self._update_subscription_async(subscription))

    async def _get_async(self, ref: KReference, namespace: str) -> Resource:
        async with self.client_factory(self.config.resilience) as client:
            return await self._request(client, "GET", ref, namespace)

    async def _patch_async(self, ref: KReference, namespace: str, patch: bytes) -> Resource:
        async with self.client_factory(self.config.resilience) as client:
            return await self._request(client, "PATCH", ref, namespace, body=patch)

    async def _update_subscription_async(self, subscription: Subscription) -> None:
        ref = subscription.reference()
        namespace = subscription.namespace
        status_patch: dict[str, Any] = {"status": encode_subscription_status(subscription)}
        if subscription.meta.resource_version:
            status_patch["metadata"] = {"resourceVersion": subscription.meta.resource_version}
        async with self.client_factory(self.config.resilience) as client:
            updated = await self._request(
                client,
                "PATCH",
                ref,
                namespace,
                body=json.dumps(status_patch).encode(),
                subresource="status",
            )
            finalizer_patch = encode_subscription_finalizers(subscription)
            finalizer_patch["metadata"]["resourceVersion"] = updated.metadata.get(
                "resourceVersion", ""
            )
            await self._request(
                client, "PATCH", ref, namespace, body=json.dumps(finalizer_patch).encode()
            )

    async def _request(
        self,
        client: ResilientClient,
        method: str,
        ref: KReference,
        namespace: str,
        *,
        body: bytes | None = None,
        subresource: str | None = None,
    ) -> Resource:
        path = resource_path(ref, namespace)
        if subresource:
            path = f"{path}/{subresource}"
        url = f"{self.config.base_url}{path}"
        headers = {"Content-Type": MERGE_PATCH_CONTENT_TYPE} if body is not None else None
        try:
            response = await client.request(method, url, content=body, headers=headers)
        except httpx.HTTPError as exc:
            log.error("%s %s failed: %s", method, path, exc)
            raise ResourceError(f"{method} {path} failed: {exc}") from exc

        _raise_for_status(response, ref, namespace)
        payload = response.json()
        if not isinstance(payload, dict):
            raise ResourceError(f"Unexpected payload for {method} {path}")
        return Resource(content=payload)


def _raise_for_status(response: httpx.Response, ref: KReference, namespace: str) -> None:
    if response.is_success:
        return
    message = _error_message(response)
    if response.status_code == httpx.codes.NOT_FOUND:
        raise ResourceNotFoundError(ref.kind, ref.namespace or namespace, ref.name)
    if response.status_code == httpx.codes.CONFLICT:
        raise ResourceConflictError(message)
    log.error("API server returned %s for %s: %s", response.status_code, ref, message)
    raise ResourceError(f"API server returned {response.status_code}: {message}")


def _error_message(response: httpx.Response) -> str:
    try:
        payload: Any = response.json()
        return ApiStatusPayload.model_validate(payload).message or response.reason_phrase
    except ValueError:
        return response.text or response.reason_phrase


if TYPE_CHECKING:
    _backend_check: ResourceBackend = ApiResourceClient()
