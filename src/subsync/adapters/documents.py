"""Bookkeeping shared by the stores that hold resources as plain documents.

Documents are keyed by API group rather than version, so a reference using
any served version reaches the same object. Every write bumps
``metadata.resourceVersion``; a write carrying a stale one is rejected.
"""

from __future__ import annotations

import copy
import json
import uuid
from typing import TYPE_CHECKING, Any

from subsync.adapters.api.translator import (
    encode_subscription_finalizers,
    encode_subscription_status,
)
from subsync.domain.model import Resource
from subsync.domain.ports.errors import ResourceConflictError, ResourceError
from subsync.domain.reconciliation import apply_merge_patch

if TYPE_CHECKING:
    from collections.abc import Mapping
    from datetime import datetime

    from subsync.domain.model import KReference, Subscription

type DocumentKey = tuple[str, str, str, str]


def document_key(content: Mapping[str, Any]) -> DocumentKey:
    resource = Resource(content=dict(content))
    if not resource.kind or not resource.name:
        raise ResourceError("Resource documents need a kind and metadata.name")
    return (resource.api_group, resource.kind, resource.namespace, resource.name)


def reference_key(ref: KReference, namespace: str) -> DocumentKey:
    return (ref.api_group, ref.kind, ref.namespace or namespace, ref.name)


def prepare_new(content: Mapping[str, Any]) -> dict[str, Any]:
    """Fill in the server-assigned metadata of a freshly created document."""

    document = copy.deepcopy(dict(content))
    metadata = document.setdefault("metadata", {})
    metadata.setdefault("uid", str(uuid.uuid4()))
    metadata.setdefault("generation", 1)
    metadata["resourceVersion"] = "1"
    return document


def replace_existing(current: Mapping[str, Any], content: Mapping[str, Any]) -> dict[str, Any]:
    """Overwrite a stored document with ``content`` while keeping its identity."""

    document = copy.deepcopy(dict(content))
    metadata = document.setdefault("metadata", {})
    previous = current.get("metadata", {})
    metadata["uid"] = previous.get("uid") or metadata.get("uid") or str(uuid.uuid4())
    generation = int(previous.get("generation", 1))
    if document.get("spec") != current.get("spec"):
        generation += 1
    metadata["generation"] = generation
    if "status" not in document and "status" in current:
        document["status"] = copy.deepcopy(current["status"])
    _bump_resource_version(document, current)
    return document


def apply_patch(current: Mapping[str, Any], patch: bytes) -> dict[str, Any]:
    """Apply a JSON merge patch, honouring a ``resourceVersion`` precondition."""

    try:
        decoded = json.loads(patch)
    except ValueError as exc:
        raise ResourceError(f"Invalid merge patch: {exc}") from exc
    if not isinstance(decoded, dict):
        raise ResourceError("Merge patch must be a JSON object")

    metadata_patch = decoded.get("metadata")
    if isinstance(metadata_patch, dict) and "resourceVersion" in metadata_patch:
        expected = metadata_patch.pop("resourceVersion")
        _check_resource_version(current, expected)
        if not metadata_patch:
            decoded.pop("metadata")

    document = apply_merge_patch(current, decoded)
    if document.get("spec") != current.get("spec"):
        metadata = document.setdefault("metadata", {})
        metadata["generation"] = int(metadata.get("generation", 1)) + 1
    _bump_resource_version(document, current)
    return document


def apply_subscription_update(
    current: Mapping[str, Any], subscription: Subscription
) -> dict[str, Any] | None:
    """Write status and finalizers back; ``None`` means the document is gone."""

    finalizers = encode_subscription_finalizers(subscription)
    _check_resource_version(current, finalizers["metadata"]["resourceVersion"])

    document = copy.deepcopy(dict(current))
    document["status"] = encode_subscription_status(subscription)
    metadata = document.setdefault("metadata", {})
    metadata["finalizers"] = finalizers["metadata"]["finalizers"]
    if metadata.get("deletionTimestamp") and not metadata["finalizers"]:
        return None
    _bump_resource_version(document, current)
    return document


def mark_deleted(current: Mapping[str, Any], when: datetime) -> dict[str, Any] | None:
    """Tombstone a document that still has finalizers; ``None`` means delete now."""

    metadata = current.get("metadata", {})
    if not metadata.get("finalizers"):
        return None
    document = copy.deepcopy(dict(current))
    document["metadata"].setdefault("deletionTimestamp", when.isoformat())
    _bump_resource_version(document, current)
    return document


def _check_resource_version(current: Mapping[str, Any], expected: object) -> None:
    actual = str(current.get("metadata", {}).get("resourceVersion", ""))
    if expected and str(expected) != actual:
        raise ResourceConflictError(
            f"resourceVersion {expected!r} is stale, the object is at {actual!r}"
        )


def _bump_resource_version(document: dict[str, Any], current: Mapping[str, Any]) -> None:
    previous = str(current.get("metadata", {}).get("resourceVersion", "0"))
    version = int(previous) if previous.isdigit() else 0
    document.setdefault("metadata", {})["resourceVersion"] = str(version + 1)
