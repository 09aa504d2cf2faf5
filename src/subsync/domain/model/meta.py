"""Object identity and references shared by every resource kind."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from datetime import datetime


def split_api_version(api_version: str) -> tuple[str, str]:
    """Split ``group/version`` into its parts; core resources have an empty group."""

    group, _, version = api_version.rpartition("/")
    return group, version


@dataclass(slots=True, kw_only=True)
class ObjectMeta:
    """Namespace-scoped identity plus the bookkeeping needed for finalization."""

    name: str
    namespace: str = ""
    uid: str = ""
    generation: int = 0
    resource_version: str = ""
    deletion_timestamp: datetime | None = None
    finalizers: list[str] = field(default_factory=list)

    @property
    def is_deleting(self) -> bool:
        return self.deletion_timestamp is not None

    def has_finalizer(self, finalizer: str) -> bool:
        return finalizer in self.finalizers

    def add_finalizer(self, finalizer: str) -> None:
        if finalizer not in self.finalizers:
            self.finalizers.append(finalizer)

    def remove_finalizer(self, finalizer: str) -> None:
        self.finalizers = [value for value in self.finalizers if value != finalizer]


@dataclass(slots=True, kw_only=True)
class KReference:
    """Typed reference to another object.

    ``group`` is only meaningful when ``api_version`` is empty; a group resolver
    turns such references into fully versioned ones.
    """

    kind: str
    name: str
    namespace: str = ""
    api_version: str = ""
    group: str = ""

    @property
    def api_group(self) -> str:
        if self.api_version:
            return split_api_version(self.api_version)[0]
        return self.group

    def __str__(self) -> str:
        version = self.api_version or self.group or "?"
        location = f"{self.namespace}/{self.name}" if self.namespace else self.name
        return f"{self.kind}.{version} {location}"


@dataclass(slots=True, frozen=True)
class Resource:
    """Untyped object as returned by the dynamic resource reader."""

    content: dict[str, Any]

    @property
    def api_version(self) -> str:
        return str(self.content.get("apiVersion", ""))

    @property
    def kind(self) -> str:
        return str(self.content.get("kind", ""))

    @property
    def metadata(self) -> dict[str, Any]:
        metadata = self.content.get("metadata")
        return metadata if isinstance(metadata, dict) else {}

    @property
    def name(self) -> str:
        return str(self.metadata.get("name", ""))

    @property
    def namespace(self) -> str:
        return str(self.metadata.get("namespace", ""))

    @property
    def api_group(self) -> str:
        return split_api_version(self.api_version)[0]
