"""Destinations: a reference, a URI, both (URI relative to the ref), or nothing."""

from __future__ import annotations

from dataclasses import dataclass, replace

from .meta import KReference


@dataclass(slots=True, kw_only=True)
class Destination:
    ref: KReference | None = None
    uri: str | None = None

    def is_empty(self) -> bool:
        return self.ref is None and self.uri is None

    def with_defaults(self, namespace: str) -> Destination:
        """Return a copy whose reference falls back to ``namespace``."""

        if self.ref is None:
            return replace(self)
        ref = replace(self.ref, namespace=self.ref.namespace or namespace)
        return replace(self, ref=ref)


def is_nil_or_empty(destination: Destination | None) -> bool:
    return destination is None or destination.is_empty()
