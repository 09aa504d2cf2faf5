"""JSON merge patch (RFC 7386) creation and application."""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Any


def create_merge_patch(original: Mapping[str, Any], modified: Mapping[str, Any]) -> dict[str, Any]:
    """Return the smallest merge patch turning ``original`` into ``modified``.

    Lists are compared as whole values, as merge patches cannot address list
    items. An empty result means both documents are equal.
    """

    patch: dict[str, Any] = {}
    for key, value in modified.items():
        if key not in original:
            patch[key] = copy.deepcopy(value)
            continue
        current = original[key]
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            nested = create_merge_patch(current, value)
            if nested:
                patch[key] = nested
        elif current != value:
            patch[key] = copy.deepcopy(value)
    for key in original:
        if key not in modified:
            patch[key] = None
    return patch


def apply_merge_patch(target: Any, patch: Any) -> Any:
    """Apply ``patch`` to ``target`` without mutating either."""

    if not isinstance(patch, Mapping):
        return copy.deepcopy(patch)
    result: dict[str, Any] = dict(target) if isinstance(target, Mapping) else {}
    for key, value in patch.items():
        if value is None:
            result.pop(key, None)
        else:
            result[key] = apply_merge_patch(result.get(key), value)
    return result
