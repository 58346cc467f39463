"""Helpers for the answer state held per form session."""

from __future__ import annotations

import copy
from typing import Any, Mapping


def merge(state: Mapping[str, Any], update: Mapping[str, Any]) -> dict[str, Any]:
    """Deep merge ``update`` into a copy of ``state``.

    Nested mappings merge key by key; lists and scalars replace wholesale.
    """
    merged = copy.deepcopy(dict(state))
    for key, value in update.items():
        current = merged.get(key)
        if isinstance(current, Mapping) and isinstance(value, Mapping):
            merged[key] = merge(current, value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


__all__ = ["merge"]
