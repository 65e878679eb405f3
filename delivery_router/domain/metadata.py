"""Pruning for passthrough log metadata.

Callers may hand over metadata trees that mark a field as "not provided"
with `UNSET`. Those markers must never reach the delivery log, while an
explicit `None` ("no image for this send") must survive.
"""

from __future__ import annotations

from typing import Any, Mapping


class _Unset:
    _instance: "_Unset | None" = None

    def __new__(cls) -> "_Unset":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False


UNSET: Any = _Unset()


def prune_unset(value: Any) -> Any:
    """Recursively drop `UNSET` keys and sequence or set items, keeping `None`.

    Sets come back as lists so the result stays JSON-compatible.
    """
    if isinstance(value, Mapping):
        return {
            str(key): prune_unset(item)
            for key, item in value.items()
            if item is not UNSET
        }
    if isinstance(value, (list, tuple, set, frozenset)):
        return [prune_unset(item) for item in value if item is not UNSET]
    return value
