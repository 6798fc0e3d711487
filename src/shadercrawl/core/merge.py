"""Deep merge used to layer configuration sources.

Mappings merge key by key; any other value, lists included, is replaced by
the overriding layer.
"""
from __future__ import annotations

from typing import Any, Dict, Optional


def deep_merge(base: Dict[str, Any], override: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Return ``base`` updated recursively with ``override``; inputs are untouched.

    Example:
        >>> deep_merge({"crawler": {"max_depth": 32}}, {"crawler": {"pragma_once": True}})
        {'crawler': {'max_depth': 32, 'pragma_once': True}}
    """
    merged: Dict[str, Any] = dict(base)
    for key, value in (override or {}).items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        elif isinstance(value, list):
            merged[key] = list(value)
        else:
            merged[key] = value
    return merged


__all__ = ["deep_merge"]
