"""
Tolerant traversal helpers for the OPS JSON envelope.

OPS renders XML as JSON: text nodes become ``{"$": "text", "@attr": ...}`` and
any repeatable element may arrive either as a single object or as a list.
These helpers absorb both quirks so normalizers never index blindly.
"""

from __future__ import annotations

from typing import Any, List, Mapping

TEXT_KEY = "$"


def get_path(data: Any, *keys: Any, default: Any = None) -> Any:
    """
    Follow `keys` into nested mappings/lists, returning `default` on any gap.

    String keys index mappings; when a list is met where a mapping is
    expected, its first element is used. Integer keys index lists. A missing
    key, a wrong container type or a final `None` all yield `default`.
    """
    current = data
    for key in keys:
        if isinstance(key, int):
            if isinstance(current, list) and -len(current) <= key < len(current):
                current = current[key]
                continue
            return default

        if isinstance(current, list):
            current = current[0] if current else None
        if isinstance(current, Mapping) and key in current:
            current = current[key]
        else:
            return default
    return default if current is None else current


def as_list(value: Any) -> List[Any]:
    """Normalize a scalar-or-sequence value to a list (`None` gives `[]`)."""
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def first(value: Any, default: Any = None) -> Any:
    """First element of `as_list(value)`, or `default` when empty."""
    items = as_list(value)
    return items[0] if items else default


def text_of(node: Any) -> str:
    """Extract the text value of an OPS node; anything else gives ``""``."""
    if isinstance(node, bool):
        return ""
    if isinstance(node, str):
        return node
    if isinstance(node, (int, float)):
        return str(node)
    if isinstance(node, Mapping):
        return text_of(node.get(TEXT_KEY))
    return ""


def text_at(data: Any, *keys: Any) -> str:
    """Text value at `keys`, using the first element when a list is found."""
    return text_of(first(get_path(data, *keys)))
