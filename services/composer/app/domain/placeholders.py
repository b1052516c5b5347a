"""Placeholder token discovery."""
from __future__ import annotations

import re
from typing import Any, Iterable

from .types import Blueprint

_TOKEN = re.compile(r"\{\{\s*([^{}]+?)\s*\}\}")


def _walk(value: Any) -> Iterable[str]:
    if isinstance(value, str):
        yield from _TOKEN.findall(value)
    elif isinstance(value, dict):
        for item in value.values():
            yield from _walk(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from _walk(item)


def collect_placeholders(blueprint: Blueprint) -> list[str]:
    """Return the sorted, distinct ``{{path}}`` tokens left in module parameters and route filters."""
    tokens: set[str] = set()
    for node in blueprint.nodes:
        payload = node.to_dict()
        for key in ("parameters", "mapper", "routes"):
            tokens.update(_walk(payload.get(key)))
    return sorted(tokens)


__all__ = ["collect_placeholders"]
