"""Composition reporting helpers."""
from __future__ import annotations

from collections import Counter
from typing import Iterable

from .placeholders import collect_placeholders
from .types import Blueprint, ModuleResolution


def build_composition_report(
    blueprint_id: str,
    blueprint: Blueprint,
    resolutions: Iterable[ModuleResolution],
    catalog_version: str,
    wall_time_ms: int = 0,
) -> dict:
    resolutions = list(resolutions)
    services = Counter(node.module_type.split(".", 1)[0] for node in blueprint.nodes)
    routers = [node for node in blueprint.nodes if node.is_router]
    chain_heads = {node.id for node in blueprint.nodes} - {connection.target for connection in blueprint.connections}
    return {
        "blueprintId": blueprint_id,
        "summary": {
            "modules": len(blueprint.nodes),
            "modulesByService": dict(services),
            "connections": len(blueprint.connections),
            "routers": len(routers),
            "routes": sum(len(router.routes) for router in routers),
            "chains": len(chain_heads),
            "scheduled": blueprint.scheduling is not None,
            "runtimeMs": wall_time_ms,
        },
        "fallbacks": [
            {"module": resolution.module_type, "service": resolution.service}
            for resolution in resolutions
            if resolution.fallback
        ],
        "placeholders": collect_placeholders(blueprint),
        "catalog": {"version": catalog_version},
    }


__all__ = ["build_composition_report"]
