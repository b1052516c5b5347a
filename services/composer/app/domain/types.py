"""Domain-level dataclasses for composing blueprints."""
from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Any, Mapping

BLUEPRINT_SCHEMA_VERSION = 2
ROUTER_MODULE = "flow.router"


class ClauseKind(enum.Enum):
    trigger = "trigger"
    action = "action"
    condition = "condition"


@dataclass(frozen=True)
class Clause:
    kind: ClauseKind
    text: str
    service: str | None = None


@dataclass(frozen=True)
class Schedule:
    interval: int


@dataclass
class ExtractionResult:
    trigger: Clause | None
    actions: list[Clause]
    conditions: list[Clause]
    schedule: Schedule | None = None
    is_blank: bool = False


@dataclass(frozen=True)
class ModuleResolution:
    """Outcome of mapping one clause onto a catalog module."""

    module_type: str
    version: int
    parameters: dict[str, Any]
    service: str | None = None
    fallback: bool = False


@dataclass(frozen=True)
class RouteFilter:
    name: str
    field: str
    operator: str
    value: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "conditions": [[{"a": self.field, "b": self.value, "o": self.operator}]],
        }


@dataclass(frozen=True)
class Route:
    id: int
    label: str
    filter: RouteFilter

    def to_dict(self) -> dict[str, Any]:
        return {"id": self.id, "label": self.label, "filter": self.filter.to_dict()}


@dataclass
class ModuleNode:
    id: int
    module_type: str
    version: int
    parameters: dict[str, Any] = field(default_factory=dict)
    mapper: dict[str, Any] | None = None
    metadata: dict[str, Any] | None = None

    @property
    def is_router(self) -> bool:
        return False

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "id": self.id,
            "module": self.module_type,
            "version": self.version,
            "parameters": self.parameters,
        }
        if self.mapper is not None:
            payload["mapper"] = self.mapper
        if self.metadata is not None:
            payload["metadata"] = self.metadata
        return payload


@dataclass
class RouterNode(ModuleNode):
    """Branch point: carries ordered routes instead of a parameter object."""

    routes: tuple[Route, ...] = ()

    @property
    def is_router(self) -> bool:
        return True

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        payload["routes"] = [route.to_dict() for route in self.routes]
        return payload


@dataclass(frozen=True)
class Connection:
    source: int
    target: int
    route: Any = None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"source": self.source, "target": self.target}
        if self.route is not None:
            payload["route"] = self.route
        return payload


@dataclass(frozen=True)
class Blueprint:
    name: str
    description: str
    nodes: tuple[ModuleNode, ...]
    connections: tuple[Connection, ...]
    version: int = BLUEPRINT_SCHEMA_VERSION
    scheduling: dict[str, Any] | None = None
    variables: tuple[dict[str, Any], ...] = ()
    data_stores: tuple[dict[str, Any], ...] = ()
    settings: dict[str, Any] | None = None

    @property
    def module_ids(self) -> list[int]:
        return [node.id for node in self.nodes]

    def node(self, node_id: int) -> ModuleNode | None:
        for candidate in self.nodes:
            if candidate.id == node_id:
                return candidate
        return None

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "metadata": {"version": self.version, "name": self.name, "description": self.description},
        }
        if self.scheduling is not None:
            payload["scheduling"] = dict(self.scheduling)
        payload["modules"] = [node.to_dict() for node in self.nodes]
        payload["connections"] = [connection.to_dict() for connection in self.connections]
        if self.variables:
            payload["variables"] = list(self.variables)
        if self.data_stores:
            payload["dataStores"] = list(self.data_stores)
        if self.settings is not None:
            payload["settings"] = dict(self.settings)
        return payload

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Blueprint":
        """Parse the canonical JSON shape.

        Connections must use flat integer endpoints; nested ``{"moduleId": n}``
        endpoints are rejected with ``ValueError``.
        """
        metadata = payload.get("metadata") or {}
        nodes = tuple(_node_from_dict(raw) for raw in payload.get("modules", []))
        connections = tuple(_connection_from_dict(raw) for raw in payload.get("connections", []))
        return cls(
            name=metadata.get("name", ""),
            description=metadata.get("description", ""),
            nodes=nodes,
            connections=connections,
            version=metadata.get("version", BLUEPRINT_SCHEMA_VERSION),
            scheduling=payload.get("scheduling"),
            variables=tuple(payload.get("variables", [])),
            data_stores=tuple(payload.get("dataStores", [])),
            settings=payload.get("settings"),
        )


def _require_int(value: Any, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{what} must be an integer module id (got {value!r})")
    return value


def _node_from_dict(raw: Mapping[str, Any]) -> ModuleNode:
    node_id = _require_int(raw.get("id"), "module id")
    common = {
        "id": node_id,
        "module_type": raw.get("module", ""),
        "version": raw.get("version", 1),
        "parameters": dict(raw.get("parameters") or {}),
        "mapper": raw.get("mapper"),
        "metadata": raw.get("metadata"),
    }
    if "routes" not in raw:
        return ModuleNode(**common)
    if not isinstance(raw["routes"], list):
        raise ValueError("router routes must be a list")
    routes = []
    for index, route in enumerate(raw["routes"], start=1):
        if not isinstance(route, Mapping):
            raise ValueError("each route must be an object")
        route_filter = route.get("filter") or {}
        if not isinstance(route_filter, Mapping):
            raise ValueError("route filter must be an object")
        conditions = route_filter.get("conditions") or [[{}]]
        if not isinstance(conditions, list) or not all(isinstance(group, list) for group in conditions):
            raise ValueError("route filter conditions must be a list of lists")
        first = conditions[0][0] if conditions and conditions[0] else {}
        if not isinstance(first, Mapping):
            raise ValueError("route filter condition must be an object")
        label = route.get("label") or route.get("name") or f"Route {index}"
        routes.append(
            Route(
                id=route.get("id", index),
                label=label,
                filter=RouteFilter(
                    name=route_filter.get("name", label),
                    field=str(first.get("a", "")),
                    operator=str(first.get("o", "equal")),
                    value=str(first.get("b", "")),
                ),
            )
        )
    return RouterNode(**common, routes=tuple(routes))


def _connection_from_dict(raw: Mapping[str, Any]) -> Connection:
    return Connection(
        source=_require_int(raw.get("source"), "connection source"),
        target=_require_int(raw.get("target"), "connection target"),
        route=raw.get("route"),
    )


__all__ = [
    "BLUEPRINT_SCHEMA_VERSION",
    "ROUTER_MODULE",
    "Blueprint",
    "Clause",
    "ClauseKind",
    "Connection",
    "ExtractionResult",
    "ModuleNode",
    "ModuleResolution",
    "Route",
    "RouteFilter",
    "RouterNode",
    "Schedule",
]
