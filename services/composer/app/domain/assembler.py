"""Incremental blueprint graph construction."""
from __future__ import annotations

import copy
import enum
import re
from types import MappingProxyType
from typing import Any, Iterable, Mapping

import structlog

from .errors import BlueprintStateError, BlueprintValidationError
from .types import Blueprint, Clause, Connection, ModuleNode, ModuleResolution, Route, RouteFilter, RouterNode, ROUTER_MODULE
from .validator import ValidationReport, validate

logger = structlog.get_logger(__name__)

OPERATOR_WORDS: Mapping[str, str] = MappingProxyType(
    {
        "is": "equal",
        "equals": "equal",
        "contains": "contains",
        "greater": "greater",
        "less": "less",
    }
)
DEFAULT_OPERATOR = "equal"
FALLBACK_ROUTE_FIELD = "status"
FALLBACK_ROUTE_VALUE = "true"
AUXILIARY_KINDS = ("variable", "schedule", "settings", "data_store")

_CONDITION_SPLIT = re.compile(
    r"^(.+?)\s+(" + "|".join(re.escape(word) for word in OPERATOR_WORDS) + r")\s+(.+)$",
    re.IGNORECASE,
)
_COMPARATIVE_FILLER = re.compile(r"^(?:than|to)\s+", re.IGNORECASE)


class AssemblyState(enum.Enum):
    empty = "Empty"
    accumulating = "Accumulating"
    validated = "Validated"
    rejected = "Rejected"


def map_operator(word: str) -> str:
    return OPERATOR_WORDS.get(word.lower(), DEFAULT_OPERATOR)


def routes_from_conditions(conditions: Iterable[Clause | str], field_source: str = "previousModule") -> list[Route]:
    """Turn condition clauses into labelled router routes, in input order.

    A clause shaped like ``<field> <operator-word> <value>`` becomes a filter on
    that field; anything else becomes a filter testing the status field for
    ``"true"``.
    """
    routes: list[Route] = []
    for index, condition in enumerate(conditions, start=1):
        text = (condition.text if isinstance(condition, Clause) else condition).strip()
        label = f"Route {index}"
        match = _CONDITION_SPLIT.match(text)
        if match:
            field_name, operator_word, value = match.groups()
            route_filter = RouteFilter(
                name=label,
                field=f"{{{{{field_source}.{field_name.strip()}}}}}",
                operator=map_operator(operator_word),
                value=_COMPARATIVE_FILLER.sub("", value.strip()),
            )
        else:
            route_filter = RouteFilter(
                name=label,
                field=f"{{{{{field_source}.{FALLBACK_ROUTE_FIELD}}}}}",
                operator=DEFAULT_OPERATOR,
                value=FALLBACK_ROUTE_VALUE,
            )
        routes.append(Route(id=index, label=label, filter=route_filter))
    return routes


class BlueprintAssembler:
    """Accumulates one blueprint; validated exactly once by ``build()``.

    Every appended node is wired from its predecessor, except that a router
    never emits an outgoing auto-connection: the node appended after a router
    starts a new chain unless the caller wires it with ``connect()``.
    """

    def __init__(
        self,
        *,
        layout_spacing: int = 300,
        default_name: str = "Generated Scenario",
        default_description: str = "Created by blueprint composer",
    ) -> None:
        self._layout_spacing = layout_spacing
        self._name = default_name
        self._description = default_description
        self._nodes: list[ModuleNode] = []
        self._connections: list[Connection] = []
        self._variables: list[dict[str, Any]] = []
        self._data_stores: list[dict[str, Any]] = []
        self._scheduling: dict[str, Any] | None = None
        self._settings: dict[str, Any] | None = None
        self._next_id = 1
        self._state = AssemblyState.empty
        self._result: Blueprint | None = None
        self._error: BlueprintValidationError | None = None

    @property
    def state(self) -> AssemblyState:
        return self._state

    @property
    def node_count(self) -> int:
        return len(self._nodes)

    def set_metadata(self, name: str, description: str) -> None:
        self._ensure_mutable()
        self._name = name
        self._description = description

    def append_module(
        self,
        module_type: str,
        version: int,
        parameters: Mapping[str, Any] | None = None,
        *,
        mapper: Mapping[str, Any] | None = None,
    ) -> int:
        self._ensure_mutable()
        node = ModuleNode(
            id=self._allocate_id(),
            module_type=module_type,
            version=version,
            parameters=dict(parameters or {}),
            mapper=dict(mapper) if mapper is not None else None,
        )
        return self._append(node)

    def append_resolution(self, resolution: ModuleResolution) -> int:
        return self.append_module(resolution.module_type, resolution.version, resolution.parameters)

    def append_router(self, routes: Iterable[Route], version: int = 1) -> int:
        self._ensure_mutable()
        route_list = tuple(routes)
        if not route_list:
            raise ValueError("A router requires at least one route")
        node = RouterNode(id=self._allocate_id(), module_type=ROUTER_MODULE, version=version, routes=route_list)
        return self._append(node)

    def append_auxiliary(self, kind: str, data: Mapping[str, Any]) -> None:
        """Record a non-node entity; auxiliaries never consume node ids."""
        self._ensure_mutable()
        if kind == "variable":
            if "name" not in data:
                raise ValueError("A variable requires a name")
            self._variables.append({"name": data["name"], "value": data.get("value")})
        elif kind == "schedule":
            self._scheduling = {"interval": int(data["interval"])}
        elif kind == "settings":
            self._settings = {**(self._settings or {}), **data}
        elif kind == "data_store":
            self._data_stores.append(dict(data))
        else:
            raise ValueError(f"Unknown auxiliary kind '{kind}'; expected one of {', '.join(AUXILIARY_KINDS)}")
        self._touch()

    def connect(self, source: int, target: int, route: Any = None) -> None:
        """Add an explicit connection; endpoints are checked at validation time."""
        self._ensure_mutable()
        self._connections.append(Connection(source=source, target=target, route=route))
        self._touch()

    def decorate(
        self,
        node_id: int,
        *,
        mapper: Mapping[str, Any] | None = None,
        metadata: Mapping[str, Any] | None = None,
    ) -> None:
        self._ensure_mutable()
        node = next((candidate for candidate in self._nodes if candidate.id == node_id), None)
        if node is None:
            raise ValueError(f"Unknown module id {node_id}")
        if mapper is not None:
            node.mapper = {**(node.mapper or {}), **mapper}
        if metadata is not None:
            node.metadata = {**(node.metadata or {}), **metadata}

    def validate(self) -> ValidationReport:
        return validate(self._snapshot())

    def build(self) -> Blueprint:
        if self._state is AssemblyState.validated:
            assert self._result is not None
            return self._result
        if self._state is AssemblyState.rejected:
            assert self._error is not None
            raise self._error

        blueprint = self._snapshot()
        report = validate(blueprint)
        if not report.valid:
            self._state = AssemblyState.rejected
            self._error = BlueprintValidationError(report.errors)
            logger.info("assembler.rejected", name=self._name, errors=report.errors)
            raise self._error

        self._state = AssemblyState.validated
        self._result = blueprint
        return blueprint

    def _allocate_id(self) -> int:
        node_id = self._next_id
        self._next_id += 1
        return node_id

    def _append(self, node: ModuleNode) -> int:
        node.metadata = {"designer": {"x": self._layout_spacing * (node.id - 1), "y": 0}}
        previous = self._nodes[-1] if self._nodes else None
        if previous is not None and not previous.is_router:
            self._connections.append(Connection(source=previous.id, target=node.id))
        self._nodes.append(node)
        self._touch()
        return node.id

    def _touch(self) -> None:
        self._state = AssemblyState.accumulating

    def _ensure_mutable(self) -> None:
        if self._state in (AssemblyState.validated, AssemblyState.rejected):
            raise BlueprintStateError(f"Blueprint is {self._state.value}; no further changes are accepted")

    def _snapshot(self) -> Blueprint:
        return Blueprint(
            name=self._name,
            description=self._description,
            nodes=tuple(copy.deepcopy(self._nodes)),
            connections=tuple(self._connections),
            scheduling=dict(self._scheduling) if self._scheduling is not None else None,
            variables=tuple(copy.deepcopy(self._variables)),
            data_stores=tuple(copy.deepcopy(self._data_stores)),
            settings=copy.deepcopy(self._settings),
        )


__all__ = [
    "AUXILIARY_KINDS",
    "DEFAULT_OPERATOR",
    "OPERATOR_WORDS",
    "AssemblyState",
    "BlueprintAssembler",
    "map_operator",
    "routes_from_conditions",
]
