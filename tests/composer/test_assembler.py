import pytest

from services.composer.app.domain.assembler import (
    DEFAULT_OPERATOR,
    AssemblyState,
    BlueprintAssembler,
    map_operator,
    routes_from_conditions,
)
from services.composer.app.domain.errors import BlueprintStateError, BlueprintValidationError
from services.composer.app.domain.types import Connection, RouterNode


def _linear(count: int) -> BlueprintAssembler:
    assembler = BlueprintAssembler()
    for _ in range(count):
        assembler.append_module("http.makeRequest", 3, {"url": "https://example.com"})
    return assembler


def test_ids_are_sequential_and_chained():
    blueprint = _linear(3).build()
    assert blueprint.module_ids == [1, 2, 3]
    assert [(c.source, c.target) for c in blueprint.connections] == [(1, 2), (2, 3)]
    assert blueprint.nodes[2].metadata == {"designer": {"x": 600, "y": 0}}


def test_router_does_not_chain_to_successor():
    assembler = BlueprintAssembler()
    assembler.append_module("webhook.customWebhook", 1)
    router_id = assembler.append_router(routes_from_conditions(["status is approved"]))
    after = assembler.append_module("slack.postMessage", 4)
    blueprint = assembler.build()

    assert (1, router_id) in [(c.source, c.target) for c in blueprint.connections]
    assert all(c.source != router_id for c in blueprint.connections)
    assert after == 3


def test_explicit_connection_from_router():
    assembler = BlueprintAssembler()
    assembler.append_module("webhook.customWebhook", 1)
    router_id = assembler.append_router(routes_from_conditions(["status is approved"]))
    target = assembler.append_module("slack.postMessage", 4)
    assembler.connect(router_id, target, route=1)
    blueprint = assembler.build()
    assert Connection(source=2, target=3, route=1) in blueprint.connections


def test_routes_from_conditions():
    routes = routes_from_conditions(["status is approved", "amount greater 100"])
    assert [route.label for route in routes] == ["Route 1", "Route 2"]
    assert [route.filter.operator for route in routes] == ["equal", "greater"]
    assert routes[0].filter.field == "{{previousModule.status}}"
    assert routes[0].filter.value == "approved"
    assert routes[1].filter.value == "100"


def test_unparsable_condition_gets_status_route():
    (route,) = routes_from_conditions(["the stars align"])
    assert route.filter.field == "{{previousModule.status}}"
    assert route.filter.operator == "equal"
    assert route.filter.value == "true"


def test_router_serializes_routes():
    assembler = BlueprintAssembler()
    assembler.append_router(routes_from_conditions(["status is approved"]))
    payload = assembler.build().to_dict()
    router = payload["modules"][0]
    assert router["module"] == "flow.router"
    assert router["routes"][0]["filter"]["conditions"] == [
        [{"a": "{{previousModule.status}}", "b": "approved", "o": "equal"}]
    ]


def test_router_requires_routes():
    with pytest.raises(ValueError):
        BlueprintAssembler().append_router([])


def test_auxiliaries_do_not_consume_ids():
    assembler = BlueprintAssembler()
    assembler.append_auxiliary("variable", {"name": "threshold", "value": 10})
    assembler.append_auxiliary("schedule", {"interval": 900})
    node_id = assembler.append_module("http.makeRequest", 3)
    blueprint = assembler.build()

    assert node_id == 1
    assert blueprint.scheduling == {"interval": 900}
    assert blueprint.to_dict()["variables"] == [{"name": "threshold", "value": 10}]

    with pytest.raises(ValueError):
        BlueprintAssembler().append_auxiliary("widget", {})


def test_build_is_terminal_and_idempotent():
    assembler = _linear(2)
    first = assembler.build()
    assert assembler.state is AssemblyState.validated
    assert assembler.build() is first
    with pytest.raises(BlueprintStateError):
        assembler.append_module("http.makeRequest", 3)


def test_empty_build_is_rejected():
    assembler = BlueprintAssembler()
    with pytest.raises(BlueprintValidationError) as excinfo:
        assembler.build()
    assert "at least one module" in str(excinfo.value)
    assert assembler.state is AssemblyState.rejected
    with pytest.raises(BlueprintValidationError):
        assembler.build()
    with pytest.raises(BlueprintStateError):
        assembler.set_metadata("late", "too late")


def test_dangling_connection_is_rejected():
    assembler = _linear(1)
    assembler.connect(1, 7)
    with pytest.raises(BlueprintValidationError) as excinfo:
        assembler.build()
    assert excinfo.value.errors == ["Invalid connection: 1 -> 7"]


def test_decorate_merges_mapper_and_metadata():
    assembler = _linear(1)
    assembler.decorate(1, mapper={"text": "{{1.value}}"}, metadata={"note": "first"})
    node = assembler.build().nodes[0]
    assert node.mapper == {"text": "{{1.value}}"}
    assert node.metadata == {"designer": {"x": 0, "y": 0}, "note": "first"}
    assert not isinstance(node, RouterNode)


def test_comparative_filler_is_dropped_from_values():
    routes = routes_from_conditions(["amount greater than 100", "total less than 5", "stage equals to closed"])
    assert [(route.filter.operator, route.filter.value) for route in routes] == [
        ("greater", "100"),
        ("less", "5"),
        ("equal", "closed"),
    ]


def test_unknown_operator_word_maps_to_equal():
    assert map_operator("matches") == DEFAULT_OPERATOR == "equal"
    assert map_operator("CONTAINS") == "contains"
