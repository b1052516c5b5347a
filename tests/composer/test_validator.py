import pytest

from services.composer.app.domain.types import Blueprint, Connection, ModuleNode
from services.composer.app.domain.validator import EMPTY_BLUEPRINT_ERROR, validate


def _blueprint(ids, connections=()):
    return Blueprint(
        name="Test",
        description="",
        nodes=tuple(ModuleNode(id=node_id, module_type="http.makeRequest", version=3) for node_id in ids),
        connections=tuple(Connection(source=s, target=t) for s, t in connections),
    )


def test_valid_blueprint():
    report = validate(_blueprint([1, 2], [(1, 2)]))
    assert report.valid
    assert report.errors == []


def test_validation_is_repeatable():
    blueprint = _blueprint([1, 1, 2], [(2, 5)])
    assert validate(blueprint) == validate(blueprint)


def test_empty_blueprint():
    report = validate(_blueprint([]))
    assert not report.valid
    assert report.errors == [EMPTY_BLUEPRINT_ERROR]


def test_all_errors_are_reported():
    report = validate(_blueprint([1, 2, 2, 3, 3], [(1, 2), (4, 1), (3, 9)]))
    assert report.errors == [
        "Duplicate module IDs found: 2, 3",
        "Invalid connection: 4 -> 1",
        "Invalid connection: 3 -> 9",
    ]


def test_round_trip_keeps_routes():
    payload = {
        "metadata": {"version": 2, "name": "Routed", "description": "d"},
        "modules": [
            {"id": 1, "module": "webhook.customWebhook", "version": 1, "parameters": {}},
            {
                "id": 2,
                "module": "flow.router",
                "version": 1,
                "parameters": {},
                "routes": [
                    {
                        "id": 1,
                        "label": "Route 1",
                        "filter": {"name": "Route 1", "conditions": [[{"a": "{{1.status}}", "b": "ok", "o": "equal"}]]},
                    }
                ],
            },
        ],
        "connections": [{"source": 1, "target": 2}],
    }
    blueprint = Blueprint.from_dict(payload)
    assert blueprint.nodes[1].is_router
    assert blueprint.to_dict() == payload
    assert validate(blueprint).valid


def test_nested_endpoints_are_rejected():
    payload = {
        "metadata": {"version": 2, "name": "x", "description": ""},
        "modules": [{"id": 1, "module": "http.makeRequest", "version": 3, "parameters": {}}],
        "connections": [{"source": {"moduleId": 1}, "target": 1}],
    }
    with pytest.raises(ValueError):
        Blueprint.from_dict(payload)


@pytest.mark.parametrize(
    "route",
    [
        {"filter": {"conditions": {"x": 1}}},
        {"filter": {"conditions": [{"a": "x"}]}},
        {"filter": "status"},
        "Route 1",
    ],
)
def test_malformed_routes_are_rejected(route):
    payload = {
        "metadata": {"version": 2, "name": "x", "description": ""},
        "modules": [{"id": 1, "module": "flow.router", "version": 1, "routes": [route]}],
        "connections": [],
    }
    with pytest.raises(ValueError):
        Blueprint.from_dict(payload)
