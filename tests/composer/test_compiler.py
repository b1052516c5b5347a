from types import SimpleNamespace

import pytest

from services.composer.app.config import ComposerTuning
from services.composer.app.domain.catalog import load_catalog
from services.composer.app.domain.compiler import BlueprintCompiler, compile_blueprint
from services.composer.app.domain.errors import BlueprintValidationError
from services.composer.app.domain.resolver import CatalogResolver

SHEETS_TO_WEBHOOK = (
    "When a new row is added to Google Sheets, send the data to a webhook URL, "
    "and log the response to another sheet"
)


@pytest.fixture
def compiler() -> BlueprintCompiler:
    return BlueprintCompiler(CatalogResolver(load_catalog()), ComposerTuning())


def test_sheets_to_webhook_example(compiler):
    blueprint = compiler.compile(SHEETS_TO_WEBHOOK).blueprint
    modules = [node.module_type for node in blueprint.nodes]

    assert len(blueprint.nodes) >= 3
    assert blueprint.nodes[0].id == 1
    assert modules[0] == "google-sheets.watchRows"
    assert "http.makeRequest" in modules[1:]
    assert blueprint.module_ids == list(range(1, len(blueprint.nodes) + 1))
    known = set(blueprint.module_ids)
    assert all(c.source in known and c.target in known for c in blueprint.connections)


def test_description_without_trigger_starts_with_webhook(compiler):
    result = compiler.compile("Send a Slack message to the team")
    assert result.blueprint.nodes[0].module_type == "webhook.customWebhook"
    assert result.resolutions[0].fallback is True
    assert result.blueprint.nodes[1].module_type == "slack.postMessage"
    assert [(c.source, c.target) for c in result.blueprint.connections] == [(1, 2)]


@pytest.mark.parametrize("description", ["", "   ", "?!"])
def test_blank_description_is_rejected(compiler, description):
    with pytest.raises(BlueprintValidationError) as excinfo:
        compiler.compile(description)
    assert "at least one module" in str(excinfo.value)


def test_conditions_append_router_after_actions(compiler):
    blueprint = compiler.compile("If status is approved then post to Slack").blueprint
    router = blueprint.nodes[-1]
    assert router.module_type == "flow.router"
    assert router.routes[0].filter.value == "approved"
    assert (router.id - 1, router.id) in [(c.source, c.target) for c in blueprint.connections]


def test_schedule_is_recorded(compiler):
    blueprint = compiler.compile("Every 15 minutes fetch the orders from the API").blueprint
    assert blueprint.scheduling == {"interval": 900}
    assert len(blueprint.nodes) == 2


def test_name_and_description(compiler):
    named = compiler.compile("Post to Slack", name="Ping").blueprint
    assert named.name == "Ping"
    assert named.description == "Post to Slack"
    assert compiler.compile("Post the daily report to Slack now").blueprint.name == "Post the daily report to"


def test_tuning_comes_from_settings(monkeypatch):
    settings = SimpleNamespace(tuning=ComposerTuning(layout_spacing=100))
    monkeypatch.setattr("services.composer.app.domain.compiler.get_settings", lambda: settings)
    blueprint = compile_blueprint("Post to Slack then update the sheet", CatalogResolver(load_catalog()))
    assert [node.metadata["designer"]["x"] for node in blueprint.nodes] == [0, 100, 200]


def test_repeated_condition_gives_one_route_each(compiler):
    blueprint = compiler.compile("If paid then ship it. Checks if paid").blueprint
    router = blueprint.nodes[-1]
    assert router.module_type == "flow.router"
    assert [route.label for route in router.routes] == ["Route 1", "Route 2"]
