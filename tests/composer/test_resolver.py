import pytest

from services.composer.app.domain.catalog import CatalogEntry, ModuleCatalog, load_catalog
from services.composer.app.domain.resolver import (
    FALLBACK_ACTION,
    FALLBACK_TRIGGER,
    JSON_PARSER_MODULE,
    SLEEP_MODULE,
    CatalogResolver,
)


@pytest.fixture
def resolver() -> CatalogResolver:
    return CatalogResolver(load_catalog())


def test_missing_trigger_falls_back_to_webhook(resolver):
    resolution = resolver.resolve_trigger(None)
    assert resolution.module_type == FALLBACK_TRIGGER
    assert resolution.fallback is True
    assert resolution.version == 1
    assert resolution.parameters["dataStructure"]["type"] == "collection"


def test_unknown_trigger_service_falls_back_to_webhook(resolver):
    resolution = resolver.resolve_trigger("a form is submitted")
    assert resolution.module_type == FALLBACK_TRIGGER
    assert resolution.fallback is True


def test_sheets_trigger_uses_catalog_version(resolver):
    resolution = resolver.resolve_trigger("a new row is added to google sheets")
    assert resolution.module_type == "google-sheets.watchRows"
    assert resolution.version == 2
    assert resolution.service == "google-sheets"
    assert resolution.fallback is False
    assert resolution.parameters["spreadsheetId"] == "{{spreadsheetId}}"


@pytest.mark.parametrize(
    ("text", "module_type"),
    [
        ("add a row to the sheet", "google-sheets.addRow"),
        ("update the row in the sheet", "google-sheets.updateRow"),
        ("find a row in the spreadsheet", "google-sheets.searchRows"),
        ("remove the row from the sheet", "google-sheets.deleteRow"),
        ("post it to slack", "slack.postMessage"),
        ("send a reply to the webhook", "http.webhookResponse"),
    ],
)
def test_action_variants(resolver, text, module_type):
    resolution = resolver.resolve_action(text)
    assert resolution.module_type == module_type
    assert resolution.fallback is False


def test_http_method_from_verb(resolver):
    assert resolver.resolve_action("fetch the weather from the api").parameters["method"] == "GET"
    assert resolver.resolve_action("send the data to a webhook url").parameters["method"] == "POST"


def test_unknown_action_falls_back_to_generic_request(resolver):
    resolution = resolver.resolve_action("do something clever")
    assert resolution.module_type == FALLBACK_ACTION
    assert resolution.fallback is True
    assert resolution.parameters["url"] == "https://api.example.com/webhook"
    assert resolution.parameters["method"] == "POST"


def test_wait_and_parse_fallbacks():
    resolver = CatalogResolver(load_catalog(), sleep_seconds=30)
    sleep = resolver.resolve_action("wait a bit")
    assert sleep.module_type == SLEEP_MODULE
    assert sleep.parameters == {"delay": 30}
    assert resolver.resolve_action("parse the payload").module_type == JSON_PARSER_MODULE


def test_injected_catalog_drives_versions():
    catalog = ModuleCatalog(
        {"slack.postMessage": CatalogEntry("slack.postMessage", 9, "Create a message", "communication", "action")},
        version="test",
    )
    resolver = CatalogResolver(catalog)
    assert resolver.resolve_action("post it to slack").version == 9
    assert resolver.resolve_action("add a row to the sheet").version == 1


def test_resolutions_do_not_share_parameters(resolver):
    first = resolver.resolve_action("post it to slack")
    first.parameters["channel"] = "#changed"
    second = resolver.resolve_action("post it to slack")
    assert second.parameters["channel"] == "#general"
