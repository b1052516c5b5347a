import json

import pytest

from services.composer.app.domain.catalog import DEFAULT_MODULE_VERSION, ModuleCatalog, load_catalog
from services.composer.app.domain.errors import CatalogLoadError
from services.composer.app.domain.resolver import ACTION_TABLE, FALLBACK_ACTION, FALLBACK_TRIGGER, TRIGGER_TABLE


def test_bundled_catalog_flattens_service_operations():
    catalog = load_catalog()
    assert catalog.version == "2024.06"
    assert "google-sheets.watchRows" in catalog
    entry = catalog.get("slack.postMessage")
    assert entry is not None
    assert entry.version == 4
    assert entry.category
    assert catalog.version_for("unknown.module") == DEFAULT_MODULE_VERSION


def test_bundled_catalog_covers_emitted_modules():
    catalog = load_catalog()
    for module_type in (FALLBACK_TRIGGER, FALLBACK_ACTION, "flow.router", "flow.sleep", "util.jsonParser"):
        assert module_type in catalog
    for choose in TRIGGER_TABLE.values():
        assert choose("")[0] in catalog
    for choose in ACTION_TABLE.values():
        assert choose("")[0] in catalog


def test_catalog_is_read_only():
    catalog = load_catalog()
    with pytest.raises(TypeError):
        catalog.entries["new.module"] = None


def test_load_from_custom_path(tmp_path):
    path = tmp_path / "modules.json"
    path.write_text(
        json.dumps(
            {
                "version": "custom",
                "categories": {"chat": {"label": "Chat", "modules": {"slack": {"postMessage": {"version": 7}}}}},
            }
        )
    )
    catalog = load_catalog(path)
    assert catalog.version == "custom"
    assert len(catalog) == 1
    assert catalog.version_for("slack.postMessage") == 7


@pytest.mark.parametrize(
    "document",
    [
        {},
        {"categories": {"chat": {"label": "Chat"}}},
        {"categories": {"chat": {"modules": {"slack": {"postMessage": {"label": "no version"}}}}}},
    ],
)
def test_malformed_documents(document):
    with pytest.raises(CatalogLoadError):
        ModuleCatalog.from_document(document)


def test_missing_file(tmp_path):
    with pytest.raises(CatalogLoadError):
        load_catalog(tmp_path / "absent.json")
