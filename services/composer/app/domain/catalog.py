"""Static module catalog: known ``service.operation`` identifiers and schema versions."""
from __future__ import annotations

import json
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Iterator, Mapping

import structlog

from ..config import get_settings
from .errors import CatalogLoadError

logger = structlog.get_logger(__name__)

DEFAULT_MODULE_VERSION = 1
BUNDLED_CATALOG_PATH = Path(__file__).resolve().parent / "catalog_data" / "modules.json"


@dataclass(frozen=True)
class CatalogEntry:
    module_type: str
    version: int
    label: str
    category: str
    kind: str


class ModuleCatalog:
    """Read-only lookup table keyed by ``service.operation``."""

    def __init__(self, entries: Mapping[str, CatalogEntry], version: str = "unversioned") -> None:
        self._entries: Mapping[str, CatalogEntry] = MappingProxyType(dict(entries))
        self._version = version

    @property
    def version(self) -> str:
        return self._version

    @property
    def entries(self) -> Mapping[str, CatalogEntry]:
        return self._entries

    def get(self, module_type: str) -> CatalogEntry | None:
        return self._entries.get(module_type)

    def version_for(self, module_type: str) -> int:
        entry = self._entries.get(module_type)
        return entry.version if entry else DEFAULT_MODULE_VERSION

    def __contains__(self, module_type: object) -> bool:
        return module_type in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    @classmethod
    def from_document(cls, document: Mapping[str, Any]) -> "ModuleCatalog":
        categories = document.get("categories")
        if not isinstance(categories, Mapping):
            raise CatalogLoadError("Catalog document has no 'categories' mapping")
        entries: dict[str, CatalogEntry] = {}
        for category_name, category in categories.items():
            apps = category.get("modules") if isinstance(category, Mapping) else None
            if not isinstance(apps, Mapping):
                raise CatalogLoadError(f"Catalog category '{category_name}' has no 'modules' mapping")
            for app_name, operations in apps.items():
                if not isinstance(operations, Mapping):
                    raise CatalogLoadError(f"Catalog app '{app_name}' must map operations to entries")
                for operation, info in operations.items():
                    module_type = f"{app_name}.{operation}"
                    try:
                        version = int(info["version"])
                    except (KeyError, TypeError, ValueError) as exc:
                        raise CatalogLoadError(f"Catalog entry '{module_type}' has no integer version") from exc
                    entries[module_type] = CatalogEntry(
                        module_type=module_type,
                        version=version,
                        label=info.get("label", module_type),
                        category=category_name,
                        kind=info.get("kind", "action"),
                    )
        return cls(entries, version=str(document.get("version", "unversioned")))


def load_catalog(path: str | Path | None = None) -> ModuleCatalog:
    source = Path(path) if path else BUNDLED_CATALOG_PATH
    try:
        with open(source, "r", encoding="utf-8") as handle:
            document = json.load(handle)
    except (OSError, json.JSONDecodeError) as exc:
        raise CatalogLoadError(f"Unable to read module catalog at {source}: {exc}") from exc
    catalog = ModuleCatalog.from_document(document)
    logger.info("catalog.loaded", path=str(source), entries=len(catalog), version=catalog.version)
    return catalog


@lru_cache(maxsize=1)
def get_catalog() -> ModuleCatalog:
    """Return the process-wide catalog, loaded once from the configured path."""
    return load_catalog(get_settings().catalog.path)


__all__ = [
    "BUNDLED_CATALOG_PATH",
    "DEFAULT_MODULE_VERSION",
    "CatalogEntry",
    "ModuleCatalog",
    "get_catalog",
    "load_catalog",
]
