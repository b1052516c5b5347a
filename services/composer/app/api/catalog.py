"""Module catalog listing."""
from __future__ import annotations

from fastapi import APIRouter, Depends

from ..domain.catalog import ModuleCatalog
from .deps import get_module_catalog

router = APIRouter(prefix="/catalog", tags=["catalog"])


@router.get("")
async def list_catalog(catalog: ModuleCatalog = Depends(get_module_catalog)):
    return {
        "version": catalog.version,
        "modules": [
            {
                "module": entry.module_type,
                "version": entry.version,
                "label": entry.label,
                "category": entry.category,
                "kind": entry.kind,
            }
            for entry in sorted(catalog.entries.values(), key=lambda item: item.module_type)
        ],
    }


__all__ = ["router"]
