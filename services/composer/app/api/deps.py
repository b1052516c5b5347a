"""FastAPI dependency helpers."""
from __future__ import annotations

from typing import AsyncIterator

from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.catalog import ModuleCatalog, get_catalog
from ..persistence.db import get_session_factory


async def get_db_session() -> AsyncIterator[AsyncSession]:
    session_factory = get_session_factory()
    async with session_factory() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


def get_module_catalog() -> ModuleCatalog:
    """Process-wide catalog; override in tests through ``app.dependency_overrides``."""
    return get_catalog()


__all__ = ["get_db_session", "get_module_catalog"]
