"""FastAPI application entrypoint."""
from __future__ import annotations

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .api import blueprints, catalog
from .config import get_settings
from .domain.errors import (
    BlueprintStateError,
    BlueprintValidationError,
    CatalogLoadError,
    ComposerError,
    DescriptionTooLongError,
)
from .observability.logging import configure_logging
from .observability.otel import configure_telemetry
from .persistence.db import dispose_engine, init_db

logger = structlog.get_logger(__name__)

ERROR_STATUS = {
    BlueprintValidationError: 422,
    DescriptionTooLongError: 413,
    BlueprintStateError: 409,
    CatalogLoadError: 503,
}


def _status_for(exc: ComposerError) -> int:
    for error_type, status_code in ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return status_code
    return 400


def create_app() -> FastAPI:
    settings = get_settings()
    app = FastAPI(
        title="Blueprint Composer",
        version="0.1.0",
        openapi_version="3.1.0",
        docs_url="/docs",
        redoc_url=None,
    )

    configure_logging()
    configure_telemetry()

    @app.on_event("startup")
    async def _startup() -> None:  # pragma: no cover - FastAPI lifecycle
        await init_db()

    @app.on_event("shutdown")
    async def _shutdown() -> None:  # pragma: no cover - FastAPI lifecycle
        await dispose_engine()

    @app.exception_handler(ComposerError)
    async def _composer_exception_handler(request: Request, exc: ComposerError):
        status_code = _status_for(exc)
        logger.info("api.composer_error", path=request.url.path, error=type(exc).__name__, status=status_code)
        content = {"error": type(exc).__name__, "message": str(exc)}
        if isinstance(exc, BlueprintValidationError):
            content["errors"] = exc.errors
        return JSONResponse(status_code=status_code, content=content)

    @app.exception_handler(Exception)
    async def _generic_exception_handler(request: Request, exc: Exception):  # pragma: no cover - fallback
        logger.error("api.unhandled_error", path=request.url.path, error=str(exc))
        return JSONResponse(
            status_code=500,
            content={
                "error": "InternalServerError",
                "message": str(exc),
                "remediation": "Retry the request; report the blueprint id if the failure persists",
            },
        )

    app.include_router(blueprints.router)
    app.include_router(catalog.router)

    @app.get("/healthz")
    async def healthcheck():
        return {"status": "ok", "environment": settings.environment}

    return app


app = create_app()


__all__ = ["app", "create_app"]
