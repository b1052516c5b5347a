"""Blueprint composition API."""
from __future__ import annotations

import uuid
from typing import Any, List

from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain.catalog import ModuleCatalog
from ..domain.composer_service import ComposeParams, ComposerOrchestrator
from ..domain.types import Blueprint
from ..domain.validator import validate
from ..persistence.models import BlueprintConnection, BlueprintModule, BlueprintRecord, CompositionStatus
from .deps import get_db_session, get_module_catalog

router = APIRouter(prefix="/blueprints", tags=["blueprints"])


class ComposeRequest(BaseModel):
    description: str = Field(description="Plain-language automation description")
    name: str | None = Field(default=None, description="Scenario name; derived from the description when omitted")


class BlueprintSummaryResponse(BaseModel):
    id: str
    name: str
    description: str
    status: str
    module_count: int = Field(alias="moduleCount")
    catalog_version: str = Field(alias="catalogVersion")
    artifact_ref: str | None = Field(alias="artifactRef")
    errors: List[str] = Field(default_factory=list)
    created_at: str | None = Field(alias="createdAt")
    updated_at: str | None = Field(alias="updatedAt")

    model_config = ConfigDict(populate_by_name=True, ser_json_t="alias")


class ValidationResponse(BaseModel):
    valid: bool
    errors: List[str] = Field(default_factory=list)


def _blueprint_not_found(blueprint_id: str) -> HTTPException:
    return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Blueprint {blueprint_id} not found")


def _build_summary(record: BlueprintRecord) -> BlueprintSummaryResponse:
    return BlueprintSummaryResponse(
        id=record.id,
        name=record.name,
        description=record.description,
        status=record.status.value,
        moduleCount=record.module_count,
        catalogVersion=record.catalog_version,
        artifactRef=record.artifact_ref,
        errors=list(record.errors or []),
        createdAt=record.created_at.isoformat() if record.created_at else None,
        updatedAt=record.updated_at.isoformat() if record.updated_at else None,
    )


def _respond(record: BlueprintRecord) -> BlueprintSummaryResponse | JSONResponse:
    if record.status is CompositionStatus.rejected:
        return JSONResponse(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            content={"error": "BlueprintValidationError", "errors": list(record.errors), "id": record.id},
        )
    return _build_summary(record)


async def _load(session: AsyncSession, blueprint_id: str) -> BlueprintRecord:
    record = await session.get(BlueprintRecord, blueprint_id)
    if not record:
        raise _blueprint_not_found(blueprint_id)
    return record


@router.post("", response_model=BlueprintSummaryResponse, status_code=status.HTTP_201_CREATED)
async def compose_blueprint(
    request: ComposeRequest,
    session: AsyncSession = Depends(get_db_session),
    catalog: ModuleCatalog = Depends(get_module_catalog),
):
    orchestrator = ComposerOrchestrator(session, catalog)
    record = await orchestrator.compose(
        ComposeParams(
            description=request.description,
            name=request.name,
            principal="api",
            correlation_id=str(uuid.uuid4()),
        )
    )
    return _respond(record)


@router.post("/validate", response_model=ValidationResponse)
async def validate_blueprint(payload: dict[str, Any]):
    try:
        blueprint = Blueprint.from_dict(payload)
    except (ValueError, TypeError, AttributeError) as exc:
        return ValidationResponse(valid=False, errors=[f"Malformed blueprint: {exc}"])
    report = validate(blueprint)
    return ValidationResponse(valid=report.valid, errors=list(report.errors))


@router.get("/{blueprint_id}", response_model=BlueprintSummaryResponse)
async def get_blueprint(blueprint_id: str, session: AsyncSession = Depends(get_db_session)):
    return _build_summary(await _load(session, blueprint_id))


@router.get("/{blueprint_id}/blueprint.json")
async def get_blueprint_artifact(blueprint_id: str, session: AsyncSession = Depends(get_db_session)):
    record = await _load(session, blueprint_id)
    if record.artifact is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Blueprint was rejected; no artifact")
    return record.artifact


@router.get("/{blueprint_id}/graph")
async def get_graph(blueprint_id: str, session: AsyncSession = Depends(get_db_session)):
    await _load(session, blueprint_id)
    modules_result = await session.execute(
        select(BlueprintModule)
        .where(BlueprintModule.blueprint_id == blueprint_id)
        .order_by(BlueprintModule.order_hint)
    )
    connections_result = await session.execute(
        select(BlueprintConnection).where(BlueprintConnection.blueprint_id == blueprint_id)
    )
    nodes = [
        {
            "id": module.module_id,
            "module": module.module_type,
            "version": module.version,
            "order": module.order_hint,
            "routes": len(module.routes) if module.routes else 0,
        }
        for module in modules_result.scalars()
    ]
    edges = [
        {"source": connection.source, "target": connection.target, "route": connection.route}
        for connection in connections_result.scalars()
    ]
    return {"nodes": nodes, "edges": edges}


@router.get("/{blueprint_id}/report")
async def get_report(blueprint_id: str, session: AsyncSession = Depends(get_db_session)):
    record = await _load(session, blueprint_id)
    if not record.report:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Report not generated")
    return record.report


@router.post(
    "/{blueprint_id}/recompose",
    response_model=BlueprintSummaryResponse,
    status_code=status.HTTP_201_CREATED,
)
async def recompose_blueprint(
    blueprint_id: str,
    session: AsyncSession = Depends(get_db_session),
    catalog: ModuleCatalog = Depends(get_module_catalog),
):
    record = await _load(session, blueprint_id)
    orchestrator = ComposerOrchestrator(session, catalog)
    new_record = await orchestrator.compose(
        ComposeParams(
            description=record.description,
            name=record.name,
            principal="api",
            correlation_id=str(uuid.uuid4()),
        )
    )
    return _respond(new_record)


__all__ = ["router"]
