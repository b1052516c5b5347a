"""Composer orchestration logic."""
from __future__ import annotations

import time
import uuid
from dataclasses import dataclass

import structlog
from opentelemetry import trace
from sqlalchemy.ext.asyncio import AsyncSession

from ..config import get_settings
from ..persistence.models import AuditLog, BlueprintConnection, BlueprintModule, BlueprintRecord, CompositionStatus
from ..persistence.storage import ArtifactStorage
from .catalog import ModuleCatalog
from .compiler import BlueprintCompiler, CompilationResult
from .errors import BlueprintValidationError, DescriptionTooLongError
from .extract import derive_name
from .report import build_composition_report
from .resolver import CatalogResolver

logger = structlog.get_logger(__name__)
tracer = trace.get_tracer(__name__)


@dataclass
class ComposeParams:
    description: str
    name: str | None = None
    principal: str = "system"
    correlation_id: str = "system"


class ComposerOrchestrator:
    def __init__(self, session: AsyncSession, catalog: ModuleCatalog) -> None:
        self._session = session
        self._catalog = catalog
        self._storage = ArtifactStorage()
        self._settings = get_settings()
        self._compiler = BlueprintCompiler(
            CatalogResolver(catalog, sleep_seconds=self._settings.tuning.sleep_seconds),
            self._settings.tuning,
        )

    async def compose(self, params: ComposeParams) -> BlueprintRecord:
        """Compile and persist one description.

        A structural validation failure is persisted as a rejected record
        carrying the itemized errors; it is returned rather than raised.

        Raises:
            DescriptionTooLongError: the description is over the configured limit.
        """
        limit = self._settings.tuning.max_description_chars
        if len(params.description) > limit:
            raise DescriptionTooLongError(f"Description exceeds {limit} characters")

        start = time.perf_counter()
        record_id = str(uuid.uuid4())
        with tracer.start_as_current_span("composer.compile") as span:
            span.set_attribute("composer.description_chars", len(params.description))
            try:
                result = self._compiler.compile(params.description, name=params.name)
            except BlueprintValidationError as exc:
                span.set_attribute("composer.rejected", True)
                wall_time_ms = int((time.perf_counter() - start) * 1000)
                return await self._persist_rejection(record_id, params, exc, wall_time_ms)
            span.set_attribute("composer.modules", len(result.blueprint.nodes))
            span.set_attribute("composer.connections", len(result.blueprint.connections))

        wall_time_ms = int((time.perf_counter() - start) * 1000)
        blueprint = result.blueprint
        artifact = blueprint.to_dict()
        record = BlueprintRecord(
            id=record_id,
            name=blueprint.name,
            description=params.description,
            status=CompositionStatus.composed,
            artifact=artifact,
            errors=[],
            report=build_composition_report(
                record_id, blueprint, result.resolutions, self._catalog.version, wall_time_ms
            ),
            catalog_version=self._catalog.version,
            module_count=len(blueprint.nodes),
            wall_time_ms=wall_time_ms,
        )
        self._session.add(record)
        await self._session.flush()

        await self._persist_graph(record, result)
        await self._persist_audit(record, params, "blueprint.composed")
        record.artifact_ref = await self._storage.put_json(artifact)
        logger.info(
            "composer.composed",
            blueprint_id=record.id,
            modules=record.module_count,
            correlation_id=params.correlation_id,
        )
        return record

    async def _persist_rejection(
        self,
        record_id: str,
        params: ComposeParams,
        error: BlueprintValidationError,
        wall_time_ms: int,
    ) -> BlueprintRecord:
        tuning = self._settings.tuning
        record = BlueprintRecord(
            id=record_id,
            name=params.name or derive_name(params.description, tuning.name_word_limit, tuning.default_name),
            description=params.description,
            status=CompositionStatus.rejected,
            artifact=None,
            errors=list(error.errors),
            report={},
            catalog_version=self._catalog.version,
            module_count=0,
            wall_time_ms=wall_time_ms,
        )
        self._session.add(record)
        await self._session.flush()
        await self._persist_audit(record, params, "blueprint.rejected")
        logger.info(
            "composer.rejected",
            blueprint_id=record.id,
            errors=record.errors,
            correlation_id=params.correlation_id,
        )
        return record

    async def _persist_graph(self, record: BlueprintRecord, result: CompilationResult) -> None:
        for order, node in enumerate(result.blueprint.nodes):
            payload = node.to_dict()
            self._session.add(
                BlueprintModule(
                    blueprint_id=record.id,
                    module_id=node.id,
                    module_type=node.module_type,
                    version=node.version,
                    parameters=payload["parameters"],
                    routes=payload.get("routes"),
                    order_hint=order,
                )
            )
        for connection in result.blueprint.connections:
            self._session.add(
                BlueprintConnection(
                    blueprint_id=record.id,
                    source=connection.source,
                    target=connection.target,
                    route=connection.route,
                )
            )

    async def _persist_audit(self, record: BlueprintRecord, params: ComposeParams, action: str) -> None:
        audit = AuditLog(
            principal=params.principal,
            action=action,
            new_val={"blueprintId": record.id, "status": record.status.value},
            correlation_id=params.correlation_id,
        )
        self._session.add(audit)


__all__ = ["ComposerOrchestrator", "ComposeParams"]
