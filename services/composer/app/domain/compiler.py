"""Natural-language description to blueprint pipeline.

extract -> resolve (per clause) -> assemble -> validate. The pipeline is
synchronous and holds no state between calls apart from the injected,
read-only catalog.
"""
from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from ..config import ComposerTuning, get_settings
from .assembler import BlueprintAssembler, routes_from_conditions
from .extract import derive_name, extract
from .resolver import CatalogResolver
from .types import Blueprint, ExtractionResult, ModuleResolution

logger = structlog.get_logger(__name__)


@dataclass
class CompilationResult:
    blueprint: Blueprint
    extraction: ExtractionResult
    resolutions: list[ModuleResolution] = field(default_factory=list)


class BlueprintCompiler:
    def __init__(self, resolver: CatalogResolver, tuning: ComposerTuning | None = None) -> None:
        self._resolver = resolver
        self._tuning = tuning or get_settings().tuning

    @property
    def resolver(self) -> CatalogResolver:
        return self._resolver

    def compile(self, description: str, name: str | None = None) -> CompilationResult:
        """Compile ``description`` into a validated blueprint.

        Raises:
            BlueprintValidationError: the assembled graph violates a structural
                invariant (an empty or unparsable description yields no modules).
        """
        tuning = self._tuning
        extraction = extract(description)
        assembler = BlueprintAssembler(
            layout_spacing=tuning.layout_spacing,
            default_name=tuning.default_name,
            default_description=tuning.default_description,
        )
        assembler.set_metadata(
            name or derive_name(description, tuning.name_word_limit, tuning.default_name),
            description.strip() or tuning.default_description,
        )

        resolutions: list[ModuleResolution] = []
        if not extraction.is_blank:
            trigger = self._resolver.resolve_trigger(extraction.trigger.text if extraction.trigger else None)
            resolutions.append(trigger)
            assembler.append_resolution(trigger)

            for action in extraction.actions:
                resolution = self._resolver.resolve_action(action.text)
                resolutions.append(resolution)
                assembler.append_resolution(resolution)

            if extraction.conditions:
                router_version = self._resolver.catalog.version_for("flow.router")
                routes = routes_from_conditions(extraction.conditions, tuning.route_field_source)
                assembler.append_router(routes, version=router_version)

            if extraction.schedule is not None:
                assembler.append_auxiliary("schedule", {"interval": extraction.schedule.interval})

        blueprint = assembler.build()
        logger.info(
            "compiler.compiled",
            name=blueprint.name,
            modules=len(blueprint.nodes),
            connections=len(blueprint.connections),
            fallbacks=sum(1 for resolution in resolutions if resolution.fallback),
        )
        return CompilationResult(blueprint=blueprint, extraction=extraction, resolutions=resolutions)


def compile_blueprint(description: str, resolver: CatalogResolver, name: str | None = None) -> Blueprint:
    return BlueprintCompiler(resolver).compile(description, name=name).blueprint


__all__ = ["BlueprintCompiler", "CompilationResult", "compile_blueprint"]
