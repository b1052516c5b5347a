"""Structural validation of assembled blueprints."""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field

from .types import Blueprint

EMPTY_BLUEPRINT_ERROR = "Blueprint must have at least one module"


@dataclass(frozen=True)
class ValidationReport:
    valid: bool
    errors: list[str] = field(default_factory=list)


def validate(blueprint: Blueprint) -> ValidationReport:
    """Check node presence, id uniqueness and connection endpoints.

    Parameter completeness, placeholder resolvability and module type
    compatibility are not checked.
    """
    errors: list[str] = []

    if not blueprint.nodes:
        errors.append(EMPTY_BLUEPRINT_ERROR)

    ids = blueprint.module_ids
    duplicates = sorted(module_id for module_id, count in Counter(ids).items() if count > 1)
    if duplicates:
        errors.append(f"Duplicate module IDs found: {', '.join(str(module_id) for module_id in duplicates)}")

    known = set(ids)
    for connection in blueprint.connections:
        if connection.source not in known or connection.target not in known:
            errors.append(f"Invalid connection: {connection.source} -> {connection.target}")

    return ValidationReport(valid=not errors, errors=errors)


__all__ = ["EMPTY_BLUEPRINT_ERROR", "ValidationReport", "validate"]
