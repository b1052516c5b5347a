"""Error kinds raised by the blueprint composer."""
from __future__ import annotations

from typing import Sequence


class ComposerError(Exception):
    """Base class for errors the composer propagates to its callers."""


class BlueprintValidationError(ComposerError):
    """Structural validation failed; carries the full itemized error list."""

    def __init__(self, errors: Sequence[str]) -> None:
        self.errors = list(errors)
        super().__init__(f"Invalid blueprint: {', '.join(self.errors)}")


class BlueprintStateError(ComposerError):
    """An assembler operation was attempted after the blueprint reached a terminal state."""


class CatalogLoadError(ComposerError):
    """The module catalog could not be read or has an unexpected shape."""


class DescriptionTooLongError(ComposerError):
    """The description exceeds the configured character limit."""


__all__ = [
    "ComposerError",
    "BlueprintValidationError",
    "BlueprintStateError",
    "CatalogLoadError",
    "DescriptionTooLongError",
]
