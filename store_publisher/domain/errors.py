"""
Exceptions raised by the publishing pipeline.

Per-bundle validation problems are not exceptions; they are collected as
`FieldError` values in a `ValidationReport`. Only run-level failures raise,
and all of them derive from `StorePublisherError` so the CLI can map them to
a non-zero exit code in one place.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, List, Optional, Sequence

if TYPE_CHECKING:
    from store_publisher.domain.results import AggregateCounts, OversizedFile, ValidationReport


class StorePublisherError(Exception):
    """Base class for fatal pipeline errors."""


class CatalogValidationError(StorePublisherError):
    """One or more bundles failed validation; nothing was written."""

    def __init__(self, counts: "AggregateCounts", reports: Sequence["ValidationReport"]) -> None:
        self.counts = counts
        self.reports: List["ValidationReport"] = [r for r in reports if not r.ok]
        super().__init__(
            f"{counts.errors} of {counts.total} bundle(s) failed validation"
        )


class PrerequisiteMissingError(StorePublisherError):
    """A required input directory or file is absent."""

    def __init__(self, path: Path, hint: Optional[str] = None) -> None:
        self.path = Path(path)
        self.hint = hint
        message = f"Required path not found: {self.path}"
        if hint:
            message = f"{message} ({hint})"
        super().__init__(message)


class IntegrityError(StorePublisherError):
    """Files still exceed the size threshold after splitting."""

    def __init__(self, violations: Sequence["OversizedFile"], threshold: int) -> None:
        self.violations = list(violations)
        self.threshold = threshold
        listing = ", ".join(f"{v.path} ({v.size} bytes)" for v in self.violations)
        super().__init__(
            f"{len(self.violations)} file(s) exceed the {threshold}-byte limit: {listing}"
        )


class SplitConfigurationError(StorePublisherError):
    """Chunk size or suffix width cannot represent a file's parts."""


class ReassemblyError(StorePublisherError):
    """Split parts do not reproduce the file their manifest describes."""


class UIBuildError(StorePublisherError):
    """The external front-end build command failed."""


__all__ = [
    "CatalogValidationError",
    "IntegrityError",
    "PrerequisiteMissingError",
    "ReassemblyError",
    "SplitConfigurationError",
    "StorePublisherError",
    "UIBuildError",
]
