"""
Domain package for the static store publisher.

Exports the canonical records, manifests, stage results, and pipeline errors.
Keep this package focused on data definitions and validation concerns.
"""

from store_publisher.domain.errors import (
    CatalogValidationError,
    IntegrityError,
    PrerequisiteMissingError,
    ReassemblyError,
    SplitConfigurationError,
    StorePublisherError,
    UIBuildError,
)
from store_publisher.domain.models import (
    AppRecord,
    Author,
    Screenshot,
    SplitManifest,
    SplitPart,
    UpdateManifest,
)
from store_publisher.domain.results import (
    AggregateCounts,
    CollectionCounts,
    FieldError,
    OversizedFile,
    SplitResult,
    ValidationReport,
)

__all__ = [
    # Records and manifests
    "AppRecord",
    "Author",
    "Screenshot",
    "SplitManifest",
    "SplitPart",
    "UpdateManifest",
    # Stage results
    "AggregateCounts",
    "CollectionCounts",
    "FieldError",
    "OversizedFile",
    "SplitResult",
    "ValidationReport",
    # Errors
    "CatalogValidationError",
    "IntegrityError",
    "PrerequisiteMissingError",
    "ReassemblyError",
    "SplitConfigurationError",
    "StorePublisherError",
    "UIBuildError",
]
