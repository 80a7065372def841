"""
Result contracts returned by pipeline stages.

Each stage returns its counters and findings as values; the orchestrator
threads them through and the reporter renders them. Nothing here touches the
filesystem.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import List

from store_publisher.domain.models import SplitManifest


@dataclass(frozen=True)
class FieldError:
    """One validation failure, keyed by the offending field (or file)."""

    field: str
    message: str

    def __str__(self) -> str:
        return f"{self.field}: {self.message}"


@dataclass
class ValidationReport:
    bundle: str
    errors: List[FieldError] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


@dataclass(frozen=True)
class AggregateCounts:
    total: int = 0
    valid: int = 0
    errors: int = 0


@dataclass(frozen=True)
class CollectionCounts:
    icons: int = 0
    packages: int = 0
    redirected: int = 0
    screenshots: int = 0


@dataclass(frozen=True)
class OversizedFile:
    path: Path
    size: int


@dataclass
class SplitResult:
    manifests: List[SplitManifest] = field(default_factory=list)

    @property
    def split_count(self) -> int:
        return len(self.manifests)


__all__ = [
    "AggregateCounts",
    "CollectionCounts",
    "FieldError",
    "OversizedFile",
    "SplitResult",
    "ValidationReport",
]
