"""
Catalog package: bundle sources, validation, normalization, and aggregation.

This module re-exports the pieces so downstream code can import from
`store_publisher.catalog` directly.
"""

from store_publisher.catalog.aggregator import AggregationResult, CatalogEntry, aggregate
from store_publisher.catalog.normalizer import dump_catalog, normalize_bundle
from store_publisher.catalog.source import (
    BundleHandle,
    BundleSource,
    FilesystemBundle,
    FilesystemBundleSource,
    InMemoryBundle,
    InMemoryBundleSource,
)
from store_publisher.catalog.validator import REQUIRED_FIELDS, validate_bundle

__all__ = [
    # Sources
    "BundleHandle",
    "BundleSource",
    "FilesystemBundle",
    "FilesystemBundleSource",
    "InMemoryBundle",
    "InMemoryBundleSource",
    # Stages
    "REQUIRED_FIELDS",
    "validate_bundle",
    "normalize_bundle",
    "dump_catalog",
    "aggregate",
    "AggregationResult",
    "CatalogEntry",
]
