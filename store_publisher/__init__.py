"""
Static Store Publisher - catalog aggregation and chunked publishing for a
static application store.

The package turns a tree of per-app metadata bundles into a deployable static
site:

- Validation and normalization of each bundle into a canonical app record
- Content-addressed icon identifiers and large-package redirects
- Assembly of the UI bundle, catalog JSON, and assets into one tree
- Splitting of oversized files into checksummed, numbered parts
- Verification that no published file exceeds the host's size limit
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from store_publisher.catalog import (
    FilesystemBundleSource,
    InMemoryBundle,
    InMemoryBundleSource,
    aggregate,
    normalize_bundle,
    validate_bundle,
)
from store_publisher.config import Settings, get_settings
from store_publisher.domain import AppRecord, SplitManifest, StorePublisherError, UpdateManifest
from store_publisher.orchestrator import BuildMode, run_build, run_publish
from store_publisher.publishing import reassemble, split_large_files, stage_publish, verify_tree
from store_publisher.utils.logging import configure_logging, get_logger

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "Settings",
    "get_settings",
    # Orchestration
    "BuildMode",
    "run_build",
    "run_publish",
    # Catalog
    "FilesystemBundleSource",
    "InMemoryBundle",
    "InMemoryBundleSource",
    "aggregate",
    "normalize_bundle",
    "validate_bundle",
    # Publishing
    "reassemble",
    "split_large_files",
    "stage_publish",
    "verify_tree",
    # Domain
    "AppRecord",
    "SplitManifest",
    "UpdateManifest",
    "StorePublisherError",
    # Logging
    "configure_logging",
    "get_logger",
]
