"""
Catalog aggregator: validate and normalize every bundle a source yields.

Usage:
    from store_publisher.catalog import FilesystemBundleSource, aggregate

    result = aggregate(FilesystemBundleSource("packages"), redirect_threshold, base_url)
    if result.counts.errors:
        ...  # refuse to publish

The aggregator never writes anything. Deciding what to do with a failed run
(dry-run exit, abort before assembly) is the orchestrator's job.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from store_publisher.catalog.normalizer import normalize_bundle
from store_publisher.catalog.source import BundleHandle, BundleSource
from store_publisher.catalog.validator import validate_bundle
from store_publisher.domain.models import AppRecord
from store_publisher.domain.results import AggregateCounts, ValidationReport
from store_publisher.utils.logging import get_logger

log = get_logger(__name__)


@dataclass(frozen=True)
class CatalogEntry:
    """A canonical record together with the bundle it came from."""

    record: AppRecord
    bundle: BundleHandle


@dataclass
class AggregationResult:
    entries: List[CatalogEntry] = field(default_factory=list)
    reports: List[ValidationReport] = field(default_factory=list)
    counts: AggregateCounts = field(default_factory=AggregateCounts)

    @property
    def records(self) -> List[AppRecord]:
        return [entry.record for entry in self.entries]

    @property
    def failed_reports(self) -> List[ValidationReport]:
        return [report for report in self.reports if not report.ok]


def aggregate(
    source: BundleSource,
    redirect_threshold: int,
    releases_base_url: str,
) -> AggregationResult:
    """
    Run validation then normalization over every bundle from `source`.

    Invalid bundles are excluded from the catalog and counted as errors;
    processing continues so the report covers every bundle. The catalog is
    sorted by name, case-insensitively.
    """
    entries: List[CatalogEntry] = []
    reports: List[ValidationReport] = []
    total = valid = errors = 0

    for bundle in source.iter_bundles():
        total += 1
        report = validate_bundle(bundle)
        reports.append(report)

        for warning in report.warnings:
            log.warning(f"{bundle.label}: {warning}", extra={"bundle": bundle.label})

        if not report.ok:
            errors += 1
            for error in report.errors:
                log.error(f"{bundle.label}: {error}", extra={"bundle": bundle.label, "field": error.field})
            continue

        record = normalize_bundle(bundle, redirect_threshold, releases_base_url)
        entries.append(CatalogEntry(record=record, bundle=bundle))
        valid += 1
        log.info(f"[OK] {bundle.label}", extra={"bundle": bundle.label, "app_id": record.app_id})

    entries.sort(key=lambda entry: entry.record.name.lower())
    counts = AggregateCounts(total=total, valid=valid, errors=errors)
    log.info(
        f"Scan complete: {total} apps found, {valid} valid, {errors} errors",
        extra={"total": total, "valid": valid, "errors": errors},
    )
    return AggregationResult(entries=entries, reports=reports, counts=counts)


__all__ = ["AggregationResult", "CatalogEntry", "aggregate"]
