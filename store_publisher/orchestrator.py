"""
Orchestrator for the build and publish pipelines.

Usage (example from CLI):
    from store_publisher.orchestrator import BuildMode, run_build, run_publish

    build = run_build(BuildMode.AGGREGATE)
    publish = run_publish("../store-publish", build_mode=None)  # deploy-only

Build: aggregate → (full mode: write UI catalog, run UI build) → assemble.
Publish: optional build → stage into the target → split → verify.

Every stage runs inside `profile_block`; the collected `ProfileStats` come
back on the result so the CLI can print a timing table.
"""

from __future__ import annotations

import contextlib
import shlex
import subprocess
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Generator, List, Optional

from store_publisher.catalog.aggregator import AggregationResult, aggregate
from store_publisher.catalog.normalizer import dump_catalog
from store_publisher.catalog.source import BundleSource, FilesystemBundleSource
from store_publisher.config import Settings, get_settings
from store_publisher.domain.errors import CatalogValidationError, UIBuildError
from store_publisher.publishing.assembler import AssemblyResult, assemble, write_catalog
from store_publisher.publishing.stager import PublishResult, stage_publish
from store_publisher.publishing.update import UpdateSource
from store_publisher.utils.logging import get_logger
from store_publisher.utils.profiler import ProfileStats, profile_block

log = get_logger(__name__)


class BuildMode(str, Enum):
    FULL = "full"
    AGGREGATE = "aggregate"
    DRY_RUN = "dry-run"


@dataclass
class BuildResult:
    mode: BuildMode
    aggregation: AggregationResult
    assembly: Optional[AssemblyResult] = None
    stages: List[ProfileStats] = field(default_factory=list)


@dataclass
class PublishOutcome:
    publish: PublishResult
    build: Optional[BuildResult] = None
    stages: List[ProfileStats] = field(default_factory=list)


@contextlib.contextmanager
def _stage(name: str, stages: List[ProfileStats]) -> Generator[ProfileStats, None, None]:
    log.info(f"[STAGE START] {name}", extra={"stage": name})
    with profile_block(name) as stats:
        yield stats
    stages.append(stats)
    log.info(
        f"[STAGE DONE] {name} in {stats.duration_seconds:.2f}s",
        extra={"stage": name, "duration": round(stats.duration_seconds, 3)},
    )


def run_ui_build(command: str) -> None:
    """
    Run the external front-end build. An empty command skips the step.
    """
    if not command.strip():
        log.info("No UI build command configured; skipping UI build")
        return
    log.info(f"Running UI build: {command}", extra={"command": command})
    try:
        subprocess.run(shlex.split(command), check=True)
    except (OSError, subprocess.CalledProcessError) as exc:
        raise UIBuildError(f"UI build command failed: {command}: {exc}") from exc


def _update_source(settings: Settings) -> UpdateSource:
    return UpdateSource(
        source_dir=Path(settings.update_source_dir),
        prefix=settings.update_tarball_prefix,
        keyring=Path(settings.resolved_update_keyring),
        tool=Path(settings.resolved_update_tool),
    )


def run_build(
    mode: BuildMode = BuildMode.FULL,
    settings: Optional[Settings] = None,
    source: Optional[BundleSource] = None,
) -> BuildResult:
    """
    Aggregate the catalog and, unless dry-running, assemble the output tree.

    Parameters
    ----------
    mode : BuildMode
        FULL also writes the UI catalog and runs the UI build; AGGREGATE
        reuses the existing UI bundle; DRY_RUN validates only.
    settings : Settings | None
        Defaults to `get_settings()`.
    source : BundleSource | None
        Defaults to the filesystem tree at ``settings.packages_dir``.

    Raises
    ------
    CatalogValidationError
        If any bundle failed validation. Raised before anything is written,
        whatever the mode.
    """
    settings = settings or get_settings()
    source = source or FilesystemBundleSource(settings.packages_dir)
    stages: List[ProfileStats] = []

    with _stage("aggregate", stages):
        aggregation = aggregate(source, settings.redirect_threshold, settings.releases_base_url)

    result = BuildResult(mode=mode, aggregation=aggregation, stages=stages)
    if aggregation.counts.errors:
        log.error("Fix the errors above before building.", extra={"errors": aggregation.counts.errors})
        raise CatalogValidationError(aggregation.counts, aggregation.reports)

    if mode is BuildMode.DRY_RUN:
        log.info(f"Dry run complete. All {aggregation.counts.valid} apps passed validation.")
        return result

    if not aggregation.counts.valid:
        log.warning(f"No valid apps found in {settings.packages_dir}/. Building with empty catalog.")

    catalog_json = dump_catalog(aggregation.records)

    if mode is BuildMode.FULL:
        with _stage("ui-build", stages):
            write_catalog(settings.ui_catalog_path, catalog_json)
            log.info(
                f"Wrote {len(aggregation.entries)} apps to {settings.ui_catalog_path}",
                extra={"apps": len(aggregation.entries)},
            )
            run_ui_build(settings.ui_build_command)

    with _stage("assemble", stages):
        result.assembly = assemble(
            output_dir=settings.output_dir,
            ui_dist_dir=settings.ui_dist_dir,
            catalog_json=catalog_json,
            entries=aggregation.entries,
            redirect_threshold=settings.redirect_threshold,
            verifier_dir=settings.verifier_dir,
            update_source=_update_source(settings),
        )

    log.info(
        f"[BUILD COMPLETE] {len(aggregation.entries)} apps in {settings.output_dir}/",
        extra={"mode": mode.value, "apps": len(aggregation.entries)},
    )
    return result


def run_publish(
    target_dir: Path | str,
    build_mode: Optional[BuildMode] = BuildMode.FULL,
    settings: Optional[Settings] = None,
    source: Optional[BundleSource] = None,
) -> PublishOutcome:
    """
    Optionally build, then stage the output into `target_dir`, split, and verify.

    `build_mode=None` deploys the existing output directory as-is.
    """
    settings = settings or get_settings()
    if build_mode is BuildMode.DRY_RUN:
        raise ValueError("publish cannot run in dry-run mode; use run_build for validation")

    build = run_build(build_mode, settings, source) if build_mode is not None else None
    stages: List[ProfileStats] = list(build.stages) if build else []

    with _stage("stage-split-verify", stages):
        publish = stage_publish(
            output_dir=settings.output_dir,
            target_dir=target_dir,
            threshold=settings.max_file_size,
            chunk_size=settings.chunk_size,
            suffix_width=settings.suffix_width,
            update_pattern=settings.update_tarball_pattern,
            extra_dirs=settings.publish_extra_dirs,
        )

    log.info(
        f"[PUBLISH COMPLETE] {target_dir} ({publish.split.split_count} file(s) split)",
        extra={"target_dir": str(target_dir), "split_count": publish.split.split_count},
    )
    return PublishOutcome(publish=publish, build=build, stages=stages)


__all__ = [
    "BuildMode",
    "BuildResult",
    "PublishOutcome",
    "run_build",
    "run_publish",
    "run_ui_build",
]
