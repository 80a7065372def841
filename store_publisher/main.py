from __future__ import annotations

import sys
from pathlib import Path
from typing import NoReturn, Optional

import typer
from pydantic import ValidationError

from store_publisher.config import Settings, get_settings
from store_publisher.domain.errors import (
    CatalogValidationError,
    IntegrityError,
    StorePublisherError,
)
from store_publisher.orchestrator import BuildMode, run_build, run_publish
from store_publisher.publishing.splitter import reassemble as reassemble_file
from store_publisher.publishing.splitter import split_large_files
from store_publisher.publishing.verifier import verify_tree
from store_publisher.reporter import (
    print_oversized,
    print_split_summary,
    print_stage_timings,
    print_validation_report,
)
from store_publisher.utils.logging import configure_logging

app = typer.Typer(help="Static app store catalog builder and publisher.")


def _load_settings() -> Settings:
    try:
        settings = get_settings()
    except ValidationError as exc:
        typer.echo(f"Invalid configuration:\n{exc}", err=True)
        raise typer.Exit(code=1) from exc
    configure_logging(level=settings.log_level, json_logs=settings.json_logs)
    return settings


def _fail(exc: StorePublisherError) -> NoReturn:
    if isinstance(exc, CatalogValidationError):
        print_validation_report(exc.reports, exc.counts)
        typer.echo("Fix the errors above before building.", err=True)
    elif isinstance(exc, IntegrityError):
        print_oversized(exc.violations, exc.threshold)
        typer.echo(f"{len(exc.violations)} file(s) still exceed the size limit!", err=True)
    else:
        typer.echo(f"Error: {exc}", err=True)
    raise typer.Exit(code=1) from exc


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = _load_settings()
    typer.echo(
        f"packages={settings.packages_dir} output={settings.output_dir} ui_dist={settings.ui_dist_dir} | "
        f"max_file_size={settings.max_file_size} chunk_size={settings.chunk_size} "
        f"redirect_threshold={settings.redirect_threshold} suffix_width={settings.suffix_width}"
    )


@app.command()
def build(
    aggregate: bool = typer.Option(
        False,
        "--aggregate",
        help="Skip the UI rebuild; just re-aggregate metadata and reassemble the output.",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Validate all metadata without writing any output.",
    ),
) -> None:
    """
    Aggregate app bundles into the catalog and assemble the deployable tree.
    """
    settings = _load_settings()
    mode = BuildMode.DRY_RUN if dry_run else BuildMode.AGGREGATE if aggregate else BuildMode.FULL

    try:
        result = run_build(mode, settings)
    except StorePublisherError as exc:
        _fail(exc)

    print_validation_report(result.aggregation.reports, result.aggregation.counts)
    print_stage_timings(result.stages)
    if result.assembly:
        assets = result.assembly.assets
        typer.echo(
            f"Build complete: {result.assembly.output_dir}/ "
            f"({assets.icons} icons, {assets.packages} packages, {assets.redirected} redirected)"
        )


@app.command()
def publish(
    target: Path = typer.Option(
        ...,
        "--target",
        "-t",
        help="Publish target directory (e.g. a checkout of the hosting branch).",
    ),
    aggregate: bool = typer.Option(
        False,
        "--aggregate",
        help="Skip the UI rebuild before deploying.",
    ),
    deploy_only: bool = typer.Option(
        False,
        "--deploy-only",
        help="Skip the build entirely and deploy the current output directory.",
    ),
) -> None:
    """
    Build, then stage the output into the publish target, split large files, and verify.
    """
    settings = _load_settings()
    build_mode: Optional[BuildMode]
    if deploy_only:
        build_mode = None
    else:
        build_mode = BuildMode.AGGREGATE if aggregate else BuildMode.FULL

    try:
        outcome = run_publish(target, build_mode, settings)
    except StorePublisherError as exc:
        _fail(exc)

    print_split_summary(outcome.publish.split.manifests)
    print_stage_timings(outcome.stages)
    typer.echo(f"Publish tree ready in {outcome.publish.target_dir}/")


@app.command()
def split(
    root: Path = typer.Argument(..., help="Tree to scan for oversized files."),
    threshold: Optional[int] = typer.Option(None, "--threshold", help="Override max_file_size (bytes)."),
    chunk_size: Optional[int] = typer.Option(None, "--chunk-size", help="Override chunk_size (bytes)."),
) -> None:
    """
    Split every file over the threshold under ROOT into numbered parts.
    """
    settings = _load_settings()
    try:
        result = split_large_files(
            root,
            threshold=threshold or settings.max_file_size,
            chunk_size=chunk_size or settings.chunk_size,
            suffix_width=settings.suffix_width,
            update_pattern=settings.update_tarball_pattern,
        )
    except StorePublisherError as exc:
        _fail(exc)
    print_split_summary(result.manifests)


@app.command()
def verify(
    root: Path = typer.Argument(..., help="Tree to check."),
    threshold: Optional[int] = typer.Option(None, "--threshold", help="Override max_file_size (bytes)."),
) -> None:
    """
    Fail if any file under ROOT (outside .git) exceeds the size limit.
    """
    settings = _load_settings()
    limit = threshold or settings.max_file_size
    try:
        verify_tree(root, limit)
    except StorePublisherError as exc:
        _fail(exc)
    typer.echo(f"All files under {limit} bytes.")


@app.command()
def reassemble(
    manifest: Path = typer.Argument(..., help="A <name>.parts.json manifest."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Where to write the rebuilt file."),
) -> None:
    """
    Rebuild a split file from its parts and verify its checksum.
    """
    _load_settings()
    try:
        rebuilt = reassemble_file(manifest, output)
    except StorePublisherError as exc:
        _fail(exc)
    typer.echo(f"Reassembled {rebuilt}")


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
