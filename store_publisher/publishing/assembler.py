"""
Output tree assembler.

Combines the pre-built UI bundle, the catalog JSON, collected assets, the
optional verifier page, and the binary update into one deployable directory:

    <output>/
        index.html, assets/...      (UI bundle)
        apps/index.json             (catalog endpoint)
        images/ packages/ screenshots/
        verifier/index.html
        update/...
        .nojekyll
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from store_publisher.catalog.aggregator import CatalogEntry
from store_publisher.domain.errors import PrerequisiteMissingError
from store_publisher.domain.models import UpdateManifest
from store_publisher.domain.results import CollectionCounts
from store_publisher.publishing.assets import collect_assets
from store_publisher.publishing.update import UpdateSource, package_update
from store_publisher.utils.logging import get_logger

log = get_logger(__name__)

CATALOG_ENDPOINT = Path("apps") / "index.json"
VERIFIER_PAGE = "index.html"
# Tells GitHub Pages to serve files as-is instead of running Jekyll.
NO_PROCESSING_MARKER = ".nojekyll"


@dataclass(frozen=True)
class AssemblyResult:
    output_dir: Path
    assets: CollectionCounts
    update: Optional[UpdateManifest] = None


def write_catalog(path: Path | str, catalog_json: str) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(catalog_json, encoding="utf-8")
    return target


def assemble(
    output_dir: Path | str,
    ui_dist_dir: Path | str,
    catalog_json: str,
    entries: Iterable[CatalogEntry],
    redirect_threshold: int,
    verifier_dir: Optional[Path | str] = None,
    update_source: Optional[UpdateSource] = None,
) -> AssemblyResult:
    """
    Rebuild `output_dir` from scratch.

    Raises
    ------
    PrerequisiteMissingError
        If the UI bundle has not been built; checked before the output
        directory is touched.
    """
    ui_dist = Path(ui_dist_dir)
    if not ui_dist.is_dir():
        raise PrerequisiteMissingError(ui_dist, hint="build the UI first (run without --aggregate)")

    output = Path(output_dir)
    log.info(f"Assembling {output}/...", extra={"output_dir": str(output)})
    if output.exists():
        shutil.rmtree(output)
    shutil.copytree(ui_dist, output)

    write_catalog(output / CATALOG_ENDPOINT, catalog_json)

    if verifier_dir is not None:
        page = Path(verifier_dir) / VERIFIER_PAGE
        if page.is_file():
            (output / "verifier").mkdir(parents=True, exist_ok=True)
            shutil.copyfile(page, output / "verifier" / VERIFIER_PAGE)

    (output / NO_PROCESSING_MARKER).touch()

    counts = collect_assets(entries, output, redirect_threshold)
    update = package_update(update_source, output) if update_source else None

    return AssemblyResult(output_dir=output, assets=counts, update=update)


__all__ = [
    "AssemblyResult",
    "CATALOG_ENDPOINT",
    "NO_PROCESSING_MARKER",
    "assemble",
    "write_catalog",
]
