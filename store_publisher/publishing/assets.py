"""
Asset collector: copies icons, packages, and screenshots into the output tree.

Layout produced under the output root:
- ``images/<imageId>``               icon, content-addressed
- ``packages/<packageId>``           package artifact, unless redirected
- ``screenshots/<appId>/<file>``     screenshot images

Packages above the redirect threshold are left out entirely; their records
carry a `packageUrl` pointing at the external large-object store instead.
"""

from __future__ import annotations

import shutil
from pathlib import Path
from typing import Iterable

from store_publisher.catalog.aggregator import CatalogEntry
from store_publisher.catalog.source import ICON_FILES, PACKAGE_FILE, SCREENSHOTS_DIR, BundleHandle, is_screenshot
from store_publisher.domain.results import CollectionCounts
from store_publisher.utils.logging import get_logger

log = get_logger(__name__)

IMAGES_DIR = "images"
PACKAGES_DIR = "packages"


def _copy_from_bundle(bundle: BundleHandle, name: str, dest: Path) -> None:
    dest.parent.mkdir(parents=True, exist_ok=True)
    with bundle.open(name) as src, dest.open("wb") as dst:
        shutil.copyfileobj(src, dst)


def collect_assets(
    entries: Iterable[CatalogEntry],
    output_dir: Path | str,
    redirect_threshold: int,
) -> CollectionCounts:
    """
    Copy every entry's assets into `output_dir`. Re-running over unchanged
    bundles rewrites identical bytes.
    """
    root = Path(output_dir)
    icons = packages = redirected = screenshots = 0

    for entry in entries:
        record, bundle = entry.record, entry.bundle

        if record.image_id:
            icon = next(name for name in ICON_FILES if bundle.has_file(name))
            _copy_from_bundle(bundle, icon, root / IMAGES_DIR / record.image_id)
            icons += 1

        if bundle.has_file(PACKAGE_FILE):
            size = bundle.size(PACKAGE_FILE)
            if size > redirect_threshold:
                log.warning(
                    f"{bundle.label}/{PACKAGE_FILE} is {size // (1024 * 1024)}MB, using external URL",
                    extra={"bundle": bundle.label, "size": size, "package_url": record.package_url},
                )
                redirected += 1
            else:
                _copy_from_bundle(bundle, PACKAGE_FILE, root / PACKAGES_DIR / record.package_id)
                packages += 1

        for name in sorted(bundle.list_dir(SCREENSHOTS_DIR)):
            if not is_screenshot(name):
                continue
            _copy_from_bundle(
                bundle, f"{SCREENSHOTS_DIR}/{name}", root / SCREENSHOTS_DIR / record.app_id / name
            )
            screenshots += 1

    counts = CollectionCounts(
        icons=icons, packages=packages, redirected=redirected, screenshots=screenshots
    )
    log.info(
        f"Copied {icons} icons, {packages} packages ({redirected} redirected), {screenshots} screenshots",
        extra={"icons": icons, "packages": packages, "redirected": redirected, "screenshots": screenshots},
    )
    return counts


__all__ = ["IMAGES_DIR", "PACKAGES_DIR", "collect_assets"]
