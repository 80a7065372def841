"""
Metadata normalizer: turns a validated bundle into its canonical `AppRecord`.

All duck-typing of hand-written metadata is confined to this module. The
output depends only on the bundle's contents, so normalizing an unchanged
bundle twice yields byte-identical catalog JSON.
"""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from store_publisher.catalog.source import (
    DESCRIPTION_FILE,
    ICON_FILES,
    PACKAGE_FILE,
    SCREENSHOTS_DIR,
    BundleHandle,
    is_screenshot,
)
from store_publisher.catalog.validator import load_metadata
from store_publisher.domain.models import AppRecord
from store_publisher.utils.hashing import stream_digest

AUTHOR_FIELDS = ("name", "githubUsername", "keybaseUsername", "twitterUsername", "picture")
DERIVED_FIELDS = ("imageId", "packageUrl")
# Icons are addressed by MD5 so existing image URLs stay stable.
IMAGE_ID_ALGORITHM = "md5"


def compute_image_id(bundle: BundleHandle) -> str:
    """`<hash>.<ext>` of the preferred icon, or "" when the bundle has none."""
    for icon in ICON_FILES:
        if bundle.has_file(icon):
            with bundle.open(icon) as f:
                digest = stream_digest(f, IMAGE_ID_ALGORITHM)
            return f"{digest}.{icon.rsplit('.', 1)[1]}"
    return ""


def compute_package_url(
    bundle: BundleHandle, package_id: str, redirect_threshold: int, releases_base_url: str
) -> Optional[str]:
    """
    External URL for an artifact too large for the local store, else None.
    A None result means consumers fetch ``packages/<packageId>``.
    """
    if not bundle.has_file(PACKAGE_FILE):
        return None
    if bundle.size(PACKAGE_FILE) <= redirect_threshold:
        return None
    return f"{releases_base_url.rstrip('/')}/{package_id}"


def discover_screenshots(bundle: BundleHandle) -> List[Dict[str, str]]:
    names = sorted(name for name in bundle.list_dir(SCREENSHOTS_DIR) if is_screenshot(name))
    return [{"url": f"{SCREENSHOTS_DIR}/{name}", "caption": ""} for name in names]


def _normalize_screenshots(bundle: BundleHandle, raw: Any) -> List[Any]:
    if not raw:
        return discover_screenshots(bundle)
    return [{"url": shot, "caption": ""} if isinstance(shot, str) else shot for shot in raw]


def _resolve_description(bundle: BundleHandle, raw: Any) -> str:
    description = raw or ""
    if not description and bundle.has_file(DESCRIPTION_FILE):
        description = bundle.read_text(DESCRIPTION_FILE).strip()
    return description


def normalize_bundle(
    bundle: BundleHandle,
    redirect_threshold: int,
    releases_base_url: str,
) -> AppRecord:
    """
    Build the canonical record for a bundle that already passed validation.

    Parameters
    ----------
    bundle : BundleHandle
        The bundle to read.
    redirect_threshold : int
        Package artifacts strictly larger than this get a `packageUrl`.
    releases_base_url : str
        Base of the external large-object store.
    """
    metadata = load_metadata(bundle)
    for key in DERIVED_FIELDS:
        metadata.pop(key, None)

    author = dict(metadata.get("author") or {})
    for key in AUTHOR_FIELDS:
        author.setdefault(key, "")
    metadata["author"] = author

    if not isinstance(metadata.get("categories"), list):
        metadata["categories"] = []

    metadata["imageId"] = compute_image_id(bundle)
    package_url = compute_package_url(
        bundle, metadata["packageId"], redirect_threshold, releases_base_url
    )
    if package_url:
        metadata["packageUrl"] = package_url

    metadata["description"] = _resolve_description(bundle, metadata.get("description"))
    metadata["screenshots"] = _normalize_screenshots(bundle, metadata.get("screenshots"))

    return AppRecord.model_validate(metadata)


def dump_catalog(records: List[AppRecord]) -> str:
    """Serialize records as ``{"apps": [...]}`` with deterministic formatting."""
    payload = {"apps": [record.to_catalog_entry() for record in records]}
    return json.dumps(payload, indent=2, sort_keys=True) + "\n"


__all__ = [
    "compute_image_id",
    "compute_package_url",
    "discover_screenshots",
    "dump_catalog",
    "normalize_bundle",
]
